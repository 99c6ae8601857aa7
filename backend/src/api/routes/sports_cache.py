"""
Wait Time Tracker - Sports Cache Endpoints
Adaptive-TTL scoreboards and standings for NHL, NFL and MLB.
"""

import requests
from flask import Blueprint, jsonify, request

from database.connection import get_db_session
from sports.adaptive_cache import SportsCacheService, validate_sport
from utils.timezone import parse_date_key
from api.middleware.error_handler import UpstreamError

sports_cache_bp = Blueprint('sports_cache', __name__)


def _serve(action: str, sport: str):
    """
    Run a cache operation and translate failures.

    Invalid sport/date -> 400, upstream failure -> 502.
    """
    date = request.args.get('date') or None
    try:
        sport = validate_sport(sport)
        if date is not None:
            parse_date_key(date)
    except ValueError as e:
        return jsonify({"error": "Bad Request", "message": str(e)}), 400

    try:
        with get_db_session() as session:
            service = SportsCacheService(session)
            result = getattr(service, action)(sport, date)
            payload = result.to_dict()
    except requests.RequestException as e:
        raise UpstreamError(f"Failed to fetch {sport} data from upstream: {e}")

    return jsonify(payload), 200


@sports_cache_bp.route('/games/<sport>', methods=['GET'])
def get_games(sport: str):
    """Cached scoreboard. Optional ?date=YYYY-MM-DD (defaults to today)."""
    return _serve('get_games', sport)


@sports_cache_bp.route('/games/<sport>/refresh', methods=['POST'])
def refresh_games(sport: str):
    """Drop the cached scoreboard and fetch it again."""
    return _serve('refresh_games', sport)


@sports_cache_bp.route('/standings/<sport>', methods=['GET'])
def get_standings(sport: str):
    """Cached standings whose TTL follows the day's game state."""
    return _serve('get_standings', sport)


@sports_cache_bp.route('/standings/<sport>/refresh', methods=['POST'])
def refresh_standings(sport: str):
    """Drop the cached standings and fetch them again."""
    return _serve('refresh_standings', sport)

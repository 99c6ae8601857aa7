"""
Wait Time Tracker - Tracking API Endpoints
Collector control, collection statistics, history queries and data purge.
"""

from flask import Blueprint, jsonify, request, current_app, abort

from database.connection import get_db_session
from database.repositories.metadata_repository import MetadataRepository
from database.repositories.snapshot_repository import SnapshotRepository
from database.repositories.tracking_repository import TrackingStateRepository
from processor.metadata_aggregator import MetadataAggregator
from utils.config import COLLECTION_INTERVAL_MINUTES, DELETE_CONFIRMATION_TOKEN
from utils.logger import logger, log_database_error
from utils.timezone import hours_ago_utc
from api.middleware.auth import api_key_auth

tracking_bp = Blueprint('tracking', __name__)


def _collector():
    return current_app.extensions['wait_time_collector']


def _iso(value):
    return value.isoformat() if value else None


def _query_number(name: str, default, cast=float):
    """Parse a positive numeric query parameter or abort with 400."""
    raw = request.args.get(name)
    if raw is None or raw == '':
        return default
    try:
        value = cast(raw)
    except (TypeError, ValueError):
        abort(400, description=f"'{name}' must be a number")
    if value <= 0:
        abort(400, description=f"'{name}' must be positive")
    return value


@tracking_bp.route('/tracking/status', methods=['GET'])
def tracking_status():
    """
    Collector status, persisted settings and collection statistics.

    Statistics are omitted (null) when the database is unreachable; this
    endpoint never fails because of them.
    """
    response = {"collector": _collector().status(), "settings": None, "statistics": None}

    try:
        with get_db_session() as session:
            snapshot_repo = SnapshotRepository(session)
            state = TrackingStateRepository(session).get()
            oldest, newest = snapshot_repo.get_date_range()

            response["settings"] = state.to_dict() if state else None
            response["statistics"] = {
                "total_snapshots": snapshot_repo.count_all(),
                "total_rides": MetadataRepository(session).count_all(),
                "snapshots_last_24h": snapshot_repo.count_since(hours_ago_utc(24)),
                "oldest_snapshot": _iso(oldest),
                "newest_snapshot": _iso(newest),
            }
    except Exception as e:
        log_database_error(e, "Failed to load tracking statistics")
        response["error"] = "Statistics unavailable"

    return jsonify(response), 200


@tracking_bp.route('/tracking/start', methods=['POST'])
@api_key_auth.require_api_key
def start_tracking():
    """
    Start scheduled collection.

    Request Body:
        interval_minutes: int (optional, 1-60, default 5)

    Returns:
        200 OK: Started, or already running
        400 Bad Request: Invalid interval
    """
    data = request.get_json(silent=True) or {}
    interval = data.get('interval_minutes', COLLECTION_INTERVAL_MINUTES)

    try:
        started = _collector().start(interval)
    except ValueError as e:
        return jsonify({"error": "Bad Request", "message": str(e)}), 400

    message = "Data collection started" if started else "Data collection already running"
    return jsonify({
        "message": message,
        "started": started,
        "interval_minutes": _collector().interval_minutes
    }), 200


@tracking_bp.route('/tracking/stop', methods=['POST'])
@api_key_auth.require_api_key
def stop_tracking():
    """Stop scheduled collection. An in-flight run still completes."""
    stopped = _collector().stop()
    message = "Data collection stopped" if stopped else "Data collection was not running"
    return jsonify({"message": message, "stopped": stopped}), 200


@tracking_bp.route('/tracking/collect-now', methods=['POST'])
@api_key_auth.require_api_key
def collect_now():
    """Run one collection cycle synchronously."""
    result = _collector().collect_now()
    return jsonify({
        "message": f"Collection {result.outcome.value}",
        "result": result.to_dict()
    }), 200


@tracking_bp.route('/tracking/history/<int:ride_id>', methods=['GET'])
def ride_history(ride_id: int):
    """
    Recent snapshots for one ride, newest first.

    Query Parameters:
        hours: Lookback window (default 24)
        limit: Maximum snapshots (default 100)
    """
    hours = _query_number('hours', 24)
    limit = _query_number('limit', 100, cast=int)

    with get_db_session() as session:
        snapshots = SnapshotRepository(session).get_ride_history(ride_id, hours_ago_utc(hours), limit)
        payload = [s.to_dict() for s in snapshots]

    return jsonify({"ride_id": ride_id, "snapshots": payload}), 200


@tracking_bp.route('/tracking/history/park/<int:park_id>', methods=['GET'])
def park_history(park_id: int):
    """
    Recent snapshots for every ride in a park, newest first.

    Query Parameters:
        hours: Lookback window (default 1)
    """
    hours = _query_number('hours', 1)

    with get_db_session() as session:
        snapshots = SnapshotRepository(session).get_park_history(park_id, hours_ago_utc(hours))
        payload = [s.to_dict() for s in snapshots]

    return jsonify({"park_id": park_id, "snapshots": payload}), 200


@tracking_bp.route('/tracking/rides', methods=['GET'])
def list_rides():
    """Ride metadata, optionally filtered by ?park_id=."""
    park_id = request.args.get('park_id', type=int)

    with get_db_session() as session:
        rides = [r.to_dict() for r in MetadataRepository(session).list_rides(park_id=park_id)]

    return jsonify({"rides": rides}), 200


@tracking_bp.route('/tracking/records/<int:park_id>', methods=['GET'])
def park_records(park_id: int):
    """All-time peak wait per ride in a park, highest first."""
    with get_db_session() as session:
        rides = [
            {
                "ride_id": r.ride_id,
                "ride_name": r.ride_name,
                "land_name": r.land_name,
                "peak_wait_time": r.peak_wait_time,
                "peak_wait_time_at": _iso(r.peak_wait_time_at),
                "peak_wait_time_context": r.peak_wait_time_context,
            }
            for r in MetadataRepository(session).get_records(park_id)
        ]

    return jsonify({"park_id": park_id, "rides": rides}), 200


@tracking_bp.route('/tracking/backfill-peaks', methods=['POST'])
@api_key_auth.require_api_key
def backfill_peaks():
    """Recompute every ride's all-time peak from snapshot history."""
    with get_db_session() as session:
        stats = MetadataAggregator(session).backfill_peaks()
    return jsonify({"message": "Peak backfill complete", **stats}), 200


@tracking_bp.route('/tracking/refresh-stats', methods=['POST'])
@api_key_auth.require_api_key
def refresh_stats():
    """Recompute hourly/daily averages for every ride."""
    with get_db_session() as session:
        stats = MetadataAggregator(session).refresh_stats()
    return jsonify({"message": "Ride stats refreshed", **stats}), 200


@tracking_bp.route('/tracking/data', methods=['DELETE'])
@api_key_auth.require_api_key
def delete_all_data():
    """
    Delete every snapshot and metadata row.

    Request Body:
        confirm: must equal the configured confirmation token

    Returns:
        200 OK: Data deleted
        400 Bad Request: Missing or wrong confirmation token
    """
    data = request.get_json(silent=True) or {}
    if data.get('confirm') != DELETE_CONFIRMATION_TOKEN:
        return jsonify({
            "error": "Bad Request",
            "message": f"Confirmation required. Send {{\"confirm\": \"{DELETE_CONFIRMATION_TOKEN}\"}} to delete all data."
        }), 400

    with get_db_session() as session:
        deleted_snapshots = SnapshotRepository(session).delete_all()
        deleted_metadata = MetadataRepository(session).delete_all()

    logger.warning("All tracking data deleted", extra={
        "event_type": "data_purge",
        "deleted_snapshots": deleted_snapshots,
        "deleted_metadata": deleted_metadata
    })
    return jsonify({
        "message": "All tracking data deleted",
        "deleted_snapshots": deleted_snapshots,
        "deleted_metadata": deleted_metadata
    }), 200

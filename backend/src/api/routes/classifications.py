"""
Wait Time Tracker - Ride Classification Endpoints
List, set and bulk-set ride tiers; sync ride metadata from Queue-Times.com.
"""

from flask import Blueprint, jsonify, request

from collector.metadata_collector import MetadataCollector
from database.connection import get_db_session
from database.repositories.metadata_repository import MetadataRepository
from models.orm_metadata import Classification
from api.middleware.auth import api_key_auth

classifications_bp = Blueprint('classifications', __name__)


def _summary(ride) -> dict:
    return {
        "ride_id": ride.ride_id,
        "ride_name": ride.ride_name,
        "park_id": ride.park_id,
        "land_id": ride.land_id,
        "land_name": ride.land_name,
        "classification": ride.classification,
        "is_active": ride.is_active,
    }


@classifications_bp.route('/classifications', methods=['GET'])
def list_classifications():
    """Every ride with its classification, optionally filtered by ?park_id=."""
    park_id = request.args.get('park_id', type=int)

    with get_db_session() as session:
        rides = [_summary(r) for r in MetadataRepository(session).list_rides(park_id=park_id)]

    return jsonify({"rides": rides}), 200


@classifications_bp.route('/classifications/bulk', methods=['PUT'])
@api_key_auth.require_api_key
def bulk_update_classifications():
    """
    Bulk update classifications. Invalid or unknown entries are skipped.

    Request Body:
        classifications: [{"ride_id": int, "classification": str}, ...]
    """
    data = request.get_json(silent=True) or {}
    updates = data.get('classifications')
    if not isinstance(updates, list):
        return jsonify({
            "error": "Bad Request",
            "message": "classifications must be an array"
        }), 400

    with get_db_session() as session:
        updated, skipped = MetadataRepository(session).bulk_set_classification(updates)

    return jsonify({"updated": updated, "skipped": skipped}), 200


@classifications_bp.route('/classifications/<int:ride_id>', methods=['PUT'])
@api_key_auth.require_api_key
def update_classification(ride_id: int):
    """
    Set one ride's classification.

    Returns:
        200 OK: Updated ride
        400 Bad Request: Invalid classification
        404 Not Found: Unknown ride
    """
    data = request.get_json(silent=True) or {}
    classification = data.get('classification')
    if not Classification.is_valid(classification):
        return jsonify({
            "error": "Bad Request",
            "message": f"Invalid classification. Must be one of: {', '.join(Classification.values())}"
        }), 400

    with get_db_session() as session:
        ride = MetadataRepository(session).set_classification(ride_id, classification)
        if ride is None:
            return jsonify({"error": "Not Found", "message": "Ride not found"}), 404
        payload = ride.to_dict()

    return jsonify({"ride": payload}), 200


@classifications_bp.route('/classifications/sync', methods=['POST'])
@api_key_auth.require_api_key
def sync_classifications():
    """Create metadata rows for new rides and refresh names of existing ones."""
    with get_db_session() as session:
        result = MetadataCollector(session).sync_all()

    return jsonify({"message": "Ride metadata synced", **result}), 200


@classifications_bp.route('/classifications/stats', methods=['GET'])
def classification_stats():
    """Count of active rides per classification."""
    with get_db_session() as session:
        stats = MetadataRepository(session).classification_stats()
    return jsonify({"stats": stats}), 200

"""
Wait Time Tracker - Health Check Endpoint
Provides API health status, database connectivity, and data freshness.
"""

from flask import Blueprint, jsonify, current_app

from database.connection import get_db_session
from database.repositories.snapshot_repository import SnapshotRepository
from utils.logger import logger
from utils.timezone import utc_now

health_bp = Blueprint('health', __name__)

# Collection is considered stale after this many minutes without a snapshot
STALE_AFTER_MINUTES = 30


@health_bp.route('/health', methods=['GET'])
def health_check():
    """
    Health check endpoint.

    Returns:
        JSON with API health status, database connectivity, and data freshness

    Response:
        200 OK: All systems operational
        503 Service Unavailable: Database connection failed
    """
    now = utc_now()
    health_data = {
        "status": "healthy",
        "timestamp": now.isoformat() + 'Z',
        "api_version": "1.0.0",
        "checks": {}
    }

    try:
        with get_db_session() as session:
            _, newest = SnapshotRepository(session).get_date_range()

        health_data["checks"]["database"] = {
            "status": "healthy",
            "message": "Database connection successful"
        }

        if newest:
            age_minutes = int((now - newest).total_seconds() / 60)
            health_data["checks"]["data_collection"] = {
                "status": "healthy" if age_minutes < STALE_AFTER_MINUTES else "stale",
                "last_collection": newest.isoformat() + 'Z',
                "age_minutes": age_minutes,
                "message": f"Last collection {age_minutes} minutes ago"
            }
        else:
            health_data["checks"]["data_collection"] = {
                "status": "no_data",
                "message": "No data collected yet"
            }

    except Exception as e:
        logger.error(f"Health check database failure: {e}")
        health_data["status"] = "unhealthy"
        health_data["checks"]["database"] = {
            "status": "unhealthy",
            "message": str(e)
        }
        return jsonify(health_data), 503

    collector = current_app.extensions.get('wait_time_collector')
    if collector is not None:
        status = collector.status()
        health_data["checks"]["collector"] = {
            "status": "scheduled" if status["is_scheduled"] else "stopped",
            "is_collecting": status["is_collecting"]
        }

    return jsonify(health_data), 200

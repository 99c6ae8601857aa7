"""
Wait Time Tracker - Flask API Application
Main API application with Blueprints, CORS, and middleware.
"""

from typing import Optional
from flask import Flask, jsonify
from flask_cors import CORS

from collector.wait_time_collector import WaitTimeCollector
from utils.config import FLASK_ENV, FLASK_DEBUG, SECRET_KEY
from utils.logger import logger
from api.routes.health import health_bp
from api.routes.tracking import tracking_bp
from api.routes.classifications import classifications_bp
from api.routes.sports_cache import sports_cache_bp
from api.middleware.error_handler import register_error_handlers, register_request_logging


def create_app(collector: Optional[WaitTimeCollector] = None) -> Flask:
    """
    Create and configure Flask application.

    Args:
        collector: Collector instance served by the tracking routes
            (a new, unstarted one is created if omitted)

    Returns:
        Configured Flask app instance
    """
    app = Flask(__name__)

    # Configuration
    app.config['ENV'] = FLASK_ENV
    app.config['DEBUG'] = FLASK_DEBUG
    app.config['SECRET_KEY'] = SECRET_KEY
    app.json.sort_keys = False  # Preserve JSON key order

    # CORS configuration
    CORS(app, resources={
        r"/api/*": {
            "origins": "*",  # Configure for production
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "X-API-Key"]
        }
    })

    app.extensions['wait_time_collector'] = collector or WaitTimeCollector()

    # Register blueprints
    app.register_blueprint(health_bp, url_prefix='/api')
    app.register_blueprint(tracking_bp, url_prefix='/api')
    app.register_blueprint(classifications_bp, url_prefix='/api')
    app.register_blueprint(sports_cache_bp, url_prefix='/api')

    # Register error handlers
    register_error_handlers(app)
    register_request_logging(app)

    logger.info(f"Flask app created (env={FLASK_ENV}, debug={FLASK_DEBUG})")

    # Root endpoint
    @app.route('/')
    def index():
        """Root endpoint with API information."""
        return jsonify({
            "name": "Wait Time Tracker API",
            "version": "1.0.0",
            "status": "running",
            "endpoints": {
                "health": "/api/health",
                "tracking": "/api/tracking/status",
                "classifications": "/api/classifications",
                "games": "/api/games/<sport>",
                "standings": "/api/standings/<sport>"
            }
        })

    return app

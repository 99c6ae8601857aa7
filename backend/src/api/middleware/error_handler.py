"""
Wait Time Tracker - Error Handler Middleware
Standardized JSON error responses and request logging for all API endpoints.
"""

import time
from flask import jsonify, Flask, g, request
from werkzeug.exceptions import HTTPException

from utils.logger import logger, log_api_request


class UpstreamError(Exception):
    """An upstream API needed to answer the request failed (502)."""
    pass


def register_error_handlers(app: Flask):
    """
    Register error handlers for Flask app.

    Args:
        app: Flask application instance
    """

    @app.errorhandler(400)
    def bad_request(error):
        """Handle 400 Bad Request errors."""
        logger.warning(f"Bad request: {error}")
        return jsonify({
            "error": "Bad Request",
            "message": str(error.description) if hasattr(error, 'description') else "Invalid request"
        }), 400

    @app.errorhandler(401)
    def unauthorized(error):
        """Handle 401 Unauthorized errors."""
        logger.warning(f"Unauthorized access: {error}")
        return jsonify({
            "error": "Unauthorized",
            "message": "Invalid or missing authentication credentials"
        }), 401

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 Not Found errors."""
        logger.info(f"Not found: {error}")
        return jsonify({
            "error": "Not Found",
            "message": str(error.description) if hasattr(error, 'description') else "The requested resource was not found"
        }), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({
            "error": "Method Not Allowed",
            "message": "The method is not allowed for the requested URL"
        }), 405

    @app.errorhandler(UpstreamError)
    def upstream_error(error):
        """Handle upstream API failures."""
        logger.error(f"Upstream error: {error}")
        return jsonify({
            "error": "Bad Gateway",
            "message": str(error)
        }), 502

    @app.errorhandler(500)
    def internal_server_error(error):
        """Handle 500 Internal Server Error."""
        logger.error(f"Internal server error: {error}", exc_info=True)
        return jsonify({
            "error": "Internal Server Error",
            "message": "An unexpected error occurred. Please try again later."
        }), 500

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        """Handle all unhandled exceptions."""
        # If it's an HTTP exception, pass through to specific handler
        if isinstance(error, HTTPException):
            return error

        logger.error(f"Unexpected error: {error}", exc_info=True)

        return jsonify({
            "error": "Internal Server Error",
            "message": "An unexpected error occurred. Please try again later."
        }), 500

    logger.info("Error handlers registered")


def register_request_logging(app: Flask):
    """Log method, path, status and duration for every /api request."""

    @app.before_request
    def start_timer():
        g.request_started = time.monotonic()

    @app.after_request
    def log_request(response):
        started = g.get('request_started')
        if started is not None and request.path.startswith('/api'):
            duration_ms = round((time.monotonic() - started) * 1000, 2)
            log_api_request(request.method, request.path, response.status_code, duration_ms)
        return response

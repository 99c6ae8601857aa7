"""
Wait Time Tracker - API Key Authentication Middleware
Validates X-API-Key header for admin endpoints.
"""

from functools import wraps
from typing import Optional
from flask import request, jsonify

from utils.config import config
from utils.logger import logger


class APIKeyAuth:
    """
    API key authentication middleware.

    Validates X-API-Key header against configured API keys.
    For production: Store API keys in AWS SSM Parameter Store.
    For local: Store in .env file as comma-separated list.
    """

    def __init__(self, api_keys: Optional[str] = None):
        """
        Args:
            api_keys: Comma-separated keys (defaults to the API_KEYS setting)
        """
        api_keys_str = api_keys if api_keys is not None else config.get('API_KEYS', '')
        self.valid_api_keys = set(
            key.strip()
            for key in (api_keys_str or '').split(',')
            if key.strip()
        )

        if not self.valid_api_keys:
            logger.warning("No API keys configured - authentication disabled")

    def require_api_key(self, f):
        """
        Decorator to require valid API key.

        Usage:
            @tracking_bp.route('/tracking/start', methods=['POST'])
            @api_key_auth.require_api_key
            def start_tracking():
                ...
        """
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # If no API keys configured, skip authentication (development mode)
            if not self.valid_api_keys:
                return f(*args, **kwargs)

            api_key = request.headers.get('X-API-Key')

            if not api_key:
                logger.warning("Missing X-API-Key header", extra={
                    "path": request.path,
                    "remote_addr": request.remote_addr
                })
                return jsonify({
                    "error": "Unauthorized",
                    "message": "Missing X-API-Key header"
                }), 401

            if api_key not in self.valid_api_keys:
                logger.warning("Invalid API key", extra={
                    "path": request.path,
                    "remote_addr": request.remote_addr,
                    "api_key_prefix": api_key[:8] if len(api_key) >= 8 else "***"
                })
                return jsonify({
                    "error": "Unauthorized",
                    "message": "Invalid API key"
                }), 401

            return f(*args, **kwargs)

        return decorated_function


# Global instance
api_key_auth = APIKeyAuth()

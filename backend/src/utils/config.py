"""
Wait Time Tracker - Configuration Management
Reads settings from the environment (python-dotenv loads a local .env) or,
when ENVIRONMENT=production, from AWS SSM Parameter Store.
"""

import logging
import os
from typing import Callable, List, Optional, TypeVar
from dotenv import load_dotenv

# Load .env file for local development
load_dotenv()

# Plain stdlib logger: utils.logger reads LOG_LEVEL from this module
_log = logging.getLogger(__name__)

T = TypeVar('T')

TRUE_VALUES = ('true', '1', 'yes', 'on')

_MISSING = object()


class Config:
    """
    Settings source with two backends:
    - local: os.environ (populated from .env by python-dotenv)
    - production: AWS SSM parameters under AWS_SSM_PREFIX
    """

    def __init__(self):
        self.environment = os.getenv('ENVIRONMENT', 'local')
        self.ssm_prefix = os.getenv('AWS_SSM_PREFIX', '/waittime-tracker')
        self._ssm_client = None

    @property
    def is_production(self) -> bool:
        return self.environment == 'production'

    @property
    def is_local(self) -> bool:
        return self.environment == 'local'

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Look up a raw string setting.

        Args:
            key: Setting name
            default: Returned when the setting is absent

        Returns:
            The setting value or default
        """
        if self.is_production:
            return self._get_from_ssm(key, default)
        return os.getenv(key, default)

    def _ssm(self):
        if self._ssm_client is None:
            import boto3
            self._ssm_client = boto3.client('ssm', region_name=os.getenv('AWS_REGION', 'us-east-1'))
        return self._ssm_client

    def _get_from_ssm(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Fetch one decrypted parameter from SSM.

        Raises:
            ConfigurationError: When the parameter cannot be read and no default exists
        """
        name = f"{self.ssm_prefix}/{key}"
        try:
            response = self._ssm().get_parameter(Name=name, WithDecryption=True)
            return response['Parameter']['Value']
        except Exception as e:
            error_type = type(e).__name__
            missing = error_type == 'ParameterNotFound'

            if default is not None:
                if not missing:
                    _log.warning(f"SSM lookup for '{key}' failed ({error_type}: {e}), using default")
                return default

            if missing:
                raise ConfigurationError(f"Required parameter '{key}' not found in SSM at '{name}'")
            raise ConfigurationError(f"Failed to fetch parameter '{key}' from SSM: {error_type}: {e}")

    def _typed(self, key: str, default: T, parse: Callable[[str], T], kind: str) -> T:
        raw = self.get(key, _MISSING)
        if raw is _MISSING or raw is None:
            return default
        try:
            return parse(raw)
        except (ValueError, TypeError, AttributeError):
            _log.warning(f"Invalid {kind} for config key '{key}': '{raw}', using default {default!r}")
            return default

    def get_int(self, key: str, default: int) -> int:
        return self._typed(key, default, int, 'integer')

    def get_float(self, key: str, default: float) -> float:
        return self._typed(key, default, float, 'float')

    def get_bool(self, key: str, default: bool) -> bool:
        return self._typed(key, default, lambda raw: raw.strip().lower() in TRUE_VALUES, 'boolean')

    def get_int_list(self, key: str, default: List[int]) -> List[int]:
        """Comma-separated integers, e.g. TRACKED_PARK_IDS=5,6,7,8."""
        def parse(raw: str) -> List[int]:
            return [int(part) for part in (p.strip() for p in raw.split(',')) if part]
        return self._typed(key, list(default), parse, 'integer list')


class ConfigurationError(Exception):
    """Raised when configuration cannot be loaded."""
    pass


# Global configuration instance
config = Config()


# Database configuration (DATABASE_URL overrides the MySQL settings when set)
DATABASE_URL = config.get('DATABASE_URL', '')
DB_HOST = config.get('DB_HOST', 'localhost')
DB_PORT = config.get_int('DB_PORT', 3306)
DB_NAME = config.get('DB_NAME', 'waittime_tracker_dev')
DB_USER = config.get('DB_USER', 'root')
DB_PASSWORD = config.get('DB_PASSWORD', '')

# Queue-Times.com API configuration
QUEUE_TIMES_API_BASE_URL = config.get('QUEUE_TIMES_API_BASE_URL', 'https://queue-times.com')

# Flask configuration
FLASK_ENV = config.get('FLASK_ENV', 'development')
FLASK_DEBUG = config.get_bool('FLASK_DEBUG', True)
SECRET_KEY = config.get('SECRET_KEY', 'dev-secret-key-change-in-production')

# Logging configuration
LOG_LEVEL = config.get('LOG_LEVEL', 'INFO')

# Data collection settings
TRACKED_PARK_IDS = config.get_int_list('TRACKED_PARK_IDS', [5, 6, 7, 8])
COLLECTION_INTERVAL_MINUTES = config.get_int('COLLECTION_INTERVAL_MINUTES', 5)
MIN_COLLECTION_INTERVAL_MINUTES = 1
MAX_COLLECTION_INTERVAL_MINUTES = 60
RECENT_DATA_WINDOW_MINUTES = config.get_int('RECENT_DATA_WINDOW_MINUTES', 4)
UPSTREAM_TIMEOUT_SECONDS = config.get_int('UPSTREAM_TIMEOUT_SECONDS', 10)
MAX_RETRY_ATTEMPTS = config.get_int('MAX_RETRY_ATTEMPTS', 3)
RETRY_BACKOFF_MULTIPLIER = config.get_int('RETRY_BACKOFF_MULTIPLIER', 1)

# Context enrichment
PARK_TIMEZONE = config.get('PARK_TIMEZONE', 'America/New_York')
WEATHER_LATITUDE = config.get_float('WEATHER_LATITUDE', 28.3852)
WEATHER_LONGITUDE = config.get_float('WEATHER_LONGITUDE', -81.5639)
WEATHER_CACHE_TTL_SECONDS = config.get_int('WEATHER_CACHE_TTL_SECONDS', 600)
HOLIDAY_COUNTRY = config.get('HOLIDAY_COUNTRY', 'US')
HOLIDAY_SUBDIVISION = config.get('HOLIDAY_SUBDIVISION', 'FL')

# Sports cache
SPORTS_CACHE_RETENTION_DAYS = config.get_int('SPORTS_CACHE_RETENTION_DAYS', 7)

# Admin operations
DELETE_CONFIRMATION_TOKEN = config.get('DELETE_CONFIRMATION_TOKEN', 'DELETE_ALL_DATA')

# Database connection pool settings
DB_POOL_SIZE = 10
DB_POOL_MAX_OVERFLOW = 20
DB_POOL_RECYCLE = 3600  # Recycle connections after 1 hour
DB_POOL_PRE_PING = True  # Health check connections before use

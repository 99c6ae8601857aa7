"""
Wait Time Tracker - Structured Logging
Provides JSON-formatted logging for CloudWatch Logs Insights queries.
"""

import logging
import sys
from typing import List, Optional
from pythonjsonlogger import jsonlogger

from utils.config import LOG_LEVEL, config


def setup_logger(name: str = __name__) -> logging.Logger:
    """
    Configure structured JSON logger.

    Args:
        name: Logger name (typically __name__ from calling module)

    Returns:
        Configured logger instance

    Example:
        >>> logger = setup_logger(__name__)
        >>> logger.info("Collection completed", extra={
        ...     "parks_processed": 4,
        ...     "snapshots_created": 212
        ... })
    """
    logger = logging.getLogger(name)

    # Prevent duplicate handlers
    if logger.handlers:
        return logger

    level = getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    formatter = jsonlogger.JsonFormatter(
        '%(asctime)s %(name)s %(levelname)s %(message)s',
        datefmt='%Y-%m-%dT%H:%M:%S'
    )
    handler.setFormatter(formatter)

    logger.addHandler(handler)

    # Don't propagate to root logger
    logger.propagate = False

    return logger


# Global logger instance
logger = setup_logger('waittime_tracker')


def log_collection_start(park_count: int):
    """Log the start of a wait time collection cycle."""
    logger.info("Data collection started", extra={
        "event_type": "collection_start",
        "park_count": park_count,
        "environment": config.environment
    })


def log_collection_complete(duration_seconds: float, parks_processed: int,
                            snapshots_created: int, errors: Optional[List[str]] = None):
    """Log successful collection completion."""
    logger.info("Data collection completed", extra={
        "event_type": "collection_complete",
        "duration_seconds": duration_seconds,
        "parks_processed": parks_processed,
        "snapshots_created": snapshots_created,
        "error_count": len(errors or [])
    })


def log_collection_skipped(reason: str):
    """Log a collection cycle that performed no writes."""
    logger.info("Data collection skipped", extra={
        "event_type": "collection_skipped",
        "reason": reason
    })


def log_collection_error(error: Exception, park_id: int = None):
    """Log collection error with context."""
    logger.error("Data collection failed", extra={
        "event_type": "collection_error",
        "error_type": type(error).__name__,
        "error_message": str(error),
        "park_id": park_id
    }, exc_info=True)


def log_cache_event(cache_name: str, sport: str, date_key: str, hit: bool,
                    age_minutes: Optional[float] = None, ttl_minutes: Optional[int] = None):
    """Log an adaptive cache lookup."""
    logger.info("Cache lookup", extra={
        "event_type": "cache_hit" if hit else "cache_miss",
        "cache_name": cache_name,
        "sport": sport,
        "date_key": date_key,
        "age_minutes": age_minutes,
        "ttl_minutes": ttl_minutes
    })


def log_api_request(method: str, path: str, status_code: int, duration_ms: float):
    """Log API request metrics."""
    logger.info("API request", extra={
        "event_type": "api_request",
        "method": method,
        "path": path,
        "status_code": status_code,
        "duration_ms": duration_ms
    })


def log_database_error(error: Exception, query_context: str = None):
    """Log database error with context."""
    logger.error("Database error", extra={
        "event_type": "database_error",
        "error_type": type(error).__name__,
        "error_message": str(error),
        "query_context": query_context
    }, exc_info=True)

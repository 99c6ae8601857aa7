# Wait Time Tracker - Models Package

# Import all ORM models to register them with SQLAlchemy's declarative base
# IMPORTANT: Use relative imports to avoid duplicate module loading issues
from .base import Base, SessionLocal, db_session, create_session
from .orm_snapshots import WaitTimeSnapshot
from .orm_metadata import RideMetadata, Classification
from .orm_cache import GameCache, StandingsCache, SPORTS
from .orm_tracking import TrackingState
from .context import Context, WeatherSnapshot
from .park import Park

__all__ = [
    'Base',
    'SessionLocal',
    'db_session',
    'create_session',
    'WaitTimeSnapshot',
    'RideMetadata',
    'Classification',
    'GameCache',
    'StandingsCache',
    'SPORTS',
    'TrackingState',
    'Context',
    'WeatherSnapshot',
    'Park',
]

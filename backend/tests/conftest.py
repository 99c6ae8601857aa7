"""
Wait Time Tracker - pytest Configuration and Fixtures

Provides shared test fixtures for:
- In-memory SQLite database (schema created per test)
- Sample Queue-Times.com payloads and a mock API client
- Snapshot factory for repository and aggregator tests
- Flask test client

Note: DATABASE_URL must be set before any application import so the
global engine binds to SQLite instead of MySQL.
"""

import os

os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['API_KEYS'] = ''
os.environ.setdefault('ENVIRONMENT', 'local')

import pytest
from datetime import datetime
from unittest.mock import Mock

from collector.queue_times_client import QueueTimesClient, parse_park_payload
from database.connection import db
from models import Base
from models.base import create_session


# A Tuesday, 2 PM at the park (EDT is UTC-4)
TUESDAY_2PM_UTC = datetime(2025, 10, 21, 18, 0, 0)


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def engine():
    """
    Shared in-memory SQLite engine with a fresh schema for each test.

    The engine uses StaticPool, so every session (including the ones the
    code under test opens itself) sees the same database.
    """
    engine = db.get_engine()
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    """ORM session for arranging and asserting test data."""
    session = create_session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def snapshot_factory(session):
    """
    Insert snapshots with sensible context defaults.

    Usage:
        snapshot_factory(ride_id=101, wait_time=45, recorded_at=ts)
    """
    from database.repositories.snapshot_repository import SnapshotRepository

    repo = SnapshotRepository(session)

    def _make(ride_id: int = 101, wait_time: int = 30, recorded_at: datetime = TUESDAY_2PM_UTC,
              is_open: bool = True, park_id: int = 6, hour: int = 14, day_of_week: int = 2,
              ride_name: str = None, **overrides):
        data = {
            'ride_id': ride_id,
            'ride_name': ride_name or f"Ride {ride_id}",
            'park_id': park_id,
            'land_id': 1,
            'land_name': 'Tomorrowland',
            'wait_time': wait_time,
            'is_open': is_open,
            'recorded_at': recorded_at,
            'park_avg_wait': wait_time if is_open else None,
            'park_open_ride_count': 1 if is_open else 0,
            'day_of_week': day_of_week,
            'hour': hour,
            'month': recorded_at.month,
            'year': recorded_at.year,
            'week_of_year': recorded_at.isocalendar()[1],
            'is_weekend': day_of_week in (0, 6),
            'is_holiday': False,
            'holiday_name': None,
        }
        data.update(overrides)
        snapshot = repo.insert(data)
        session.commit()
        return snapshot

    return _make


# ============================================================================
# Sample Data Fixtures
# ============================================================================

@pytest.fixture
def queue_times_payload():
    """
    Magic Kingdom style queue_times.json payload.

    Two open rides with waits (45, 20), one closed ride and one open ride
    with no posted wait in the top-level rides array.
    """
    return {
        'lands': [
            {
                'id': 1,
                'name': 'Tomorrowland',
                'rides': [
                    {'id': 101, 'name': 'Space Mountain', 'is_open': True, 'wait_time': 45,
                     'last_updated': '2025-10-21T17:58:00.000Z'},
                    {'id': 102, 'name': 'Tomorrowland Speedway', 'is_open': True, 'wait_time': 20,
                     'last_updated': '2025-10-21T17:58:00.000Z'},
                    {'id': 103, 'name': 'PeopleMover', 'is_open': False, 'wait_time': 0,
                     'last_updated': '2025-10-21T17:58:00.000Z'},
                ]
            }
        ],
        'rides': [
            {'id': 104, 'name': 'Walt Disney World Railroad', 'is_open': True, 'wait_time': 0,
             'last_updated': '2025-10-21T17:58:00.000Z'},
        ]
    }


@pytest.fixture
def closed_park_payload():
    """Payload for a park where nothing is open."""
    return {
        'lands': [
            {'id': 1, 'name': 'Tomorrowland', 'rides': [
                {'id': 101, 'name': 'Space Mountain', 'is_open': False, 'wait_time': 0},
                {'id': 102, 'name': 'Tomorrowland Speedway', 'is_open': False, 'wait_time': 0},
            ]}
        ],
        'rides': []
    }


# ============================================================================
# Mock Fixtures
# ============================================================================

@pytest.fixture
def mock_queue_times_client(queue_times_payload):
    """
    Mock Queue-Times API client returning the sample payload for every park.

    Returns:
        Mock QueueTimesClient
    """
    client = Mock(spec=QueueTimesClient)
    client.get_park_wait_times = Mock(return_value=queue_times_payload)
    client.get_park_rides = Mock(return_value=parse_park_payload(queue_times_payload))
    return client


# ============================================================================
# Flask Fixtures
# ============================================================================

@pytest.fixture
def mock_collector():
    """Collector double for route tests (no scheduler thread)."""
    from collector.wait_time_collector import WaitTimeCollector

    collector = Mock(spec=WaitTimeCollector)
    collector.interval_minutes = None
    collector.status.return_value = {
        'is_scheduled': False,
        'is_collecting': False,
        'interval_minutes': None,
        'next_run': None,
        'parks': [],
        'last_result': None,
    }
    return collector


@pytest.fixture
def app(engine, mock_collector):
    from api.app import create_app

    app = create_app(collector=mock_collector)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()

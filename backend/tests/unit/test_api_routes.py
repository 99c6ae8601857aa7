"""
Wait Time Tracker - API Route Tests

Exercises the health, tracking, classification and sports cache endpoints
through the Flask test client against the in-memory SQLite schema. The
collector is a mock so no scheduler thread runs.
"""

import pytest
import requests
from datetime import datetime, timedelta
from unittest.mock import Mock, patch

from collector.wait_time_collector import CollectionResult, RunOutcome
from database.repositories.metadata_repository import MetadataRepository
from database.repositories.tracking_repository import TrackingStateRepository
from models.park import get_tracked_parks
from sports.adaptive_cache import CacheResult
from sports.game_state import EventState
from utils.timezone import utc_now


def _seed_ride(session, ride_id=101, name='Space Mountain', park_id=6, peak=None):
    repo = MetadataRepository(session)
    repo.upsert_observation(ride_id=ride_id, ride_name=name, park_id=park_id,
                            land_id=1, land_name='Tomorrowland', seen_at=datetime(2025, 10, 21, 18, 0))
    if peak is not None:
        repo.update_peak_if_higher(ride_id, peak, datetime(2025, 10, 21, 18, 0), {'hour': 14})
    session.commit()


class TestHealth:

    def test_no_data(self, client):
        response = client.get('/api/health')

        data = response.get_json()
        assert response.status_code == 200
        assert data['status'] == 'healthy'
        assert data['checks']['database']['status'] == 'healthy'
        assert data['checks']['data_collection']['status'] == 'no_data'
        assert data['checks']['collector'] == {'status': 'stopped', 'is_collecting': False}

    def test_recent_collection_is_healthy(self, client, snapshot_factory):
        snapshot_factory(recorded_at=utc_now() - timedelta(minutes=5))

        data = client.get('/api/health').get_json()

        assert data['checks']['data_collection']['status'] == 'healthy'
        assert data['checks']['data_collection']['age_minutes'] in (4, 5)

    def test_old_collection_is_stale(self, client, snapshot_factory):
        snapshot_factory(recorded_at=utc_now() - timedelta(hours=2))

        data = client.get('/api/health').get_json()

        assert data['checks']['data_collection']['status'] == 'stale'

    def test_database_failure_is_503(self, client):
        with patch('api.routes.health.SnapshotRepository') as mock_repo:
            mock_repo.return_value.get_date_range.side_effect = RuntimeError("db down")
            response = client.get('/api/health')

        assert response.status_code == 503
        assert response.get_json()['status'] == 'unhealthy'


class TestTrackingControl:

    def test_status(self, client, session, snapshot_factory):
        TrackingStateRepository(session).mark_running(5)
        session.commit()
        snapshot_factory(recorded_at=utc_now() - timedelta(hours=1))

        data = client.get('/api/tracking/status').get_json()

        assert data['collector']['is_scheduled'] is False
        assert data['settings']['enabled'] is True
        assert data['settings']['interval_minutes'] == 5
        assert data['statistics']['total_snapshots'] == 1
        assert data['statistics']['snapshots_last_24h'] == 1
        assert 'error' not in data

    def test_status_survives_database_failure(self, client):
        with patch('api.routes.tracking.SnapshotRepository') as mock_repo:
            mock_repo.return_value.get_date_range.side_effect = RuntimeError("db down")
            response = client.get('/api/tracking/status')

        data = response.get_json()
        assert response.status_code == 200
        assert data['statistics'] is None
        assert data['error'] == "Statistics unavailable"

    def test_start_default_interval(self, client, mock_collector):
        mock_collector.start.return_value = True
        mock_collector.interval_minutes = 5

        response = client.post('/api/tracking/start')

        assert response.status_code == 200
        assert response.get_json() == {
            'message': 'Data collection started',
            'started': True,
            'interval_minutes': 5,
        }
        mock_collector.start.assert_called_once_with(5)

    def test_start_when_running(self, client, mock_collector):
        mock_collector.start.return_value = False
        mock_collector.interval_minutes = 10

        data = client.post('/api/tracking/start', json={'interval_minutes': 15}).get_json()

        assert data['message'] == 'Data collection already running'
        assert data['interval_minutes'] == 10

    def test_start_invalid_interval(self, client, mock_collector):
        mock_collector.start.side_effect = ValueError("Interval must be between 1 and 60 minutes")

        response = client.post('/api/tracking/start', json={'interval_minutes': 120})

        assert response.status_code == 400
        assert response.get_json()['message'] == "Interval must be between 1 and 60 minutes"

    @pytest.mark.parametrize("stopped,message", [
        (True, "Data collection stopped"),
        (False, "Data collection was not running"),
    ])
    def test_stop(self, client, mock_collector, stopped, message):
        mock_collector.stop.return_value = stopped

        data = client.post('/api/tracking/stop').get_json()

        assert data == {'message': message, 'stopped': stopped}

    def test_collect_now(self, client, mock_collector):
        mock_collector.collect_now.return_value = CollectionResult(
            outcome=RunOutcome.SKIPPED,
            started_at=datetime(2025, 10, 21, 18, 0),
            skip_reason="Recent data exists"
        )

        response = client.post('/api/tracking/collect-now')

        data = response.get_json()
        assert response.status_code == 200
        assert data['message'] == "Collection skipped"
        assert data['result']['skip_reason'] == "Recent data exists"


class TestTrackingQueries:

    def test_ride_history(self, client, snapshot_factory):
        now = utc_now().replace(microsecond=0)
        snapshot_factory(ride_id=101, wait_time=40, recorded_at=now - timedelta(hours=1))
        snapshot_factory(ride_id=101, wait_time=50, recorded_at=now - timedelta(minutes=30))
        snapshot_factory(ride_id=101, wait_time=10, recorded_at=now - timedelta(hours=30))

        data = client.get('/api/tracking/history/101').get_json()

        assert data['ride_id'] == 101
        assert [s['wait_time'] for s in data['snapshots']] == [50, 40]

    def test_ride_history_limit(self, client, snapshot_factory):
        now = utc_now().replace(microsecond=0)
        for minutes in (10, 20, 30):
            snapshot_factory(ride_id=101, recorded_at=now - timedelta(minutes=minutes))

        data = client.get('/api/tracking/history/101?limit=2').get_json()

        assert len(data['snapshots']) == 2

    @pytest.mark.parametrize("query", ['hours=abc', 'hours=0', 'limit=-1', 'limit=2.5'])
    def test_ride_history_bad_query(self, client, engine, query):
        response = client.get(f'/api/tracking/history/101?{query}')

        assert response.status_code == 400
        assert response.get_json()['error'] == "Bad Request"

    def test_park_history(self, client, snapshot_factory):
        now = utc_now().replace(microsecond=0)
        snapshot_factory(ride_id=101, park_id=6, recorded_at=now - timedelta(minutes=20))
        snapshot_factory(ride_id=201, park_id=5, recorded_at=now - timedelta(minutes=20))

        data = client.get('/api/tracking/history/park/6').get_json()

        assert data['park_id'] == 6
        assert [s['ride_id'] for s in data['snapshots']] == [101]

    def test_rides(self, client, session):
        _seed_ride(session, ride_id=101, park_id=6)
        _seed_ride(session, ride_id=201, name='Test Track', park_id=5)

        data = client.get('/api/tracking/rides?park_id=5').get_json()

        assert [r['ride_id'] for r in data['rides']] == [201]

    def test_records(self, client, session):
        _seed_ride(session, ride_id=101, peak=45)
        _seed_ride(session, ride_id=102, name='Speedway', peak=70)
        _seed_ride(session, ride_id=103, name='PeopleMover')

        data = client.get('/api/tracking/records/6').get_json()

        assert [r['ride_id'] for r in data['rides']] == [102, 101]
        assert data['rides'][0]['peak_wait_time'] == 70
        assert data['rides'][0]['peak_wait_time_at'] == '2025-10-21T18:00:00'

    def test_backfill_and_refresh(self, client, session, snapshot_factory):
        _seed_ride(session)
        snapshot_factory(wait_time=55)

        backfill = client.post('/api/tracking/backfill-peaks').get_json()
        refresh = client.post('/api/tracking/refresh-stats').get_json()

        assert backfill['message'] == "Peak backfill complete"
        assert backfill['updated'] == 1
        assert refresh['rides_updated'] == 1
        assert MetadataRepository(session).get_by_ride_id(101).peak_wait_time == 55


class TestDeleteData:

    def test_requires_confirmation(self, client, snapshot_factory, session):
        snapshot_factory()

        response = client.delete('/api/tracking/data', json={'confirm': 'yes'})

        assert response.status_code == 400
        assert 'DELETE_ALL_DATA' in response.get_json()['message']

    def test_deletes_everything(self, client, session, snapshot_factory):
        _seed_ride(session)
        snapshot_factory(ride_id=101)
        snapshot_factory(ride_id=102)

        response = client.delete('/api/tracking/data', json={'confirm': 'DELETE_ALL_DATA'})

        assert response.status_code == 200
        assert response.get_json() == {
            'message': 'All tracking data deleted',
            'deleted_snapshots': 2,
            'deleted_metadata': 1,
        }


class TestClassifications:

    def test_list(self, client, session):
        _seed_ride(session)

        data = client.get('/api/classifications').get_json()

        assert data['rides'] == [{
            'ride_id': 101,
            'ride_name': 'Space Mountain',
            'park_id': 6,
            'land_id': 1,
            'land_name': 'Tomorrowland',
            'classification': 'unclassified',
            'is_active': True,
        }]

    def test_update(self, client, session):
        _seed_ride(session)

        response = client.put('/api/classifications/101', json={'classification': 'headliner'})

        assert response.status_code == 200
        assert response.get_json()['ride']['classification'] == 'headliner'
        assert MetadataRepository(session).get_by_ride_id(101).classification == 'headliner'

    def test_update_invalid(self, client, session):
        _seed_ride(session)

        response = client.put('/api/classifications/101', json={'classification': 'epic'})

        assert response.status_code == 400
        assert 'headliner' in response.get_json()['message']

    def test_update_unknown_ride(self, client, engine):
        response = client.put('/api/classifications/999', json={'classification': 'minor'})

        assert response.status_code == 404
        assert response.get_json() == {'error': 'Not Found', 'message': 'Ride not found'}

    def test_bulk(self, client, session):
        _seed_ride(session, ride_id=101)
        _seed_ride(session, ride_id=102, name='Speedway')

        response = client.put('/api/classifications/bulk', json={'classifications': [
            {'ride_id': 101, 'classification': 'headliner'},
            {'ride_id': 102, 'classification': 'nope'},
            {'ride_id': 999, 'classification': 'minor'},
        ]})

        assert response.status_code == 200
        assert response.get_json() == {'updated': 1, 'skipped': 2}

    def test_bulk_requires_array(self, client, engine):
        response = client.put('/api/classifications/bulk', json={'classifications': {'ride_id': 1}})

        assert response.status_code == 400
        assert response.get_json()['message'] == "classifications must be an array"

    def test_stats(self, client, session):
        _seed_ride(session, ride_id=101)
        _seed_ride(session, ride_id=102, name='Speedway')
        client.put('/api/classifications/101', json={'classification': 'popular'})

        stats = client.get('/api/classifications/stats').get_json()['stats']

        assert stats['popular'] == 1
        assert stats['unclassified'] == 1
        assert stats['total'] == 2

    def test_sync(self, client, engine):
        with patch('api.routes.classifications.MetadataCollector') as mock_cls:
            mock_cls.return_value.sync_all.return_value = {
                'created': 3, 'updated': 1, 'deactivated': 0, 'parks_processed': 4, 'errors': []
            }
            response = client.post('/api/classifications/sync')

        data = response.get_json()
        assert response.status_code == 200
        assert data['message'] == "Ride metadata synced"
        assert data['created'] == 3

    def test_sync_persists_rides(self, client, session, mock_queue_times_client):
        """Given every park returns the same feed, rides are created once and kept active."""
        with patch('collector.metadata_collector.get_queue_times_client',
                   return_value=mock_queue_times_client):
            response = client.post('/api/classifications/sync')

        data = response.get_json()
        assert response.status_code == 200
        assert data['created'] == 4
        assert data['errors'] == []
        assert data['parks_processed'] == len(get_tracked_parks())
        assert MetadataRepository(session).count_all() == 4
        assert MetadataRepository(session).get_by_ride_id(101).classification == 'unclassified'


class TestSportsCache:

    def _result(self):
        return CacheResult(
            data={'games': []}, cached=True, last_updated=datetime(2025, 1, 15, 20, 0),
            game_state=EventState.NOT_STARTED, ttl_minutes=30
        )

    def test_invalid_sport(self, client, engine):
        response = client.get('/api/games/nba')

        assert response.status_code == 400
        assert "Invalid sport" in response.get_json()['message']

    def test_invalid_date(self, client, engine):
        response = client.get('/api/standings/nhl?date=2025-13-01')

        assert response.status_code == 400

    def test_games(self, client, engine):
        with patch('api.routes.sports_cache.SportsCacheService') as mock_cls:
            mock_cls.return_value.get_games.return_value = self._result()
            response = client.get('/api/games/NHL?date=2025-01-15')

        assert response.status_code == 200
        assert response.get_json()['game_state'] == 'not_started'
        mock_cls.return_value.get_games.assert_called_once_with('nhl', '2025-01-15')

    @pytest.mark.parametrize("path,action", [
        ('/api/games/nfl/refresh', 'refresh_games'),
        ('/api/standings/mlb/refresh', 'refresh_standings'),
    ])
    def test_refresh_routes(self, client, engine, path, action):
        with patch('api.routes.sports_cache.SportsCacheService') as mock_cls:
            getattr(mock_cls.return_value, action).return_value = self._result()
            response = client.post(path)

        assert response.status_code == 200
        getattr(mock_cls.return_value, action).assert_called_once()

    def test_upstream_failure_is_502(self, client, engine):
        with patch('api.routes.sports_cache.SportsCacheService') as mock_cls:
            mock_cls.return_value.get_standings.side_effect = requests.ConnectionError("espn down")
            response = client.get('/api/standings/nfl')

        assert response.status_code == 502
        assert response.get_json()['error'] == "Bad Gateway"

"""
Wait Time Tracker - Metadata Aggregator Unit Tests

Peak backfill and stats refresh against seeded snapshot history.
"""

import pytest
from datetime import datetime, timedelta

from database.repositories.metadata_repository import MetadataRepository
from processor.metadata_aggregator import MetadataAggregator, compute_ride_stats

TUESDAY_2PM_UTC = datetime(2025, 10, 21, 18, 0, 0)


@pytest.fixture
def metadata_repo(session):
    return MetadataRepository(session)


@pytest.fixture
def aggregator(session):
    return MetadataAggregator(session)


def _seed_metadata(metadata_repo, ride_id=101, park_id=6):
    metadata_repo.upsert_observation(
        ride_id=ride_id, ride_name=f"Ride {ride_id}", park_id=park_id,
        land_id=1, land_name='Tomorrowland', seen_at=TUESDAY_2PM_UTC
    )
    metadata_repo.session.commit()


class TestBackfillPeaks:

    def test_peak_taken_from_earliest_of_tied_readings(self, aggregator, metadata_repo,
                                                        session, snapshot_factory):
        _seed_metadata(metadata_repo)
        snapshot_factory(wait_time=90, is_open=False, recorded_at=TUESDAY_2PM_UTC - timedelta(hours=3))
        snapshot_factory(wait_time=60, hour=12, recorded_at=TUESDAY_2PM_UTC - timedelta(hours=2))
        snapshot_factory(wait_time=60, hour=14, recorded_at=TUESDAY_2PM_UTC)
        snapshot_factory(wait_time=25, recorded_at=TUESDAY_2PM_UTC - timedelta(hours=1))

        stats = aggregator.backfill_peaks()
        session.commit()

        ride = metadata_repo.get_by_ride_id(101)
        assert stats == {'rides_with_peaks': 1, 'updated': 1, 'skipped': 0}
        assert ride.peak_wait_time == 60
        assert ride.peak_wait_time_at == TUESDAY_2PM_UTC - timedelta(hours=2)
        assert ride.peak_wait_time_context['hour'] == 12
        assert ride.peak_wait_time_context['day_of_week'] == 2

    def test_backfill_is_idempotent(self, aggregator, metadata_repo, session, snapshot_factory):
        _seed_metadata(metadata_repo)
        snapshot_factory(wait_time=45)

        aggregator.backfill_peaks()
        session.commit()
        first = metadata_repo.get_by_ride_id(101)
        first_peak = (first.peak_wait_time, first.peak_wait_time_at, first.peak_wait_time_context)

        aggregator.backfill_peaks()
        session.commit()
        second = metadata_repo.get_by_ride_id(101)

        assert (second.peak_wait_time, second.peak_wait_time_at, second.peak_wait_time_context) == first_peak

    def test_backfill_can_lower_an_inflated_peak(self, aggregator, metadata_repo, session, snapshot_factory):
        _seed_metadata(metadata_repo)
        metadata_repo.update_peak_if_higher(101, 200, TUESDAY_2PM_UTC, {'hour': 14})
        session.commit()
        snapshot_factory(wait_time=45)

        aggregator.backfill_peaks()
        session.commit()

        assert metadata_repo.get_by_ride_id(101).peak_wait_time == 45

    def test_ride_without_metadata_is_skipped(self, aggregator, metadata_repo, session, snapshot_factory):
        _seed_metadata(metadata_repo, ride_id=101)
        snapshot_factory(ride_id=101, wait_time=30)
        snapshot_factory(ride_id=555, wait_time=80)

        stats = aggregator.backfill_peaks()

        assert stats == {'rides_with_peaks': 2, 'updated': 1, 'skipped': 1}
        assert metadata_repo.get_by_ride_id(555) is None

    def test_backfill_leaves_counters_alone(self, aggregator, metadata_repo, session, snapshot_factory):
        _seed_metadata(metadata_repo)
        snapshot_factory(wait_time=30)

        aggregator.backfill_peaks()
        session.commit()

        ride = metadata_repo.get_by_ride_id(101)
        assert ride.total_snapshots == 1
        assert ride.avg_wait_overall is None


class TestRefreshStats:

    def test_hour_and_day_averages(self, aggregator, metadata_repo, session, snapshot_factory):
        _seed_metadata(metadata_repo)
        metadata_repo.set_classification(101, 'headliner')
        metadata_repo.update_peak_if_higher(101, 75, TUESDAY_2PM_UTC, {'hour': 14})
        session.commit()

        snapshot_factory(wait_time=20, hour=10, recorded_at=TUESDAY_2PM_UTC - timedelta(hours=4))
        snapshot_factory(wait_time=40, hour=10, recorded_at=TUESDAY_2PM_UTC - timedelta(hours=3, minutes=55))
        snapshot_factory(wait_time=50, hour=14, recorded_at=TUESDAY_2PM_UTC)
        snapshot_factory(wait_time=0, hour=16, is_open=False, recorded_at=TUESDAY_2PM_UTC + timedelta(hours=2))

        result = aggregator.refresh_stats()
        session.commit()

        ride = metadata_repo.get_by_ride_id(101)
        assert result == {'rides_processed': 1, 'rides_updated': 1}
        assert len(ride.avg_wait_by_hour) == 24
        assert ride.avg_wait_by_hour[10] == 30.0
        assert ride.avg_wait_by_hour[14] == 50.0
        assert ride.avg_wait_by_hour[16] == 0
        assert len(ride.avg_wait_by_day) == 7
        assert ride.avg_wait_by_day[2] == 36.7
        assert ride.avg_wait_overall == 36.7
        assert ride.peak_hour == 14
        assert ride.low_hour == 10
        assert ride.stats_calculated_at is not None
        assert ride.peak_wait_time == 75
        assert ride.classification == 'headliner'

    def test_ride_without_history(self, aggregator, metadata_repo, session):
        _seed_metadata(metadata_repo)

        aggregator.refresh_stats()
        session.commit()

        ride = metadata_repo.get_by_ride_id(101)
        assert ride.avg_wait_overall is None
        assert ride.avg_wait_by_hour == [0] * 24
        assert ride.peak_hour is None
        assert ride.low_hour is None

    def test_explicit_ride_ids(self, aggregator, metadata_repo, snapshot_factory):
        _seed_metadata(metadata_repo, ride_id=101)
        _seed_metadata(metadata_repo, ride_id=102)

        result = aggregator.refresh_stats([102, 999])

        assert result == {'rides_processed': 2, 'rides_updated': 1}


class TestComputeRideStats:

    def test_ties_go_to_earliest_hour(self):
        stats = compute_ride_stats(
            {'overall': 30.0, 'by_hour': {9: 30.0, 13: 30.0, 18: 30.0}, 'by_day': {}},
            TUESDAY_2PM_UTC
        )

        assert stats['peak_hour'] == 9
        assert stats['low_hour'] == 9

    def test_rounding(self):
        stats = compute_ride_stats(
            {'overall': 12.345, 'by_hour': {8: 12.345}, 'by_day': {0: 12.345}},
            TUESDAY_2PM_UTC
        )

        assert stats['avg_wait_overall'] == 12.3
        assert stats['avg_wait_by_hour'][8] == 12.3
        assert stats['avg_wait_by_day'][0] == 12.3
        assert stats['stats_calculated_at'] == TUESDAY_2PM_UTC

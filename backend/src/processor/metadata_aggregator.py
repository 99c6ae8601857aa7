"""
Wait Time Tracker - Metadata Aggregator
Batch maintenance of ride_metadata from the snapshot history.

- backfill_peaks: recompute each ride's all-time peak from snapshots
  (max open, positive wait; earliest occurrence wins). Idempotent and
  touches only the peak fields.
- refresh_stats: recompute overall/hourly/daily averages and peak/low hour.
  Touches only the stats fields.

Per-observation updates (counter increment, monotonic peak) happen inline in
the collector through MetadataRepository.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from database.repositories.metadata_repository import MetadataRepository
from database.repositories.snapshot_repository import SnapshotRepository
from models.context import peak_context_from_snapshot
from utils.logger import logger
from utils.timezone import utc_now

HOURS_PER_DAY = 24
DAYS_PER_WEEK = 7


def _round1(value: float) -> float:
    return round(value, 1)


def _extreme_hour(by_hour: Dict[int, float], highest: bool) -> Optional[int]:
    """Hour with the highest/lowest average among hours that have data; ties go to the earliest hour."""
    if not by_hour:
        return None
    best_hour = None
    best_value = None
    for hour in sorted(by_hour):
        value = by_hour[hour]
        if best_value is None or (value > best_value if highest else value < best_value):
            best_hour = hour
            best_value = value
    return best_hour


def compute_ride_stats(averages: Dict[str, Any], calculated_at: datetime) -> Dict[str, Any]:
    """
    Turn raw averages into the stored stats document.

    Args:
        averages: Output of SnapshotRepository.get_wait_averages
        calculated_at: Naive UTC timestamp to record

    Returns:
        Values for MetadataRepository.update_stats
    """
    by_hour: Dict[int, float] = averages.get('by_hour') or {}
    by_day: Dict[int, float] = averages.get('by_day') or {}
    overall = averages.get('overall')

    hour_slots: List[float] = [
        _round1(by_hour[h]) if h in by_hour else 0 for h in range(HOURS_PER_DAY)
    ]
    day_slots: List[float] = [
        _round1(by_day[d]) if d in by_day else 0 for d in range(DAYS_PER_WEEK)
    ]

    return {
        'avg_wait_overall': _round1(overall) if overall is not None else None,
        'avg_wait_by_hour': hour_slots,
        'avg_wait_by_day': day_slots,
        'peak_hour': _extreme_hour(by_hour, highest=True),
        'low_hour': _extreme_hour(by_hour, highest=False),
        'stats_calculated_at': calculated_at,
    }


class MetadataAggregator:
    """
    Recomputes derived ride metadata from snapshot history.

    The caller owns the session and commits.
    """

    def __init__(self, session: Session):
        self.session = session
        self.snapshot_repo = SnapshotRepository(session)
        self.metadata_repo = MetadataRepository(session)

    def backfill_peaks(self) -> Dict[str, int]:
        """
        Set every ride's peak from its snapshot history.

        Rides with snapshots but no metadata row are skipped.

        Returns:
            {'rides_with_peaks': n, 'updated': n, 'skipped': n}
        """
        ride_ids = self.snapshot_repo.get_ride_ids_with_open_readings()
        updated = 0
        skipped = 0

        for ride_id in sorted(ride_ids):
            peak = self.snapshot_repo.get_peak_snapshot(ride_id)
            if peak is None:
                continue
            if self.metadata_repo.set_peak(
                ride_id, peak.wait_time, peak.recorded_at, peak_context_from_snapshot(peak)
            ):
                updated += 1
            else:
                skipped += 1

        logger.info("Peak backfill complete", extra={
            'event_type': 'peak_backfill',
            'rides_with_peaks': len(ride_ids),
            'updated': updated,
            'skipped': skipped
        })
        return {'rides_with_peaks': len(ride_ids), 'updated': updated, 'skipped': skipped}

    def refresh_stats(self, ride_ids: Optional[List[int]] = None) -> Dict[str, int]:
        """
        Recompute averages and peak/low hour for rides.

        Args:
            ride_ids: Rides to refresh (defaults to every metadata row)

        Returns:
            {'rides_processed': n, 'rides_updated': n}
        """
        targets = ride_ids if ride_ids is not None else self.metadata_repo.list_ride_ids()
        calculated_at = utc_now()
        updated = 0

        for ride_id in targets:
            averages = self.snapshot_repo.get_wait_averages(ride_id)
            stats = compute_ride_stats(averages, calculated_at)
            if self.metadata_repo.update_stats(ride_id, stats):
                updated += 1

        logger.info("Ride stats refresh complete", extra={
            'event_type': 'stats_refresh',
            'rides_processed': len(targets),
            'rides_updated': updated
        })
        return {'rides_processed': len(targets), 'rides_updated': updated}

"""
Wait Time Tracker - Snapshot Repository
Provides data access layer for the append-only wait_time_snapshots table.
"""

from typing import List, Optional, Dict, Any, Tuple
from datetime import datetime
from sqlalchemy import select, func, delete, and_
from sqlalchemy.orm import Session

from models.orm_snapshots import WaitTimeSnapshot
from utils.logger import log_database_error


class SnapshotRepository:
    """
    Repository for wait time snapshot operations.

    Implements:
    - Append-only inserts (uniqueness on ride_id + recorded_at)
    - Recency check used as the cross-process collection guard
    - Ride and park history queries
    - Aggregates used by status reporting, peak backfill and stats refresh
    """

    def __init__(self, session: Session):
        """
        Initialize repository with SQLAlchemy session.

        Args:
            session: SQLAlchemy session object
        """
        self.session = session

    def insert(self, snapshot_data: Dict[str, Any]) -> WaitTimeSnapshot:
        """
        Insert a new snapshot and flush it.

        Duplicate (ride_id, recorded_at) pairs raise IntegrityError; callers
        decide whether that is expected (see is_duplicate_key_error).

        Args:
            snapshot_data: Column values for WaitTimeSnapshot

        Returns:
            The flushed WaitTimeSnapshot
        """
        snapshot = WaitTimeSnapshot(**snapshot_data)
        self.session.add(snapshot)
        self.session.flush()
        return snapshot

    def has_recent(self, since: datetime) -> bool:
        """
        Check whether any snapshot was recorded at or after `since`.

        Args:
            since: Naive UTC cutoff

        Returns:
            True if at least one snapshot exists in the window
        """
        try:
            stmt = (
                select(WaitTimeSnapshot.snapshot_id)
                .where(WaitTimeSnapshot.recorded_at >= since)
                .limit(1)
            )
            return self.session.execute(stmt).first() is not None
        except Exception as e:
            log_database_error(e, "Failed to check for recent snapshots")
            raise

    def count_all(self) -> int:
        return self.session.scalar(select(func.count(WaitTimeSnapshot.snapshot_id))) or 0

    def count_since(self, since: datetime) -> int:
        stmt = (
            select(func.count(WaitTimeSnapshot.snapshot_id))
            .where(WaitTimeSnapshot.recorded_at >= since)
        )
        return self.session.scalar(stmt) or 0

    def get_date_range(self) -> Tuple[Optional[datetime], Optional[datetime]]:
        """
        Get the oldest and newest recorded_at.

        Returns:
            (oldest, newest), both None when the table is empty
        """
        stmt = select(
            func.min(WaitTimeSnapshot.recorded_at),
            func.max(WaitTimeSnapshot.recorded_at)
        )
        oldest, newest = self.session.execute(stmt).one()
        return oldest, newest

    def get_ride_history(self, ride_id: int, since: datetime, limit: int = 100) -> List[WaitTimeSnapshot]:
        """
        Get a ride's snapshots since a cutoff, newest first.

        Args:
            ride_id: Queue-Times ride ID
            since: Naive UTC cutoff
            limit: Maximum rows to return

        Returns:
            List of WaitTimeSnapshot (empty if none)
        """
        stmt = (
            select(WaitTimeSnapshot)
            .where(and_(
                WaitTimeSnapshot.ride_id == ride_id,
                WaitTimeSnapshot.recorded_at >= since
            ))
            .order_by(WaitTimeSnapshot.recorded_at.desc())
            .limit(limit)
        )
        return list(self.session.scalars(stmt).all())

    def get_park_history(self, park_id: int, since: datetime) -> List[WaitTimeSnapshot]:
        """Get every snapshot for a park since a cutoff, newest first."""
        stmt = (
            select(WaitTimeSnapshot)
            .where(and_(
                WaitTimeSnapshot.park_id == park_id,
                WaitTimeSnapshot.recorded_at >= since
            ))
            .order_by(WaitTimeSnapshot.recorded_at.desc(), WaitTimeSnapshot.ride_id)
        )
        return list(self.session.scalars(stmt).all())

    def get_peak_snapshot(self, ride_id: int) -> Optional[WaitTimeSnapshot]:
        """
        Find the snapshot holding a ride's all-time peak.

        Only open readings with a positive wait count. Ties resolve to the
        earliest recorded_at so repeated backfills pick the same row.

        Args:
            ride_id: Queue-Times ride ID

        Returns:
            The peak WaitTimeSnapshot, or None if the ride never had a qualifying reading
        """
        stmt = (
            select(WaitTimeSnapshot)
            .where(and_(
                WaitTimeSnapshot.ride_id == ride_id,
                WaitTimeSnapshot.is_open.is_(True),
                WaitTimeSnapshot.wait_time > 0
            ))
            .order_by(WaitTimeSnapshot.wait_time.desc(), WaitTimeSnapshot.recorded_at.asc())
            .limit(1)
        )
        return self.session.scalars(stmt).first()

    def get_ride_ids_with_open_readings(self) -> List[int]:
        stmt = (
            select(WaitTimeSnapshot.ride_id)
            .where(and_(
                WaitTimeSnapshot.is_open.is_(True),
                WaitTimeSnapshot.wait_time > 0
            ))
            .distinct()
        )
        return list(self.session.scalars(stmt).all())

    def get_wait_averages(self, ride_id: int) -> Dict[str, Any]:
        """
        Average wait of open, positive readings for one ride.

        Returns:
            Dictionary with:
                overall: float or None
                by_hour: {hour: avg}
                by_day: {day_of_week: avg}
        """
        base_filter = and_(
            WaitTimeSnapshot.ride_id == ride_id,
            WaitTimeSnapshot.is_open.is_(True),
            WaitTimeSnapshot.wait_time > 0
        )

        try:
            overall = self.session.scalar(
                select(func.avg(WaitTimeSnapshot.wait_time)).where(base_filter)
            )

            hour_rows = self.session.execute(
                select(WaitTimeSnapshot.hour, func.avg(WaitTimeSnapshot.wait_time))
                .where(base_filter)
                .group_by(WaitTimeSnapshot.hour)
            ).all()

            day_rows = self.session.execute(
                select(WaitTimeSnapshot.day_of_week, func.avg(WaitTimeSnapshot.wait_time))
                .where(base_filter)
                .group_by(WaitTimeSnapshot.day_of_week)
            ).all()
        except Exception as e:
            log_database_error(e, f"Failed to compute wait averages for ride {ride_id}")
            raise

        return {
            'overall': float(overall) if overall is not None else None,
            'by_hour': {int(hour): float(avg) for hour, avg in hour_rows},
            'by_day': {int(day): float(avg) for day, avg in day_rows},
        }

    def delete_all(self) -> int:
        """
        Delete every snapshot (operator purge).

        Returns:
            Number of rows deleted
        """
        try:
            result = self.session.execute(delete(WaitTimeSnapshot))
            return result.rowcount or 0
        except Exception as e:
            log_database_error(e, "Failed to delete snapshots")
            raise

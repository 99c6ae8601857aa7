"""
Wait Time Tracker - Ride Metadata Repository
Provides data access layer for the ride_metadata rollup table.

Counter and peak mutations are single atomic statements (native upsert and
conditional UPDATE) so concurrent collectors converge without row locks.
"""

from typing import List, Optional, Dict, Any, Iterable, Tuple
from datetime import datetime
from sqlalchemy import select, update, delete, func, or_, and_
from sqlalchemy.orm import Session

from models.orm_metadata import RideMetadata, Classification
from utils.logger import logger, log_database_error
from utils.sql_helpers import dialect_insert, dialect_name
from utils.timezone import utc_now


class MetadataRepository:
    """
    Repository for ride metadata operations.

    Implements:
    - Atomic upsert-with-increment on every observation
    - Monotonic all-time peak updates
    - Stats, classification and lifecycle updates
    """

    def __init__(self, session: Session):
        """
        Initialize repository with SQLAlchemy session.

        Args:
            session: SQLAlchemy session object
        """
        self.session = session

    # ------------------------------------------------------------------
    # Collection path
    # ------------------------------------------------------------------

    def upsert_observation(self, ride_id: int, ride_name: str, park_id: int,
                           land_id: Optional[int], land_name: Optional[str],
                           seen_at: datetime) -> None:
        """
        Record one observation of a ride in a single statement.

        Insert path sets first_seen and total_snapshots=1. Update path
        refreshes identity fields, last_seen and is_active, and increments
        total_snapshots at the storage layer.

        Args:
            ride_id: Queue-Times ride ID
            ride_name: Current ride name
            park_id: Park the ride belongs to
            land_id: Land ID (optional)
            land_name: Land name (optional)
            seen_at: Naive UTC observation time
        """
        now = utc_now()
        stmt = dialect_insert(self.session, RideMetadata).values(
            ride_id=ride_id,
            ride_name=ride_name,
            park_id=park_id,
            land_id=land_id,
            land_name=land_name,
            classification=Classification.UNCLASSIFIED.value,
            total_snapshots=1,
            first_seen=seen_at,
            last_seen=seen_at,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        changes = {
            'ride_name': ride_name,
            'park_id': park_id,
            'land_id': land_id,
            'land_name': land_name,
            'last_seen': seen_at,
            'is_active': True,
            'total_snapshots': RideMetadata.total_snapshots + 1,
            'updated_at': now,
        }
        stmt = self._on_conflict_update(stmt, changes)

        try:
            self.session.execute(stmt)
        except Exception as e:
            log_database_error(e, f"Failed to upsert metadata for ride {ride_id}")
            raise

    def update_peak_if_higher(self, ride_id: int, wait_time: int, recorded_at: datetime,
                              context: Dict[str, Any]) -> bool:
        """
        Raise a ride's all-time peak if this reading strictly exceeds it.

        One conditional UPDATE; a lower or equal reading matches no row.

        Args:
            ride_id: Queue-Times ride ID
            wait_time: Observed wait in minutes
            recorded_at: Naive UTC timestamp of the reading
            context: Peak context document

        Returns:
            True if the peak was replaced
        """
        stmt = (
            update(RideMetadata)
            .where(and_(
                RideMetadata.ride_id == ride_id,
                or_(
                    RideMetadata.peak_wait_time.is_(None),
                    RideMetadata.peak_wait_time < wait_time
                )
            ))
            .values(
                peak_wait_time=wait_time,
                peak_wait_time_at=recorded_at,
                peak_wait_time_context=context,
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.session.execute(stmt)
        except Exception as e:
            log_database_error(e, f"Failed to update peak for ride {ride_id}")
            raise
        return (result.rowcount or 0) > 0

    def mark_missing_inactive(self, park_id: int, seen_ride_ids: Iterable[int]) -> int:
        """
        Flag rides of a park inactive when absent from its latest payload.

        Args:
            park_id: Park whose payload was fetched
            seen_ride_ids: Ride IDs present in that payload

        Returns:
            Number of rides flagged inactive
        """
        seen = list(seen_ride_ids)
        conditions = [RideMetadata.park_id == park_id, RideMetadata.is_active.is_(True)]
        if seen:
            conditions.append(RideMetadata.ride_id.not_in(seen))

        stmt = (
            update(RideMetadata)
            .where(and_(*conditions))
            .values(is_active=False, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        count = result.rowcount or 0
        if count:
            logger.info("Rides marked inactive", extra={
                "park_id": park_id,
                "count": count
            })
        return count

    # ------------------------------------------------------------------
    # Aggregation path
    # ------------------------------------------------------------------

    def set_peak(self, ride_id: int, wait_time: int, recorded_at: datetime,
                 context: Dict[str, Any]) -> bool:
        """
        Overwrite a ride's peak fields (backfill only).

        Touches only the three peak columns of an existing row.

        Returns:
            True if a metadata row was updated
        """
        stmt = (
            update(RideMetadata)
            .where(RideMetadata.ride_id == ride_id)
            .values(
                peak_wait_time=wait_time,
                peak_wait_time_at=recorded_at,
                peak_wait_time_context=context,
            )
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        return (result.rowcount or 0) > 0

    def update_stats(self, ride_id: int, stats: Dict[str, Any]) -> bool:
        """
        Write derived statistics for a ride.

        Args:
            ride_id: Queue-Times ride ID
            stats: avg_wait_overall, avg_wait_by_hour, avg_wait_by_day,
                peak_hour, low_hour, stats_calculated_at

        Returns:
            True if a metadata row was updated
        """
        allowed = {
            'avg_wait_overall', 'avg_wait_by_hour', 'avg_wait_by_day',
            'peak_hour', 'low_hour', 'stats_calculated_at'
        }
        values = {k: v for k, v in stats.items() if k in allowed}
        stmt = (
            update(RideMetadata)
            .where(RideMetadata.ride_id == ride_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        return (result.rowcount or 0) > 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_ride_id(self, ride_id: int) -> Optional[RideMetadata]:
        stmt = (
            select(RideMetadata)
            .where(RideMetadata.ride_id == ride_id)
            .execution_options(populate_existing=True)
        )
        return self.session.scalars(stmt).first()

    def list_rides(self, park_id: Optional[int] = None, active_only: bool = False) -> List[RideMetadata]:
        """
        List ride metadata ordered by park then name.

        Args:
            park_id: Optional park filter
            active_only: Only rides currently reported upstream

        Returns:
            List of RideMetadata (empty if none)
        """
        stmt = select(RideMetadata).execution_options(populate_existing=True)
        if park_id is not None:
            stmt = stmt.where(RideMetadata.park_id == park_id)
        if active_only:
            stmt = stmt.where(RideMetadata.is_active.is_(True))
        stmt = stmt.order_by(RideMetadata.park_id, RideMetadata.land_name, RideMetadata.ride_name)
        return list(self.session.scalars(stmt).all())

    def list_ride_ids(self) -> List[int]:
        return list(self.session.scalars(select(RideMetadata.ride_id).order_by(RideMetadata.ride_id)).all())

    def get_records(self, park_id: int) -> List[RideMetadata]:
        """All-time peak records for a park, highest first."""
        stmt = (
            select(RideMetadata)
            .where(and_(
                RideMetadata.park_id == park_id,
                RideMetadata.peak_wait_time.is_not(None)
            ))
            .order_by(RideMetadata.peak_wait_time.desc(), RideMetadata.peak_wait_time_at.asc())
            .execution_options(populate_existing=True)
        )
        return list(self.session.scalars(stmt).all())

    def count_all(self) -> int:
        return self.session.scalar(select(func.count(RideMetadata.metadata_id))) or 0

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def set_classification(self, ride_id: int, classification: str) -> Optional[RideMetadata]:
        """
        Set a ride's classification.

        Args:
            ride_id: Queue-Times ride ID
            classification: One of Classification values

        Returns:
            Updated RideMetadata, or None if the ride is unknown

        Raises:
            ValueError: If classification is not a valid value
        """
        if not Classification.is_valid(classification):
            raise ValueError(
                f"Invalid classification '{classification}'. "
                f"Must be one of: {', '.join(Classification.values())}"
            )

        ride = self.get_by_ride_id(ride_id)
        if ride is None:
            return None

        ride.classification = classification
        ride.classification_updated_at = utc_now()
        self.session.flush()
        return ride

    def bulk_set_classification(self, updates: List[Dict[str, Any]]) -> Tuple[int, int]:
        """
        Apply many classification updates, skipping invalid entries.

        Args:
            updates: List of {"ride_id": int, "classification": str}

        Returns:
            (updated_count, skipped_count)
        """
        updated = 0
        skipped = 0
        for item in updates:
            ride_id = item.get('ride_id') if isinstance(item, dict) else None
            classification = item.get('classification') if isinstance(item, dict) else None
            if ride_id is None or not Classification.is_valid(classification):
                skipped += 1
                continue
            if self.set_classification(ride_id, classification) is None:
                skipped += 1
            else:
                updated += 1
        return updated, skipped

    def classification_stats(self) -> Dict[str, int]:
        """
        Count active rides per classification.

        Returns:
            {classification: count, ..., "total": n} with every class present
        """
        rows = self.session.execute(
            select(RideMetadata.classification, func.count(RideMetadata.metadata_id))
            .where(RideMetadata.is_active.is_(True))
            .group_by(RideMetadata.classification)
        ).all()

        stats = {value: 0 for value in Classification.values()}
        for classification, count in rows:
            stats[classification] = count
        stats['total'] = sum(stats.values())
        return stats

    # ------------------------------------------------------------------
    # Sync / purge
    # ------------------------------------------------------------------

    def sync_ride(self, ride_id: int, ride_name: str, park_id: int,
                  land_id: Optional[int], land_name: Optional[str]) -> str:
        """
        Create or refresh a ride's identity fields without counting an observation.

        New rows start unclassified with total_snapshots=0.

        Returns:
            'created' or 'updated'
        """
        ride = self.get_by_ride_id(ride_id)
        if ride is None:
            self.session.add(RideMetadata(
                ride_id=ride_id,
                ride_name=ride_name,
                park_id=park_id,
                land_id=land_id,
                land_name=land_name,
                classification=Classification.UNCLASSIFIED.value,
                total_snapshots=0,
                is_active=True,
            ))
            self.session.flush()
            return 'created'

        ride.ride_name = ride_name
        ride.park_id = park_id
        ride.land_id = land_id
        ride.land_name = land_name
        ride.is_active = True
        self.session.flush()
        return 'updated'

    def delete_all(self) -> int:
        """Delete every metadata row (operator purge)."""
        try:
            result = self.session.execute(delete(RideMetadata))
            return result.rowcount or 0
        except Exception as e:
            log_database_error(e, "Failed to delete ride metadata")
            raise

    def _on_conflict_update(self, stmt, changes: Dict[str, Any]):
        if dialect_name(self.session) == 'mysql':
            return stmt.on_duplicate_key_update(**changes)
        return stmt.on_conflict_do_update(index_elements=['ride_id'], set_=changes)

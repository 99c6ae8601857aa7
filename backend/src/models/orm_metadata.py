"""
SQLAlchemy ORM Models: Ride Metadata
One rollup row per ride: running counters, hour/day averages, all-time peak
with the context it was observed in, and the operator-set classification.
"""

from sqlalchemy import Integer, String, Boolean, DateTime, Enum, Float, JSON
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any
import enum

from models.base import Base


class Classification(str, enum.Enum):
    """Operator-set ride tier."""
    HEADLINER = "headliner"
    POPULAR = "popular"
    STANDARD = "standard"
    MINOR = "minor"
    UNCLASSIFIED = "unclassified"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]

    @classmethod
    def is_valid(cls, value: Any) -> bool:
        return value in cls.values()


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class RideMetadata(Base):
    """
    Aggregated metadata for a tracked ride.

    Created by the first observed snapshot (or by a metadata sync) and kept
    up to date by every collection cycle. Never deleted automatically;
    rides that disappear upstream are flagged inactive instead.
    """
    __tablename__ = "ride_metadata"

    metadata_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Identity
    ride_id: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)
    ride_name: Mapped[str] = mapped_column(String(255), nullable=False)
    park_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    land_id: Mapped[Optional[int]] = mapped_column(Integer)
    land_name: Mapped[Optional[str]] = mapped_column(String(255))

    # Classification
    classification: Mapped[str] = mapped_column(
        Enum(*Classification.values(), name='ride_classification_enum'),
        nullable=False,
        default=Classification.UNCLASSIFIED.value
    )
    classification_updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    # Running statistics
    total_snapshots: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    avg_wait_overall: Mapped[Optional[float]] = mapped_column(Float)
    avg_wait_by_hour: Mapped[Optional[List[float]]] = mapped_column(
        JSON,
        comment="24 slots, hour of day (park-local)"
    )
    avg_wait_by_day: Mapped[Optional[List[float]]] = mapped_column(
        JSON,
        comment="7 slots, 0=Sunday"
    )
    peak_hour: Mapped[Optional[int]] = mapped_column(Integer)
    low_hour: Mapped[Optional[int]] = mapped_column(Integer)
    stats_calculated_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    # Lifecycle
    first_seen: Mapped[Optional[datetime]] = mapped_column(DateTime)
    last_seen: Mapped[Optional[datetime]] = mapped_column(DateTime)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # All-time peak (monotonically non-decreasing)
    peak_wait_time: Mapped[Optional[int]] = mapped_column(Integer)
    peak_wait_time_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    peak_wait_time_context: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_utc_now, onupdate=_utc_now
    )

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            'ride_id': self.ride_id,
            'ride_name': self.ride_name,
            'park_id': self.park_id,
            'land_id': self.land_id,
            'land_name': self.land_name,
            'classification': self.classification,
            'classification_updated_at': _iso(self.classification_updated_at),
            'is_active': self.is_active,
            'first_seen': _iso(self.first_seen),
            'last_seen': _iso(self.last_seen),
            'stats': {
                'total_snapshots': self.total_snapshots,
                'avg_wait_overall': self.avg_wait_overall,
                'avg_wait_by_hour': self.avg_wait_by_hour,
                'avg_wait_by_day': self.avg_wait_by_day,
                'peak_hour': self.peak_hour,
                'low_hour': self.low_hour,
                'stats_calculated_at': _iso(self.stats_calculated_at),
            },
            'peak_wait_time': self.peak_wait_time,
            'peak_wait_time_at': _iso(self.peak_wait_time_at),
            'peak_wait_time_context': self.peak_wait_time_context,
        }

    def __repr__(self) -> str:
        return (f"<RideMetadata(ride_id={self.ride_id}, name='{self.ride_name}', "
                f"peak={self.peak_wait_time})>")


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None

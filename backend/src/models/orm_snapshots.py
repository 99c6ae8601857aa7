"""
SQLAlchemy ORM Models: Snapshot Table
WaitTimeSnapshot for the append-only wait time series.
"""

from sqlalchemy import String, Boolean, Integer, DateTime, Float, Index, BigInteger, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from typing import Optional

from models.base import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class WaitTimeSnapshot(Base):
    """
    Point-in-time wait time reading for one ride from Queue-Times.com.
    Written once per collection cycle, never updated afterwards.
    """
    __tablename__ = "wait_time_snapshots"

    # Primary Key (Integer variant keeps SQLite autoincrement working)
    snapshot_id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True
    )

    # Ride / park identity as reported upstream
    ride_id: Mapped[int] = mapped_column(Integer, nullable=False)
    ride_name: Mapped[str] = mapped_column(String(255), nullable=False)
    park_id: Mapped[int] = mapped_column(Integer, nullable=False)
    land_id: Mapped[Optional[int]] = mapped_column(Integer)
    land_name: Mapped[Optional[str]] = mapped_column(String(255))

    # Reading
    wait_time: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Posted wait in minutes"
    )
    is_open: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        comment="UTC timestamp shared by every ride in one collection cycle"
    )

    # Park aggregate at capture time
    park_avg_wait: Mapped[Optional[int]] = mapped_column(
        Integer,
        comment="Rounded mean wait of open rides with wait > 0 (NULL if none)"
    )
    park_open_ride_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Context (park-local calendar)
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False, comment="0=Sunday")
    hour: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    week_of_year: Mapped[int] = mapped_column(Integer, nullable=False)
    is_weekend: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_holiday: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    holiday_name: Mapped[Optional[str]] = mapped_column(String(100))

    # Weather (best-effort)
    weather_temperature: Mapped[Optional[int]] = mapped_column(Integer)
    weather_feels_like: Mapped[Optional[int]] = mapped_column(Integer)
    weather_humidity: Mapped[Optional[int]] = mapped_column(Integer)
    weather_code: Mapped[Optional[int]] = mapped_column(Integer)
    weather_is_raining: Mapped[Optional[bool]] = mapped_column(Boolean)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utc_now)

    __table_args__ = (
        UniqueConstraint('ride_id', 'recorded_at', name='uq_snapshot_ride_recorded'),
        Index('idx_snapshot_ride_recorded', 'ride_id', 'recorded_at'),
        Index('idx_snapshot_park_recorded', 'park_id', 'recorded_at'),
        Index('idx_snapshot_pattern', 'day_of_week', 'hour', 'ride_id'),
        Index('idx_snapshot_recorded', 'recorded_at'),
    )

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        weather = None
        if self.weather_temperature is not None:
            weather = {
                'temperature': self.weather_temperature,
                'feels_like': self.weather_feels_like,
                'humidity': self.weather_humidity,
                'weather_code': self.weather_code,
                'is_raining': self.weather_is_raining,
            }
        return {
            'ride_id': self.ride_id,
            'ride_name': self.ride_name,
            'park_id': self.park_id,
            'land_id': self.land_id,
            'land_name': self.land_name,
            'wait_time': self.wait_time,
            'is_open': self.is_open,
            'recorded_at': self.recorded_at.isoformat() if self.recorded_at else None,
            'park_avg_wait': self.park_avg_wait,
            'park_open_ride_count': self.park_open_ride_count,
            'context': {
                'day_of_week': self.day_of_week,
                'hour': self.hour,
                'month': self.month,
                'year': self.year,
                'week_of_year': self.week_of_year,
                'is_weekend': self.is_weekend,
                'is_holiday': self.is_holiday,
                'holiday_name': self.holiday_name,
                'weather': weather,
            },
        }

    def __repr__(self) -> str:
        return (f"<WaitTimeSnapshot(ride_id={self.ride_id}, wait_time={self.wait_time}, "
                f"recorded_at={self.recorded_at})>")

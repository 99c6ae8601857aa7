"""
SQLAlchemy ORM Models: Tracking State
Single-row table holding the collector's persisted settings and last outcome.
"""

from sqlalchemy import Integer, String, Boolean, DateTime, Enum, Text
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from typing import Optional

from models.base import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TrackingState(Base):
    """
    Collector settings and status.

    `enabled` drives auto-start on process boot; `status` and
    `error_message` record the outcome of the most recent run.
    """
    __tablename__ = "tracking_state"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    interval_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    status: Mapped[str] = mapped_column(
        Enum('stopped', 'running', 'error', name='tracking_status_enum'),
        nullable=False,
        default='stopped'
    )
    last_collection_time: Mapped[Optional[datetime]] = mapped_column(DateTime)
    error_message: Mapped[Optional[str]] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_utc_now, onupdate=_utc_now
    )

    def to_dict(self) -> dict:
        return {
            'enabled': self.enabled,
            'interval_minutes': self.interval_minutes,
            'status': self.status,
            'last_collection_time': (
                self.last_collection_time.isoformat() if self.last_collection_time else None
            ),
            'error_message': self.error_message,
        }

"""
SQLAlchemy ORM Models: Sports Caches
GameCache (scoreboards) and StandingsCache share one shape: a JSON payload
per (sport, date) and the time it was last fetched. Freshness policy lives in
sports.game_state, never on the row.
"""

from sqlalchemy import Integer, String, DateTime, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from typing import Any

from models.base import Base

SPORTS = ('nhl', 'nfl', 'mlb')


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class _CacheEntryMixin:
    """Columns shared by both sports caches."""

    cache_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sport: Mapped[str] = mapped_column(String(10), nullable=False)
    date: Mapped[str] = mapped_column(String(10), nullable=False, comment="YYYY-MM-DD")
    data: Mapped[Any] = mapped_column(JSON, nullable=False)
    last_updated: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utc_now)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utc_now)

    def to_dict(self) -> dict:
        return {
            'sport': self.sport,
            'date': self.date,
            'data': self.data,
            'last_updated': self.last_updated.isoformat() if self.last_updated else None,
        }


class GameCache(_CacheEntryMixin, Base):
    """Cached scoreboard payload for one sport and date."""
    __tablename__ = "game_cache"
    __table_args__ = (
        UniqueConstraint('sport', 'date', name='uq_game_cache_sport_date'),
    )


class StandingsCache(_CacheEntryMixin, Base):
    """Cached standings payload for one sport and date."""
    __tablename__ = "standings_cache"
    __table_args__ = (
        UniqueConstraint('sport', 'date', name='uq_standings_cache_sport_date'),
    )

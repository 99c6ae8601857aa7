"""
Wait Time Tracker - Sports Cache Repository
Data access for the game_cache and standings_cache tables, which share one
shape. The repository stores payloads; TTL policy is decided by the caller.
"""

from typing import Any, Optional, Type, Union
from datetime import datetime
from sqlalchemy import select, delete
from sqlalchemy.orm import Session

from models.orm_cache import GameCache, StandingsCache
from utils.logger import log_database_error
from utils.sql_helpers import dialect_insert, dialect_name
from utils.timezone import utc_now

CacheModel = Type[Union[GameCache, StandingsCache]]


class CacheRepository:
    """
    Repository for one sports cache table.

    Example:
        >>> games = CacheRepository(session, GameCache)
        >>> entry = games.get('nhl', '2025-01-15')
    """

    def __init__(self, session: Session, model: CacheModel):
        """
        Args:
            session: SQLAlchemy session object
            model: GameCache or StandingsCache
        """
        self.session = session
        self.model = model

    def get(self, sport: str, date: str):
        """Fetch the entry for (sport, date), or None."""
        stmt = (
            select(self.model)
            .where(self.model.sport == sport, self.model.date == date)
            .execution_options(populate_existing=True)
        )
        return self.session.scalars(stmt).first()

    def save(self, sport: str, date: str, data: Any, refreshed_at: Optional[datetime] = None) -> None:
        """
        Store a payload for (sport, date), replacing any existing entry in place.

        Args:
            sport: nhl, nfl or mlb
            date: YYYY-MM-DD key
            data: JSON-serializable payload
            refreshed_at: Naive UTC time of the fetch (defaults to now)
        """
        refreshed_at = refreshed_at or utc_now()
        stmt = dialect_insert(self.session, self.model).values(
            sport=sport,
            date=date,
            data=data,
            last_updated=refreshed_at,
            created_at=refreshed_at,
        )
        changes = {'data': data, 'last_updated': refreshed_at}
        if dialect_name(self.session) == 'mysql':
            stmt = stmt.on_duplicate_key_update(**changes)
        else:
            stmt = stmt.on_conflict_do_update(index_elements=['sport', 'date'], set_=changes)

        try:
            self.session.execute(stmt)
        except Exception as e:
            log_database_error(e, f"Failed to save {self.model.__tablename__} entry {sport}/{date}")
            raise

    def delete(self, sport: str, date: str) -> bool:
        """Remove the entry for (sport, date). Returns True if one existed."""
        result = self.session.execute(
            delete(self.model).where(self.model.sport == sport, self.model.date == date)
        )
        return (result.rowcount or 0) > 0

    def purge_older_than(self, cutoff: datetime) -> int:
        """
        Delete entries created before cutoff.

        Args:
            cutoff: Naive UTC timestamp

        Returns:
            Number of rows deleted
        """
        try:
            result = self.session.execute(
                delete(self.model).where(self.model.created_at < cutoff)
            )
            return result.rowcount or 0
        except Exception as e:
            log_database_error(e, f"Failed to purge {self.model.__tablename__}")
            raise

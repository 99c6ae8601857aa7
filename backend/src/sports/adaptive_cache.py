"""
Wait Time Tracker - Adaptive Sports Cache

Read-through cache for scoreboards and standings whose lifetime depends on
the state of the day's games:

    Scoreboard TTL, from its own payload:
        finished 60 min, live 1 min, not started 30 min
    Standings TTL, from the sibling scoreboard entry for the same sport/date:
        finished 15 min, live 30 min, not started (or no scoreboard) 120 min

A forced refresh deletes the entry and fetches again. Upstream failures
propagate to the caller; stale data is never served as a fallback.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from database.repositories.cache_repository import CacheRepository
from models.orm_cache import GameCache, StandingsCache, SPORTS
from utils.config import SPORTS_CACHE_RETENTION_DAYS
from utils.logger import logger, log_cache_event
from utils.timezone import get_today_key, parse_date_key, utc_now
from sports.game_state import EventState, detect_event_state, is_fresh, scoreboard_ttl, standings_ttl
from sports.sports_api_client import SportsApiClient


@dataclass
class CacheResult:
    """Payload plus where it came from."""
    data: Any
    cached: bool
    last_updated: datetime
    game_state: EventState
    ttl_minutes: int
    refreshed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'data': self.data,
            'cached': self.cached,
            'last_updated': self.last_updated.isoformat(),
            'game_state': self.game_state.value,
            'ttl_minutes': self.ttl_minutes,
            'refreshed': self.refreshed,
        }


def validate_sport(sport: str) -> str:
    """
    Normalize and validate a sport key.

    Raises:
        ValueError: If the sport is not nhl, nfl or mlb
    """
    key = (sport or '').lower()
    if key not in SPORTS:
        raise ValueError(f"Invalid sport '{sport}'. Must be one of: {', '.join(SPORTS)}")
    return key


class SportsCacheService:
    """
    Adaptive-TTL cache over the game_cache and standings_cache tables.

    The caller owns the session and commits.

    Args:
        session: SQLAlchemy session
        client: Upstream sports API client
        clock: Returns naive UTC now
    """

    def __init__(self, session: Session, client: Optional[SportsApiClient] = None,
                 clock: Callable[[], datetime] = utc_now):
        self.session = session
        self.client = client or SportsApiClient()
        self._clock = clock
        self.games = CacheRepository(session, GameCache)
        self.standings = CacheRepository(session, StandingsCache)

    # ------------------------------------------------------------------
    # Scoreboards
    # ------------------------------------------------------------------

    def get_games(self, sport: str, date: Optional[str] = None) -> CacheResult:
        """Cached scoreboard for (sport, date), refetched when stale."""
        sport, date = self._key(sport, date)
        now = self._clock()

        entry = self.games.get(sport, date)
        if entry is not None:
            state = detect_event_state(sport, entry.data)
            ttl = scoreboard_ttl(state)
            hit = is_fresh(entry.last_updated, now, ttl)
            self._log('game_cache', sport, date, hit, entry.last_updated, now, ttl)
            if hit:
                return CacheResult(entry.data, True, entry.last_updated, state, _minutes(ttl))
        else:
            self._log('game_cache', sport, date, False, None, now, None)

        return self._fetch_games(sport, date, now)

    def refresh_games(self, sport: str, date: Optional[str] = None) -> CacheResult:
        """Drop the scoreboard entry and fetch it again."""
        sport, date = self._key(sport, date)
        self.games.delete(sport, date)
        logger.info("Game cache force refresh", extra={'sport': sport, 'date': date})
        result = self._fetch_games(sport, date, self._clock())
        result.refreshed = True
        return result

    def _fetch_games(self, sport: str, date: str, now: datetime) -> CacheResult:
        data = self.client.fetch_scoreboard(sport, date)
        self.games.save(sport, date, data, now)
        state = detect_event_state(sport, data)
        return CacheResult(data, False, now, state, _minutes(scoreboard_ttl(state)))

    # ------------------------------------------------------------------
    # Standings
    # ------------------------------------------------------------------

    def get_standings(self, sport: str, date: Optional[str] = None) -> CacheResult:
        """Cached standings for (sport, date); TTL follows the sibling scoreboard."""
        sport, date = self._key(sport, date)
        now = self._clock()
        state = self.game_state(sport, date)
        ttl = standings_ttl(state)

        entry = self.standings.get(sport, date)
        if entry is not None:
            hit = is_fresh(entry.last_updated, now, ttl)
            self._log('standings_cache', sport, date, hit, entry.last_updated, now, ttl)
            if hit:
                return CacheResult(entry.data, True, entry.last_updated, state, _minutes(ttl))
        else:
            self._log('standings_cache', sport, date, False, None, now, ttl)

        return self._fetch_standings(sport, date, now, state)

    def refresh_standings(self, sport: str, date: Optional[str] = None) -> CacheResult:
        """Drop the standings entry and fetch it again."""
        sport, date = self._key(sport, date)
        self.standings.delete(sport, date)
        logger.info("Standings cache force refresh", extra={'sport': sport, 'date': date})
        result = self._fetch_standings(sport, date, self._clock(), self.game_state(sport, date))
        result.refreshed = True
        return result

    def _fetch_standings(self, sport: str, date: str, now: datetime, state: EventState) -> CacheResult:
        data = self.client.fetch_standings(sport, date)
        self.standings.save(sport, date, data, now)
        return CacheResult(data, False, now, state, _minutes(standings_ttl(state)))

    def game_state(self, sport: str, date: str) -> EventState:
        """State of the day's games according to the cached scoreboard."""
        entry = self.games.get(sport, date)
        return detect_event_state(sport, entry.data if entry is not None else None)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def purge(self, retention_days: int = SPORTS_CACHE_RETENTION_DAYS) -> Dict[str, int]:
        """
        Delete cache entries older than the retention window.

        Returns:
            {'game_cache': n, 'standings_cache': n}
        """
        cutoff = self._clock() - timedelta(days=retention_days)
        deleted = {
            'game_cache': self.games.purge_older_than(cutoff),
            'standings_cache': self.standings.purge_older_than(cutoff),
        }
        logger.info("Sports cache purged", extra={
            'retention_days': retention_days,
            **deleted
        })
        return deleted

    @staticmethod
    def _key(sport: str, date: Optional[str]):
        sport = validate_sport(sport)
        if date is None:
            date = get_today_key()
        else:
            parse_date_key(date)
        return sport, date

    @staticmethod
    def _log(cache_name: str, sport: str, date: str, hit: bool, last_updated: Optional[datetime],
             now: datetime, ttl: Optional[timedelta]) -> None:
        age = round((now - last_updated).total_seconds() / 60, 1) if last_updated else None
        log_cache_event(cache_name, sport, date, hit, age, _minutes(ttl) if ttl else None)


def _minutes(ttl: timedelta) -> int:
    return int(ttl.total_seconds() // 60)

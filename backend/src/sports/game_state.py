"""
Wait Time Tracker - Game State and Cache TTL Policy

Pure functions: classify a scoreboard payload into an EventState and map
states to cache lifetimes. Cache rows never store a TTL; it is recomputed
from these tables on every read.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional


class EventState(str, Enum):
    LIVE = "live"
    FINISHED = "finished"
    NOT_STARTED = "not_started"


NHL_LIVE_STATES = frozenset({'LIVE', 'CRIT'})
NHL_FINAL_STATES = frozenset({'FINAL', 'OFF'})

# Standings only move once games complete
STANDINGS_TTL_MINUTES: Dict[EventState, int] = {
    EventState.FINISHED: 15,
    EventState.LIVE: 30,
    EventState.NOT_STARTED: 120,
}

# Scoreboards change every play while games are live
SCOREBOARD_TTL_MINUTES: Dict[EventState, int] = {
    EventState.FINISHED: 60,
    EventState.LIVE: 1,
    EventState.NOT_STARTED: 30,
}


def _espn_status_type(event: Dict[str, Any]) -> Dict[str, Any]:
    competitions = event.get('competitions') or [{}]
    return ((competitions[0] or {}).get('status') or {}).get('type') or {}


def _events(sport: str, payload: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    if not payload:
        return []
    key = 'games' if sport == 'nhl' else 'events'
    return payload.get(key) or []


def is_event_live(sport: str, event: Dict[str, Any]) -> bool:
    if sport == 'nhl':
        return event.get('gameState') in NHL_LIVE_STATES
    return _espn_status_type(event).get('state') == 'in'


def is_event_finished(sport: str, event: Dict[str, Any]) -> bool:
    if sport == 'nhl':
        return event.get('gameState') in NHL_FINAL_STATES
    return bool(_espn_status_type(event).get('completed'))


def detect_event_state(sport: str, payload: Optional[Dict[str, Any]]) -> EventState:
    """
    Classify a scoreboard payload.

    Any live event makes the whole slate LIVE. A non-empty slate where every
    event is finished is FINISHED. Everything else, including a missing
    payload or an empty slate, is NOT_STARTED.

    Args:
        sport: nhl, nfl or mlb
        payload: Cached scoreboard JSON (NHL `games[]`, ESPN `events[]`)

    Returns:
        EventState
    """
    events = _events(sport, payload)
    if not events:
        return EventState.NOT_STARTED
    if any(is_event_live(sport, event) for event in events):
        return EventState.LIVE
    if all(is_event_finished(sport, event) for event in events):
        return EventState.FINISHED
    return EventState.NOT_STARTED


def standings_ttl(state: EventState) -> timedelta:
    return timedelta(minutes=STANDINGS_TTL_MINUTES[state])


def scoreboard_ttl(state: EventState) -> timedelta:
    return timedelta(minutes=SCOREBOARD_TTL_MINUTES[state])


def is_fresh(last_updated: datetime, now: datetime, ttl: timedelta) -> bool:
    """An entry is fresh while its age is strictly below the TTL."""
    return now - last_updated < ttl

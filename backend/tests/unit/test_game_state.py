"""
Wait Time Tracker - Game State Detection and TTL Policy Unit Tests
"""

import pytest
from datetime import datetime, timedelta

from sports.game_state import (
    EventState, detect_event_state, is_fresh, scoreboard_ttl, standings_ttl
)


def _espn_event(state, completed=False):
    return {'competitions': [{'status': {'type': {'state': state, 'completed': completed}}}]}


class TestNhlDetection:

    @pytest.mark.parametrize("states,expected", [
        (['FUT', 'LIVE'], EventState.LIVE),
        (['CRIT', 'FINAL'], EventState.LIVE),
        (['FINAL', 'OFF'], EventState.FINISHED),
        (['FINAL', 'FUT'], EventState.NOT_STARTED),
        (['PRE'], EventState.NOT_STARTED),
    ])
    def test_game_states(self, states, expected):
        payload = {'games': [{'gameState': state} for state in states]}

        assert detect_event_state('nhl', payload) == expected

    def test_empty_slate_is_not_started(self):
        assert detect_event_state('nhl', {'games': []}) == EventState.NOT_STARTED
        assert detect_event_state('nhl', {}) == EventState.NOT_STARTED
        assert detect_event_state('nhl', None) == EventState.NOT_STARTED


class TestEspnDetection:

    @pytest.mark.parametrize("sport", ['nfl', 'mlb'])
    def test_any_in_progress_is_live(self, sport):
        payload = {'events': [_espn_event('post', completed=True), _espn_event('in')]}

        assert detect_event_state(sport, payload) == EventState.LIVE

    def test_all_completed_is_finished(self):
        payload = {'events': [_espn_event('post', completed=True), _espn_event('post', completed=True)]}

        assert detect_event_state('nfl', payload) == EventState.FINISHED

    def test_scheduled_games_not_started(self):
        payload = {'events': [_espn_event('pre'), _espn_event('post', completed=True)]}

        assert detect_event_state('mlb', payload) == EventState.NOT_STARTED

    def test_malformed_event_not_started(self):
        assert detect_event_state('nfl', {'events': [{}]}) == EventState.NOT_STARTED

    def test_wrong_key_ignored(self):
        # NHL shaped payload under an ESPN sport has no events
        assert detect_event_state('nfl', {'games': [{'gameState': 'LIVE'}]}) == EventState.NOT_STARTED


class TestTtlPolicy:

    @pytest.mark.parametrize("state,minutes", [
        (EventState.FINISHED, 15),
        (EventState.LIVE, 30),
        (EventState.NOT_STARTED, 120),
    ])
    def test_standings_ttl(self, state, minutes):
        assert standings_ttl(state) == timedelta(minutes=minutes)

    @pytest.mark.parametrize("state,minutes", [
        (EventState.FINISHED, 60),
        (EventState.LIVE, 1),
        (EventState.NOT_STARTED, 30),
    ])
    def test_scoreboard_ttl(self, state, minutes):
        assert scoreboard_ttl(state) == timedelta(minutes=minutes)

    def test_freshness_boundary_is_exclusive(self):
        updated = datetime(2025, 1, 15, 20, 0, 0)
        ttl = timedelta(minutes=15)

        assert is_fresh(updated, updated + timedelta(minutes=14, seconds=59), ttl) is True
        assert is_fresh(updated, updated + timedelta(minutes=15), ttl) is False

"""
Wait Time Tracker - Sports API Client
Fetches scoreboards and standings from the NHL web API and ESPN site API.
"""

import requests
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from utils.config import MAX_RETRY_ATTEMPTS, RETRY_BACKOFF_MULTIPLIER, UPSTREAM_TIMEOUT_SECONDS
from utils.logger import logger

NHL_BASE_URL = "https://api-web.nhle.com/v1"
ESPN_SITE_URL = "https://site.api.espn.com/apis/site/v2/sports"
ESPN_STANDINGS_URL = "https://site.api.espn.com/apis/v2/sports"

ESPN_PATHS = {
    'nfl': 'football/nfl',
    'mlb': 'baseball/mlb',
}

# ESPN standings are fetched per division group
STANDINGS_GROUPS = {
    'nfl': [1, 10, 11, 3, 4, 12, 13, 6],
    'mlb': [5, 6, 7, 15, 16, 17],
}


def _stat_value(stats: List[Dict[str, Any]], name: str) -> Any:
    for stat in stats:
        if stat.get('name') == name:
            return stat.get('value') or 0
    return 0


def parse_nhl_standings(payload: Dict[str, Any]) -> Dict[str, Dict[str, int]]:
    """Map team abbreviation to {wins, losses, otLosses}."""
    records = {}
    for team in payload.get('standings') or []:
        abbrev = (team.get('teamAbbrev') or {}).get('default')
        if abbrev:
            records[abbrev] = {
                'wins': team.get('wins') or 0,
                'losses': team.get('losses') or 0,
                'otLosses': team.get('otLosses') or 0,
            }
    return records


def parse_espn_standings(payload: Dict[str, Any], include_ties: bool) -> Dict[str, Dict[str, Any]]:
    """Map team display name to {wins, losses[, ties]} for one ESPN group."""
    records = {}
    entries = (payload.get('standings') or {}).get('entries') or []
    for entry in entries:
        name = (entry.get('team') or {}).get('displayName')
        if not name:
            continue
        stats = entry.get('stats') or []
        record = {
            'wins': _stat_value(stats, 'wins'),
            'losses': _stat_value(stats, 'losses'),
        }
        if include_ties:
            record['ties'] = _stat_value(stats, 'ties')
        records[name] = record
    return records


class SportsApiClient:
    """
    Client for NHL and ESPN scoreboard/standings endpoints.

    Transient network failures retry with exponential backoff; anything
    still failing propagates to the cache layer.
    """

    def __init__(self, timeout: int = UPSTREAM_TIMEOUT_SECONDS):
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': 'WaitTimeTracker/1.0 (sports-cache)',
            'Accept': 'application/json'
        })

    @retry(
        stop=stop_after_attempt(MAX_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=RETRY_BACKOFF_MULTIPLIER, min=1, max=10),
        retry=retry_if_exception_type((requests.Timeout, requests.ConnectionError)),
        reraise=True
    )
    def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = self.session.get(url, params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def fetch_scoreboard(self, sport: str, date: str) -> Dict[str, Any]:
        """
        Fetch the scoreboard for a sport and date.

        Args:
            sport: nhl, nfl or mlb
            date: YYYY-MM-DD

        Returns:
            Raw upstream JSON (NHL `games[]`, ESPN `events[]`)
        """
        logger.info("Fetching scoreboard", extra={'sport': sport, 'date': date})
        if sport == 'nhl':
            return self._get_json(f"{NHL_BASE_URL}/score/{date}")
        path = self._espn_path(sport)
        return self._get_json(f"{ESPN_SITE_URL}/{path}/scoreboard", params={'dates': date.replace('-', '')})

    def fetch_standings(self, sport: str, date: str) -> Dict[str, Dict[str, Any]]:
        """
        Fetch standings as a team -> record map.

        NHL is keyed by team abbreviation; NFL/MLB by display name, merged
        across every division group.
        """
        logger.info("Fetching standings", extra={'sport': sport, 'date': date})
        if sport == 'nhl':
            return parse_nhl_standings(self._get_json(f"{NHL_BASE_URL}/standings/{date}"))

        path = self._espn_path(sport)
        groups = STANDINGS_GROUPS[sport]
        url = f"{ESPN_STANDINGS_URL}/{path}/standings"

        with ThreadPoolExecutor(max_workers=len(groups)) as executor:
            payloads = list(executor.map(lambda group: self._get_json(url, params={'group': group}), groups))

        records: Dict[str, Dict[str, Any]] = {}
        for payload in payloads:
            records.update(parse_espn_standings(payload, include_ties=(sport == 'nfl')))
        return records

    @staticmethod
    def _espn_path(sport: str) -> str:
        try:
            return ESPN_PATHS[sport]
        except KeyError:
            raise ValueError(f"Invalid sport '{sport}'")

    def close(self):
        self.session.close()

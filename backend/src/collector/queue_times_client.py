"""
Wait Time Tracker - Queue-Times.com API Client
Fetches per-park wait times and flattens them into ride readings.
"""

import requests
from dataclasses import dataclass
from typing import Dict, List, Optional

from utils.config import QUEUE_TIMES_API_BASE_URL, UPSTREAM_TIMEOUT_SECONDS
from utils.logger import logger


@dataclass(frozen=True)
class RideReading:
    """One ride as reported in a park's queue_times.json payload."""
    ride_id: int
    ride_name: str
    wait_time: int
    is_open: bool
    land_id: Optional[int] = None
    land_name: Optional[str] = None


def parse_park_payload(payload: Dict) -> List[RideReading]:
    """
    Flatten a queue_times.json payload into ride readings.

    Rides are listed under `lands[].rides[]`; rides not assigned to a land
    appear in the top-level `rides[]` array.

    Args:
        payload: Parsed JSON from /parks/{id}/queue_times.json

    Returns:
        List of RideReading (wait_time clamped at 0)
    """
    readings: List[RideReading] = []

    def _reading(ride: Dict, land: Optional[Dict]) -> RideReading:
        return RideReading(
            ride_id=int(ride['id']),
            ride_name=ride.get('name') or f"Ride {ride['id']}",
            wait_time=max(int(ride.get('wait_time') or 0), 0),
            is_open=bool(ride.get('is_open')),
            land_id=land.get('id') if land else None,
            land_name=land.get('name') if land else None,
        )

    for land in payload.get('lands') or []:
        for ride in land.get('rides') or []:
            readings.append(_reading(ride, land))

    for ride in payload.get('rides') or []:
        readings.append(_reading(ride, None))

    return readings


class QueueTimesClient:
    """
    Client for the Queue-Times.com API.

    Wait time fetches are not retried: a failed fetch costs one park for one
    cycle and the next scheduled cycle is the retry.
    """

    def __init__(self, base_url: str = QUEUE_TIMES_API_BASE_URL,
                 timeout: int = UPSTREAM_TIMEOUT_SECONDS):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': 'WaitTimeTracker/1.0 (Data Collection Bot)',
            'Accept': 'application/json'
        })

    def get_park_wait_times(self, park_id: int) -> Dict:
        """
        Fetch current wait times for all rides at a specific park.

        Args:
            park_id: Queue-Times.com park ID

        Returns:
            Dictionary with `lands` (and possibly top-level `rides`)

        Raises:
            requests.HTTPError: If API returns error status
            requests.Timeout: If request times out
        """
        url = f"{self.base_url}/parks/{park_id}/queue_times.json"
        logger.debug(f"Fetching wait times for park {park_id}")

        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def get_park_rides(self, park_id: int) -> List[RideReading]:
        """Fetch and flatten a park's current readings."""
        return parse_park_payload(self.get_park_wait_times(park_id))

    def close(self):
        """Close the HTTP session."""
        self.session.close()


# Singleton instance
_client: Optional[QueueTimesClient] = None


def get_queue_times_client() -> QueueTimesClient:
    """
    Get or create singleton Queue-Times API client.

    Returns:
        QueueTimesClient instance
    """
    global _client
    if _client is None:
        _client = QueueTimesClient()
    return _client

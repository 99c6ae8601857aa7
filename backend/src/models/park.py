"""
Wait Time Tracker - Park Registry
Tracked Queue-Times.com parks and their display names.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from utils.config import TRACKED_PARK_IDS


@dataclass(frozen=True)
class Park:
    """
    A Queue-Times.com park tracked by the collector.

    Attributes:
        park_id: Queue-Times.com park identifier
        name: Display name
    """
    park_id: int
    name: str

    @property
    def queue_times_url(self) -> str:
        """URL to the park page on Queue-Times.com."""
        return f"https://queue-times.com/parks/{self.park_id}"

    def to_dict(self) -> dict:
        return {
            "park_id": self.park_id,
            "name": self.name,
            "queue_times_url": self.queue_times_url,
        }


# Walt Disney World parks on Queue-Times.com
KNOWN_PARKS: Dict[int, str] = {
    5: "Epcot",
    6: "Magic Kingdom",
    7: "Hollywood Studios",
    8: "Animal Kingdom",
}


def park_name(park_id: int) -> str:
    """Display name for a park id, falling back to 'Park <id>'."""
    return KNOWN_PARKS.get(park_id, f"Park {park_id}")


def get_tracked_parks(park_ids: Optional[List[int]] = None) -> List[Park]:
    """
    Parks the collector should poll.

    Args:
        park_ids: Override list (defaults to TRACKED_PARK_IDS config)

    Returns:
        List of Park entries in configured order
    """
    ids = park_ids if park_ids is not None else TRACKED_PARK_IDS
    return [Park(park_id=pid, name=park_name(pid)) for pid in ids]

"""
Metadata Collector: Ride Identity Sync from Queue-Times.com

Creates ride_metadata rows for rides that have not been observed yet and
refreshes names/lands for existing ones. Sync never counts an observation,
so total_snapshots and peaks are left alone.
"""

from typing import Dict, List, Optional, Any
from sqlalchemy.orm import Session
from requests.exceptions import RequestException

from database.repositories.metadata_repository import MetadataRepository
from models.park import Park, get_tracked_parks
from utils.logger import setup_logger
from collector.queue_times_client import QueueTimesClient, get_queue_times_client

logger = setup_logger(__name__)


class MetadataCollector:
    """
    Syncs ride metadata for the tracked parks.

    Args:
        session: SQLAlchemy session for database operations
        client: Queue-Times client (defaults to singleton)
        park_ids: Parks to sync (defaults to TRACKED_PARK_IDS)
    """

    def __init__(self, session: Session, client: Optional[QueueTimesClient] = None,
                 park_ids: Optional[List[int]] = None):
        self.session = session
        self.client = client or get_queue_times_client()
        self.parks: List[Park] = get_tracked_parks(park_ids)
        self.metadata_repo = MetadataRepository(session)

    def sync_park(self, park: Park) -> Dict[str, int]:
        """
        Sync one park's rides.

        Returns:
            {'created': n, 'updated': n, 'deactivated': n}

        Raises:
            RequestException: If the park payload cannot be fetched
        """
        readings = self.client.get_park_rides(park.park_id)
        stats = {'created': 0, 'updated': 0, 'deactivated': 0}

        for reading in readings:
            outcome = self.metadata_repo.sync_ride(
                ride_id=reading.ride_id,
                ride_name=reading.ride_name,
                park_id=park.park_id,
                land_id=reading.land_id,
                land_name=reading.land_name,
            )
            stats[outcome] += 1

        stats['deactivated'] = self.metadata_repo.mark_missing_inactive(
            park.park_id, [r.ride_id for r in readings]
        )
        return stats

    def sync_all(self) -> Dict[str, Any]:
        """
        Sync every tracked park. A failed park is recorded and skipped.

        Returns:
            Totals plus an `errors` list of park-level failures
        """
        totals: Dict[str, Any] = {
            'created': 0,
            'updated': 0,
            'deactivated': 0,
            'parks_processed': 0,
            'errors': [],
        }

        for park in self.parks:
            try:
                stats = self.sync_park(park)
            except (RequestException, ValueError) as e:
                logger.warning(f"Metadata sync failed for {park.name}", extra={
                    'park_id': park.park_id,
                    'error': str(e)
                })
                totals['errors'].append(f"No data for {park.name}")
                continue

            for key in ('created', 'updated', 'deactivated'):
                totals[key] += stats[key]
            totals['parks_processed'] += 1

        logger.info("Metadata sync complete", extra={
            'rides_created': totals['created'],
            'rides_updated': totals['updated'],
            'rides_deactivated': totals['deactivated'],
            'error_count': len(totals['errors'])
        })
        return totals

#!/usr/bin/env python3
"""
Wait Time Tracker - Ride Statistics Refresh
Recomputes per-ride hourly and daily wait averages.

Usage:
    python -m scripts.refresh_ride_stats
    python -m scripts.refresh_ride_stats --ride-id 138 --ride-id 141
"""

import argparse
import sys
from pathlib import Path

# Add src to path so the script also runs as a plain file
backend_src = Path(__file__).parent.parent
if str(backend_src.absolute()) not in sys.path:
    sys.path.insert(0, str(backend_src.absolute()))

from database.connection import get_db_session
from processor.metadata_aggregator import MetadataAggregator
from utils.logger import setup_logger

logger = setup_logger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Refresh per-ride wait statistics")
    parser.add_argument(
        '--ride-id',
        type=int,
        action='append',
        dest='ride_ids',
        metavar='ID',
        help='Only refresh this ride (repeatable)'
    )
    args = parser.parse_args()

    try:
        with get_db_session() as session:
            stats = MetadataAggregator(session).refresh_stats(args.ride_ids)
    except Exception as e:
        logger.exception(f"Stats refresh failed: {e}")
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    print(f"Rides processed: {stats['rides_processed']}, updated: {stats['rides_updated']}")
    return 0


if __name__ == '__main__':
    sys.exit(main())

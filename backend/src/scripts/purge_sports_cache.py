#!/usr/bin/env python3
"""
Wait Time Tracker - Sports Cache Purge
Deletes game and standings cache rows older than the retention window.

Usage:
    python -m scripts.purge_sports_cache --days 7
"""

import argparse
import sys
from pathlib import Path

# Add src to path so the script also runs as a plain file
backend_src = Path(__file__).parent.parent
if str(backend_src.absolute()) not in sys.path:
    sys.path.insert(0, str(backend_src.absolute()))

from database.connection import get_db_session
from sports.adaptive_cache import SportsCacheService
from utils.config import SPORTS_CACHE_RETENTION_DAYS
from utils.logger import setup_logger

logger = setup_logger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Purge old sports cache entries")
    parser.add_argument(
        '--days',
        type=int,
        default=SPORTS_CACHE_RETENTION_DAYS,
        help=f'Retention in days (default: {SPORTS_CACHE_RETENTION_DAYS})'
    )
    args = parser.parse_args()

    if args.days < 1:
        print("ERROR: --days must be at least 1", file=sys.stderr)
        return 2

    try:
        with get_db_session() as session:
            deleted = SportsCacheService(session).purge(args.days)
    except Exception as e:
        logger.exception(f"Sports cache purge failed: {e}")
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    print(f"Deleted {deleted['game_cache']} game and {deleted['standings_cache']} standings entries")
    return 0


if __name__ == '__main__':
    sys.exit(main())

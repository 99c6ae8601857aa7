#!/usr/bin/env python3
"""
Sync Metadata Script

Syncs ride identity (name, land) from Queue-Times.com into ride_metadata.
New rides start unclassified; rides missing from a park's feed are marked
inactive.

Usage:
    # Sync every tracked park
    python -m scripts.sync_metadata

    # Sync specific parks
    python -m scripts.sync_metadata --park-id 6 --park-id 7

    # Dry run (don't save changes)
    python -m scripts.sync_metadata --dry-run
"""

import argparse
import sys
from pathlib import Path

# Add src to path so the script also runs as a plain file
backend_src = Path(__file__).parent.parent
if str(backend_src.absolute()) not in sys.path:
    sys.path.insert(0, str(backend_src.absolute()))

from database.connection import create_db_session
from collector.metadata_collector import MetadataCollector
from utils.logger import setup_logger

logger = setup_logger(__name__)


def sync_metadata(session, park_ids=None, dry_run: bool = False) -> dict:
    """
    Sync ride metadata from Queue-Times.com.

    Args:
        session: Database session
        park_ids: Optional park ids to sync (syncs TRACKED_PARK_IDS if None)
        dry_run: If True, don't commit changes

    Returns:
        Dict with sync statistics
    """
    stats = MetadataCollector(session, park_ids=park_ids).sync_all()

    if not dry_run:
        session.commit()
        logger.info(f"Committed metadata for {stats['parks_processed']} parks")
    else:
        session.rollback()
        logger.info("Dry run: metadata changes rolled back")

    return stats


def main():
    parser = argparse.ArgumentParser(
        description="Sync ride metadata from Queue-Times.com",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument(
        '--park-id',
        type=int,
        action='append',
        dest='park_ids',
        metavar='ID',
        help='Sync a specific park (repeatable)'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Run without committing changes'
    )
    args = parser.parse_args()

    session = create_db_session()
    try:
        stats = sync_metadata(session, park_ids=args.park_ids, dry_run=args.dry_run)
    except Exception as e:
        session.rollback()
        logger.exception(f"Metadata sync failed: {e}")
        print(f"ERROR: {e}", file=sys.stderr)
        return 2
    finally:
        session.close()

    print("\n=== Sync Results ===")
    print(f"Created: {stats['created']}")
    print(f"Updated: {stats['updated']}")
    print(f"Deactivated: {stats['deactivated']}")
    for error in stats['errors']:
        print(f"  - {error}")

    if args.dry_run:
        print("\n(Dry run - no changes committed)")

    return 0 if not stats['errors'] else 1


if __name__ == '__main__':
    sys.exit(main())

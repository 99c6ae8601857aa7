#!/usr/bin/env python3
"""
Wait Time Tracker - Peak Wait Backfill
Recomputes every ride's all-time peak from stored snapshots. Idempotent:
re-running against unchanged history writes the same values.

Usage:
    python -m scripts.backfill_peak_wait_times
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
    parser = argparse.ArgumentParser(description="Backfill ride peak wait times from snapshot history")
    parser.parse_args()

    try:
        with get_db_session() as session:
            stats = MetadataAggregator(session).backfill_peaks()
    except Exception as e:
        logger.exception(f"Peak backfill failed: {e}")
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    print("\n=== Peak Backfill ===")
    print(f"Rides with peaks: {stats['rides_with_peaks']}")
    print(f"Updated: {stats['updated']}")
    print(f"Skipped (no metadata row): {stats['skipped']}")
    return 0


if __name__ == '__main__':
    sys.exit(main())

#!/usr/bin/env python3
"""
Wait Time Tracker - One-Shot Snapshot Collection
Runs a single collection cycle. Safe to run from cron alongside the API
process: the recent-data check skips the run if another process just
collected.

Usage:
    python -m scripts.collect_snapshots

Cron example (every 5 minutes):
    */5 * * * * cd /path/to/backend/src && python -m scripts.collect_snapshots
"""

import argparse
import sys
from pathlib import Path

# Add src to path so the script also runs as a plain file
backend_src = Path(__file__).parent.parent
if str(backend_src.absolute()) not in sys.path:
    sys.path.insert(0, str(backend_src.absolute()))

from collector.wait_time_collector import WaitTimeCollector, RunOutcome
from utils.logger import setup_logger

logger = setup_logger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Collect one round of wait time snapshots")
    parser.add_argument(
        '--park-id',
        type=int,
        action='append',
        dest='park_ids',
        metavar='ID',
        help='Queue-Times park id to collect (repeatable, defaults to TRACKED_PARK_IDS)'
    )
    args = parser.parse_args()

    result = WaitTimeCollector(park_ids=args.park_ids).collect_now()

    print("\n=== Collection Result ===")
    print(f"Outcome: {result.outcome.value}")
    if result.skip_reason:
        print(f"Skipped: {result.skip_reason}")
    print(f"Parks processed: {result.parks_processed}")
    print(f"Snapshots created: {result.snapshots_created}")
    for error in result.errors:
        print(f"  - {error}")

    if result.outcome == RunOutcome.FAILED:
        print(f"ERROR: {result.error_message}", file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())

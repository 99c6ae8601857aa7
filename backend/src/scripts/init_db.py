#!/usr/bin/env python3
"""
Wait Time Tracker - Schema Initialization
Creates any missing tables. Existing tables are left untouched.

Usage:
    python -m scripts.init_db
"""

import argparse
import sys
from pathlib import Path

# Add src to path so the script also runs as a plain file
backend_src = Path(__file__).parent.parent
if str(backend_src.absolute()) not in sys.path:
    sys.path.insert(0, str(backend_src.absolute()))

from database.connection import init_schema, test_database_connection
from utils.logger import setup_logger

logger = setup_logger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Create the wait time tracker schema")
    parser.add_argument(
        '--check',
        action='store_true',
        help='Only verify database connectivity'
    )
    args = parser.parse_args()

    if not test_database_connection():
        print("ERROR: database connection failed", file=sys.stderr)
        return 2

    if args.check:
        print("Database connection OK")
        return 0

    try:
        init_schema()
    except Exception as e:
        logger.exception(f"Schema initialization failed: {e}")
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    print("Schema ready")
    return 0


if __name__ == '__main__':
    sys.exit(main())

#!/usr/bin/env python3
"""
WSGI entry point for the Wait Time Tracker API.

This module provides the WSGI application interface for production deployment
with Gunicorn. The collector runs on a background thread inside the worker,
so run a single worker process.

Usage:
    gunicorn --workers 1 --bind 127.0.0.1:5001 wsgi:application

Environment:
    INIT_SCHEMA=true   Create missing tables on boot
"""

import sys
import os

# Add the src directory to Python path
# This allows imports like "from api.app import create_app"
src_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

# Load environment variables from .env file
from dotenv import load_dotenv
env_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), '.env')
if os.path.exists(env_path):
    load_dotenv(env_path)

from api.app import create_app
from collector.wait_time_collector import WaitTimeCollector
from database.connection import init_schema
from utils.config import config

if config.get_bool('INIT_SCHEMA', False):
    init_schema()

collector = WaitTimeCollector()

# Create the WSGI application
application = create_app(collector)

# Resume collection if it was enabled before the last shutdown
collector.initialize_from_settings()

# For local testing with: python wsgi.py
if __name__ == "__main__":
    application.run(host='0.0.0.0', port=5001, debug=False)

"""
Wait Time Tracker - Tracking State Repository
Reads and writes the single tracking_state row.
"""

from typing import Optional
from datetime import datetime
from sqlalchemy import select
from sqlalchemy.orm import Session

from models.orm_tracking import TrackingState
from utils.config import COLLECTION_INTERVAL_MINUTES

STATE_ROW_ID = 1


class TrackingStateRepository:
    """Repository for the collector's persisted settings and last outcome."""

    def __init__(self, session: Session):
        self.session = session

    def get(self) -> Optional[TrackingState]:
        stmt = (
            select(TrackingState)
            .where(TrackingState.id == STATE_ROW_ID)
            .execution_options(populate_existing=True)
        )
        return self.session.scalars(stmt).first()

    def get_or_create(self) -> TrackingState:
        """Fetch the state row, creating a stopped default if missing."""
        state = self.get()
        if state is None:
            state = TrackingState(
                id=STATE_ROW_ID,
                enabled=False,
                interval_minutes=COLLECTION_INTERVAL_MINUTES,
                status='stopped',
            )
            self.session.add(state)
            self.session.flush()
        return state

    def mark_running(self, interval_minutes: int) -> TrackingState:
        state = self.get_or_create()
        state.enabled = True
        state.interval_minutes = interval_minutes
        state.status = 'running'
        state.error_message = None
        self.session.flush()
        return state

    def mark_stopped(self) -> TrackingState:
        state = self.get_or_create()
        state.enabled = False
        state.status = 'stopped'
        self.session.flush()
        return state

    def record_success(self, collected_at: datetime) -> TrackingState:
        """Record a completed run; clears any previous error."""
        state = self.get_or_create()
        state.last_collection_time = collected_at
        state.error_message = None
        if state.status == 'error':
            state.status = 'running' if state.enabled else 'stopped'
        self.session.flush()
        return state

    def record_error(self, message: str) -> TrackingState:
        state = self.get_or_create()
        state.status = 'error'
        state.error_message = message
        self.session.flush()
        return state

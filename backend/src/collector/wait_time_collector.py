"""
Wait Time Tracker - Wait Time Collector
Periodic fetch-enrich-store cycles across the tracked parks.

Each run:
    1. In-process guard: a non-blocking lock rejects overlapping runs.
    2. Cross-process guard: any snapshot newer than RECENT_DATA_WINDOW_MINUTES
       (capped at half the active interval) skips the run. This is advisory
       (clock-dependent), not a lock; the (ride_id, recorded_at) unique
       constraint remains the final backstop.
    3. One Context is built for the whole run.
    4. Parks are fetched concurrently; a failed park yields no data.
    5. If no ride anywhere is open the run is skipped with zero writes.
    6. Per ride: insert snapshot, upsert metadata, apply the peak rule, commit.
"""

import math
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Dict, List, Optional

import schedule
from sqlalchemy.orm import Session

from database.connection import create_db_session
from database.repositories.metadata_repository import MetadataRepository
from database.repositories.snapshot_repository import SnapshotRepository
from database.repositories.tracking_repository import TrackingStateRepository
from models.context import Context
from models.park import Park, get_tracked_parks
from processor.context_enricher import ContextEnricher
from utils.config import (
    MIN_COLLECTION_INTERVAL_MINUTES, MAX_COLLECTION_INTERVAL_MINUTES,
    RECENT_DATA_WINDOW_MINUTES
)
from utils.logger import (
    logger, log_collection_start, log_collection_complete,
    log_collection_skipped, log_collection_error, log_database_error
)
from utils.sql_helpers import is_duplicate_key_error
from utils.timezone import utc_now
from collector.queue_times_client import QueueTimesClient, RideReading

SKIP_IN_PROGRESS = "Collection already in progress"
SKIP_RECENT_DATA = "Recent data exists"
SKIP_ALL_CLOSED = "All parks closed"


class RunOutcome(str, Enum):
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class CollectionResult:
    """Outcome of one collection run."""
    outcome: RunOutcome
    started_at: datetime
    duration_seconds: float = 0.0
    parks_processed: int = 0
    snapshots_created: int = 0
    errors: List[str] = field(default_factory=list)
    skip_reason: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome != RunOutcome.FAILED

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome.value,
            "success": self.success,
            "started_at": self.started_at.isoformat(),
            "duration_seconds": self.duration_seconds,
            "parks_processed": self.parks_processed,
            "snapshots_created": self.snapshots_created,
            "errors": list(self.errors),
            "skip_reason": self.skip_reason,
            "error_message": self.error_message,
        }


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up."""
    return int(math.floor(value + 0.5))


def park_average_wait(readings: List[RideReading]) -> Optional[int]:
    """
    Rounded mean wait of open rides with a positive wait.

    Returns:
        Integer average, or None if no ride qualifies
    """
    waits = [r.wait_time for r in readings if r.is_open and r.wait_time > 0]
    if not waits:
        return None
    return round_half_up(sum(waits) / len(waits))


class WaitTimeCollector:
    """
    Scheduled wait time collector.

    One instance owns its schedule, background thread and run lock, so
    several collectors can coexist (e.g. in tests) without shared globals.

    Args:
        client: Queue-Times API client
        enricher: Context builder
        session_factory: Callable returning a new SQLAlchemy Session
        park_ids: Parks to poll (defaults to TRACKED_PARK_IDS)
        recent_window_minutes: Cross-process dedup window
        max_workers: Concurrent park fetches
        poll_seconds: How often the scheduler thread checks for due runs
    """

    def __init__(self, client: Optional[QueueTimesClient] = None,
                 enricher: Optional[ContextEnricher] = None,
                 session_factory: Callable[[], Session] = create_db_session,
                 park_ids: Optional[List[int]] = None,
                 recent_window_minutes: int = RECENT_DATA_WINDOW_MINUTES,
                 max_workers: int = 4,
                 poll_seconds: float = 1.0,
                 clock: Callable[[], datetime] = utc_now):
        self.client = client or QueueTimesClient()
        self.enricher = enricher or ContextEnricher()
        self.session_factory = session_factory
        self.parks: List[Park] = get_tracked_parks(park_ids)
        self.recent_window_minutes = recent_window_minutes
        self.max_workers = max_workers
        self.poll_seconds = poll_seconds
        self._clock = clock

        self._scheduler = schedule.Scheduler()
        self._job: Optional[schedule.Job] = None
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None
        self._state_lock = threading.Lock()
        self._run_lock = threading.Lock()

        self.interval_minutes: Optional[int] = None
        self.last_result: Optional[CollectionResult] = None

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def start(self, interval_minutes: int) -> bool:
        """
        Schedule a run every `interval_minutes` and run once immediately.

        Args:
            interval_minutes: 1-60

        Returns:
            True if started, False if a schedule was already active

        Raises:
            ValueError: If the interval is out of range
        """
        if (isinstance(interval_minutes, bool) or not isinstance(interval_minutes, int)
                or not MIN_COLLECTION_INTERVAL_MINUTES <= interval_minutes <= MAX_COLLECTION_INTERVAL_MINUTES):
            raise ValueError(
                f"Interval must be between {MIN_COLLECTION_INTERVAL_MINUTES} "
                f"and {MAX_COLLECTION_INTERVAL_MINUTES} minutes"
            )

        with self._state_lock:
            if self._job is not None:
                return False

            self.interval_minutes = interval_minutes
            self._job = self._scheduler.every(interval_minutes).minutes.do(self._scheduled_run)
            self._persist_state(lambda repo: repo.mark_running(interval_minutes))
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._scheduler_loop,
                args=(self._stop_event,),
                name="wait-time-collector",
                daemon=True
            )
            self._thread.start()

        logger.info("Collector started", extra={
            "event_type": "collector_started",
            "interval_minutes": interval_minutes
        })
        return True

    def stop(self) -> bool:
        """
        Cancel future runs. An in-flight run is allowed to finish.

        Returns:
            True if a schedule was stopped, False if none was active
        """
        with self._state_lock:
            if self._job is None:
                return False
            self._scheduler.cancel_job(self._job)
            self._job = None
            if self._stop_event is not None:
                self._stop_event.set()
            self._thread = None
            self._stop_event = None

        self._persist_state(lambda repo: repo.mark_stopped())
        logger.info("Collector stopped", extra={"event_type": "collector_stopped"})
        return True

    def initialize_from_settings(self) -> bool:
        """
        Auto-start on process boot when tracking was left enabled.

        Returns:
            True if the collector was started
        """
        session = None
        try:
            session = self.session_factory()
            state = TrackingStateRepository(session).get()
            enabled = bool(state and state.enabled)
            interval = state.interval_minutes if state else None
        except Exception as e:
            log_database_error(e, "Failed to read tracking state")
            return False
        finally:
            if session is not None:
                session.close()

        if not enabled:
            logger.info("Tracking disabled in settings, collector not started")
            return False

        try:
            return self.start(interval)
        except ValueError as e:
            logger.error("Stored collection interval is invalid", extra={
                "interval_minutes": interval,
                "error": str(e)
            })
            return False

    def _scheduler_loop(self, stop_event: threading.Event) -> None:
        self._scheduled_run()
        while not stop_event.wait(self.poll_seconds):
            self._scheduler.run_pending()

    def _scheduled_run(self) -> None:
        # A job that raises is retried on every poll and takes the thread down
        try:
            self.collect_now()
        except Exception as e:
            log_collection_error(e)

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    def is_scheduled(self) -> bool:
        return self._job is not None

    @property
    def is_collecting(self) -> bool:
        return self._run_lock.locked()

    def recent_window(self) -> timedelta:
        """
        Cross-process dedup window.

        While a schedule is active the window is capped at half the interval,
        so a short interval is never overridden by the recency skip.
        """
        minutes = self.recent_window_minutes
        if self._job is not None and self.interval_minutes:
            minutes = min(minutes, self.interval_minutes / 2)
        return timedelta(minutes=minutes)

    def status(self) -> dict:
        """Current schedule and last run outcome. Never raises."""
        job = self._job
        next_run = getattr(job, 'next_run', None) if job is not None else None
        return {
            "is_scheduled": job is not None,
            "is_collecting": self.is_collecting,
            "interval_minutes": self.interval_minutes,
            "next_run": next_run.isoformat() if next_run else None,
            "parks": [park.to_dict() for park in self.parks],
            "last_result": self.last_result.to_dict() if self.last_result else None,
        }

    # ------------------------------------------------------------------
    # Collection
    # ------------------------------------------------------------------

    def collect_now(self) -> CollectionResult:
        """
        Run one collection cycle synchronously.

        Subject to both overlap guards. Never raises.

        Returns:
            CollectionResult
        """
        if not self._run_lock.acquire(blocking=False):
            log_collection_skipped(SKIP_IN_PROGRESS)
            return CollectionResult(
                outcome=RunOutcome.SKIPPED,
                started_at=self._clock(),
                skip_reason=SKIP_IN_PROGRESS
            )

        try:
            result = self._run()
            self.last_result = result
            return result
        finally:
            self._run_lock.release()

    def _run(self) -> CollectionResult:
        started = time.monotonic()
        now = self._clock()
        result = CollectionResult(outcome=RunOutcome.COMPLETED, started_at=now)

        session = None
        try:
            session = self.session_factory()
            if SnapshotRepository(session).has_recent(now - self.recent_window()):
                return self._skip(result, SKIP_RECENT_DATA, started)

            context = self.enricher.build(now)
            log_collection_start(len(self.parks))

            fetched = self._fetch_all()
            any_open = any(
                reading.is_open
                for readings in fetched.values() if readings
                for reading in readings
            )
            if not any_open:
                return self._skip(result, SKIP_ALL_CLOSED, started)

            for park in self.parks:
                readings = fetched.get(park.park_id)
                if readings is None:
                    result.errors.append(f"No data for {park.name}")
                    continue
                result.snapshots_created += self._store_park(session, park, readings, context, result.errors)
                result.parks_processed += 1

            TrackingStateRepository(session).record_success(now)
            session.commit()

        except Exception as e:
            if session is not None:
                session.rollback()
            log_collection_error(e)
            result.outcome = RunOutcome.FAILED
            result.error_message = str(e)
            result.duration_seconds = round(time.monotonic() - started, 2)
            self._persist_state(lambda repo: repo.record_error(str(e)))
            return result

        finally:
            if session is not None:
                session.close()

        result.duration_seconds = round(time.monotonic() - started, 2)
        log_collection_complete(
            result.duration_seconds, result.parks_processed,
            result.snapshots_created, result.errors
        )
        return result

    def _skip(self, result: CollectionResult, reason: str, started: float) -> CollectionResult:
        result.outcome = RunOutcome.SKIPPED
        result.skip_reason = reason
        result.duration_seconds = round(time.monotonic() - started, 2)
        log_collection_skipped(reason)
        return result

    def _fetch_all(self) -> Dict[int, Optional[List[RideReading]]]:
        """Fetch every park concurrently; failures map to None."""
        if not self.parks:
            return {}

        def _fetch(park: Park) -> Optional[List[RideReading]]:
            try:
                return self.client.get_park_rides(park.park_id)
            except Exception as e:
                logger.warning(f"Failed to fetch wait times for {park.name}", extra={
                    "park_id": park.park_id,
                    "error": str(e),
                    "error_type": type(e).__name__
                })
                return None

        workers = max(1, min(self.max_workers, len(self.parks)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(_fetch, self.parks))

        return {park.park_id: readings for park, readings in zip(self.parks, results)}

    def _store_park(self, session: Session, park: Park, readings: List[RideReading],
                    context: Context, errors: List[str]) -> int:
        """
        Persist one park's readings. Each ride commits independently.

        Returns:
            Number of snapshots created
        """
        snapshot_repo = SnapshotRepository(session)
        metadata_repo = MetadataRepository(session)

        park_avg = park_average_wait(readings)
        open_count = sum(1 for r in readings if r.is_open)
        context_columns = context.snapshot_columns()
        peak_context = context.peak_context()
        created = 0

        for reading in readings:
            try:
                snapshot_repo.insert({
                    "ride_id": reading.ride_id,
                    "ride_name": reading.ride_name,
                    "park_id": park.park_id,
                    "land_id": reading.land_id,
                    "land_name": reading.land_name,
                    "wait_time": reading.wait_time,
                    "is_open": reading.is_open,
                    "recorded_at": context.recorded_at,
                    "park_avg_wait": park_avg,
                    "park_open_ride_count": open_count,
                    **context_columns,
                })
                metadata_repo.upsert_observation(
                    ride_id=reading.ride_id,
                    ride_name=reading.ride_name,
                    park_id=park.park_id,
                    land_id=reading.land_id,
                    land_name=reading.land_name,
                    seen_at=context.recorded_at,
                )
                if reading.is_open and reading.wait_time > 0:
                    metadata_repo.update_peak_if_higher(
                        reading.ride_id, reading.wait_time, context.recorded_at, peak_context
                    )
                session.commit()
                created += 1

            except Exception as e:
                session.rollback()
                if is_duplicate_key_error(e):
                    logger.debug("Duplicate snapshot ignored", extra={
                        "ride_id": reading.ride_id,
                        "recorded_at": context.recorded_at.isoformat()
                    })
                    continue
                errors.append(f"{reading.ride_name}: {e}")
                logger.warning("Failed to store ride reading", extra={
                    "park_id": park.park_id,
                    "ride_id": reading.ride_id,
                    "error": str(e)
                })

        try:
            metadata_repo.mark_missing_inactive(park.park_id, [r.ride_id for r in readings])
            session.commit()
        except Exception as e:
            session.rollback()
            errors.append(f"Failed to update active rides for {park.name}: {e}")
            log_database_error(e, f"Failed to mark inactive rides for park {park.park_id}")

        return created

    def _persist_state(self, update: Callable[[TrackingStateRepository], object]) -> None:
        """Apply a tracking-state update in its own session. Failures are logged only."""
        session = None
        try:
            session = self.session_factory()
            update(TrackingStateRepository(session))
            session.commit()
        except Exception as e:
            if session is not None:
                session.rollback()
            log_database_error(e, "Failed to persist tracking state")
        finally:
            if session is not None:
                session.close()

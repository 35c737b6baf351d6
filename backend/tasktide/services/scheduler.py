"""Periodic recurring task generation, guarded by a database lock row.

One ``SchedulerService`` is built by the application entry point when
``should_start_scheduler`` allows it. Each tick reads the persisted lock:
if another process holds it the tick is skipped, otherwise the lock is
claimed with a compare-and-set update, a generation pass runs, and the lock
is released no matter how the pass ended. A lock left behind by a crashed
process is not reclaimed automatically.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from enum import Enum as PyEnum

from apscheduler.schedulers.background import BackgroundScheduler

from tasktide.core.config import Settings
from tasktide.models.scheduler_state import DEFAULT_LOCK_ID
from tasktide.models.task import utcnow
from tasktide.repositories.scheduler_lock import SchedulerLockStore
from tasktide.schemas.generation import SchedulerStatus, TickOutcome, TickReport
from tasktide.services.generation import Clock, GenerationCoordinator
from tasktide.services.recurrence import normalize_datetime

logger = logging.getLogger(__name__)

JOB_ID = "recurring-task-generation"
MAX_ERROR_LENGTH = 200


class LoopState(str, PyEnum):
    STOPPED = "stopped"
    STARTING = "starting"
    IDLE = "idle"
    RUNNING = "running"


def should_start_scheduler(settings: Settings) -> bool:
    """Production or explicit opt-in, and never while building."""
    if settings.build_phase:
        return False
    return settings.environment == "production" or settings.enable_scheduler


class SchedulerService:
    def __init__(
        self,
        coordinator: GenerationCoordinator,
        lock_store: SchedulerLockStore,
        *,
        interval_seconds: int = 60 * 60,
        min_run_interval_seconds: int = 0,
        lock_id: str = DEFAULT_LOCK_ID,
        clock: Clock = utcnow,
    ) -> None:
        self._coordinator = coordinator
        self._lock_store = lock_store
        self._interval_seconds = interval_seconds
        self._min_run_interval = timedelta(seconds=min_run_interval_seconds)
        self._lock_id = lock_id
        self._clock = clock
        self._scheduler: BackgroundScheduler | None = None
        self._state = LoopState.STOPPED
        self._state_lock = threading.Lock()

    @classmethod
    def from_settings(
        cls,
        coordinator: GenerationCoordinator,
        lock_store: SchedulerLockStore,
        settings: Settings,
    ) -> "SchedulerService":
        return cls(
            coordinator,
            lock_store,
            interval_seconds=settings.scheduler_interval_seconds,
            min_run_interval_seconds=settings.scheduler_min_run_interval_seconds,
            lock_id=settings.scheduler_lock_id,
        )

    @property
    def state(self) -> LoopState:
        return self._state

    def start(self) -> None:
        with self._state_lock:
            if self._state != LoopState.STOPPED:
                logger.info("Recurring task scheduler already started in this process")
                return
            self._state = LoopState.STARTING

        scheduler = BackgroundScheduler(timezone=timezone.utc)
        # First run happens immediately; the lock row decides whether it does any work
        scheduler.add_job(
            self.tick,
            "interval",
            seconds=self._interval_seconds,
            id=JOB_ID,
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(timezone.utc),
        )
        try:
            scheduler.start()
        except Exception:
            with self._state_lock:
                self._state = LoopState.STOPPED
            raise

        with self._state_lock:
            self._scheduler = scheduler
            if self._state == LoopState.STARTING:
                self._state = LoopState.IDLE
        logger.info(f"Recurring task scheduler started (every {self._interval_seconds}s)")

    def stop(self) -> None:
        with self._state_lock:
            scheduler = self._scheduler
            self._scheduler = None
        if scheduler is not None:
            # Let an in-flight pass finish so it releases the lock
            scheduler.shutdown(wait=True)
        with self._state_lock:
            self._state = LoopState.STOPPED
        logger.info("Recurring task scheduler stopped")

    def trigger_now(self) -> TickReport:
        logger.info("Manual generation trigger")
        return self.tick(force=True)

    def tick(self, force: bool = False) -> TickReport:
        """
        Run one generation pass if no other process is running one.

        Args:
            force: Ignore the minimum interval since the last run

        Returns:
            What the tick did, with the pass result when a pass ran
        """
        now = normalize_datetime(self._clock())
        try:
            lock = self._lock_store.get_or_create_lock(self._lock_id)
            if lock.is_running:
                logger.info("Generation pass already running elsewhere, skipping")
                return TickReport(outcome=TickOutcome.SKIPPED_RUNNING)

            last_run_date = normalize_datetime(lock.last_run_date)
            if not force and now - last_run_date < self._min_run_interval:
                logger.info(f"Last run at {last_run_date.isoformat()}, skipping")
                return TickReport(outcome=TickOutcome.SKIPPED_RECENT)

            if not self._lock_store.try_claim(self._lock_id):
                logger.info("Another process claimed the scheduler lock, skipping")
                return TickReport(outcome=TickOutcome.SKIPPED_RUNNING)
        except Exception as e:
            logger.error(f"Could not acquire scheduler lock: {e}")
            return TickReport(outcome=TickOutcome.FAILED)

        return self._run_claimed_pass()

    def _run_claimed_pass(self) -> TickReport:
        previous_state = self._enter_running()
        result = None
        last_error = None
        try:
            pending = self._coordinator.count_pending_generations()
            logger.info(f"Running generation pass ({pending} template(s) pending)")
            result = self._coordinator.run_pass()
            if result.success:
                logger.info(result.message)
            else:
                logger.warning(f"{result.message} Errors: {result.errors}")
                last_error = "; ".join(
                    f"{error.template_id}: {error.error}" for error in result.errors[:3]
                )
        except Exception as e:
            logger.error(f"Generation pass failed: {e}")
            last_error = str(e)[:MAX_ERROR_LENGTH]
        finally:
            self._release_lock(last_error)
            self._leave_running(previous_state)

        if result is None:
            return TickReport(outcome=TickOutcome.FAILED)
        return TickReport(outcome=TickOutcome.RAN, result=result)

    def _release_lock(self, last_error: str | None) -> None:
        try:
            self._lock_store.set_lock(
                self._lock_id,
                is_running=False,
                last_run_date=normalize_datetime(self._clock()),
                last_error=last_error,
            )
        except Exception as e:
            logger.error(f"Could not release scheduler lock {self._lock_id}: {e}")

    def _enter_running(self) -> LoopState:
        with self._state_lock:
            previous = self._state
            self._state = LoopState.RUNNING
            return previous

    def _leave_running(self, previous: LoopState) -> None:
        with self._state_lock:
            if self._state != LoopState.RUNNING:
                return
            self._state = LoopState.STOPPED if previous == LoopState.STOPPED else LoopState.IDLE

    def status(self) -> SchedulerStatus:
        next_run_time = None
        scheduler = self._scheduler
        if scheduler is not None:
            job = scheduler.get_job(JOB_ID)
            next_run_time = job.next_run_time if job else None

        status = SchedulerStatus(
            state=self._state.value,
            started=scheduler is not None,
            interval_seconds=self._interval_seconds,
            next_run_time=next_run_time,
        )
        try:
            lock = self._lock_store.get_lock(self._lock_id)
        except Exception as e:
            logger.warning(f"Could not read scheduler lock: {e}")
            return status
        if lock is not None:
            status.is_running = lock.is_running
            status.last_run_date = lock.last_run_date
            status.last_error = lock.last_error
        return status

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from tasktide.models.scheduler_state import NEVER_RUN, SchedulerState

logger = logging.getLogger(__name__)


class SchedulerLockStore:
    """Persisted lock/heartbeat row shared by every server process."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def get_lock(self, lock_id: str) -> SchedulerState | None:
        with self._session_factory() as session:
            return session.get(SchedulerState, lock_id)

    def create_default_lock(self, lock_id: str) -> SchedulerState:
        """Create the lock row if missing; safe to call from several processes."""
        with self._session_factory() as session:
            state = SchedulerState(id=lock_id, is_running=False, last_run_date=NEVER_RUN)
            session.add(state)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                logger.debug(f"Scheduler lock {lock_id} already exists")
                return session.get(SchedulerState, lock_id)
            session.refresh(state)
            logger.info(f"Created scheduler lock {lock_id}")
            return state

    def get_or_create_lock(self, lock_id: str) -> SchedulerState:
        return self.get_lock(lock_id) or self.create_default_lock(lock_id)

    def try_claim(self, lock_id: str) -> bool:
        """Flip ``is_running`` from false to true; only one caller can win."""
        with self._session_factory() as session:
            result = session.execute(
                update(SchedulerState)
                .where(SchedulerState.id == lock_id, SchedulerState.is_running.is_(False))
                .values(is_running=True)
            )
            session.commit()
            return result.rowcount == 1

    def set_lock(self, lock_id: str, **fields: Any) -> None:
        with self._session_factory() as session:
            session.execute(
                update(SchedulerState).where(SchedulerState.id == lock_id).values(**fields)
            )
            session.commit()

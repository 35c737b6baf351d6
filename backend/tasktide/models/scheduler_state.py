from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, String, Text

from tasktide.db.base import Base
from tasktide.models.task import utcnow

DEFAULT_LOCK_ID = "recurring-task-scheduler"
# Far enough in the past that the first pass is always eligible
NEVER_RUN = datetime(2000, 1, 1)


class SchedulerState(Base):
    """Cross-process lock and heartbeat for the recurring task scheduler."""

    __tablename__ = "scheduler_state"

    id = Column(String(100), primary_key=True, default=DEFAULT_LOCK_ID)
    is_running = Column(Boolean, nullable=False, default=False)
    last_run_date = Column(DateTime, nullable=False, default=NEVER_RUN)
    last_error = Column(Text, nullable=True)
    updated_at = Column(
        DateTime,
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    def __repr__(self) -> str:
        return (
            f"<SchedulerState(id={self.id}, is_running={self.is_running}, "
            f"last_run_date={self.last_run_date})>"
        )

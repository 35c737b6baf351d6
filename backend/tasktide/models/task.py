from datetime import datetime, timezone
from enum import Enum as PyEnum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship

from tasktide.db.base import Base


def utcnow() -> datetime:
    """Current time as naive UTC, the way timestamps are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TaskPriority(str, PyEnum):
    URGENT_IMPORTANT = "urgent-important"
    NOT_URGENT_IMPORTANT = "not-urgent-important"
    URGENT_NOT_IMPORTANT = "urgent-not-important"
    NOT_URGENT_NOT_IMPORTANT = "not-urgent-not-important"


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        # A template can own at most one instance per generated title
        Index(
            "uq_tasks_parent_task_id_title",
            "parent_task_id",
            "title",
            unique=True,
            postgresql_where=text("parent_task_id IS NOT NULL"),
            sqlite_where=text("parent_task_id IS NOT NULL"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=True, index=True)
    project_id = Column(Integer, nullable=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    # Stored as the quadrant string so SQLite and PostgreSQL agree
    priority = Column(String(40), nullable=True, default=None)

    start_date = Column(DateTime, nullable=True)
    start_time = Column(String(5), nullable=True)  # "HH:MM"
    due_date = Column(DateTime, nullable=True)
    due_time = Column(String(5), nullable=True)
    resource_count = Column(Integer, nullable=True)
    manhours = Column(Float, nullable=True)
    depends_on_task_id = Column(
        Integer, ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True
    )
    completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime, nullable=True)

    # Recurring task fields
    is_recurring = Column(Boolean, nullable=False, default=False)
    recurring_pattern = Column(String(20), nullable=True)
    # Either a JSON object or a JSON-encoded string:
    # {"pattern": "DAILY|WEEKLY|MONTHLY|CUSTOM", "interval": 1,
    #  "daysOfWeek": [1, 3], "dayOfMonth": 15}
    recurring_config = Column(JSON, nullable=True, default=None)
    recurring_start_date = Column(DateTime, nullable=True)
    recurring_end_date = Column(DateTime, nullable=True)
    last_generated_date = Column(DateTime, nullable=True)
    next_generation_date = Column(DateTime, nullable=True, index=True)
    parent_task_id = Column(
        Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True
    )

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(
        DateTime,
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    parent_task = relationship(
        "Task",
        remote_side=[id],
        foreign_keys=[parent_task_id],
        backref="instances",
    )

    @property
    def is_template(self) -> bool:
        return bool(self.is_recurring) and self.parent_task_id is None

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class TaskBase(BaseModel):
    title: str
    description: str | None = None
    priority: str | None = None
    start_date: datetime | None = None
    start_time: str | None = None  # "HH:MM"
    due_date: datetime | None = None
    due_time: str | None = None
    resource_count: int | None = None
    manhours: float | None = None
    depends_on_task_id: int | None = None
    # Recurring task fields
    is_recurring: bool = False
    recurring_pattern: str | None = None
    recurring_config: dict[str, Any] | str | None = None
    recurring_start_date: datetime | None = None
    recurring_end_date: datetime | None = None


class TaskInDBBase(TaskBase):
    id: int
    user_id: int | None = None
    project_id: int | None = None
    completed: bool = False
    completed_at: datetime | None = None
    parent_task_id: int | None = None
    last_generated_date: datetime | None = None
    next_generation_date: datetime | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TaskPublic(TaskInDBBase):
    pass

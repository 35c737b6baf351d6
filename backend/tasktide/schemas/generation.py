from datetime import datetime
from enum import Enum as PyEnum

from pydantic import BaseModel, Field


class GenerationError(BaseModel):
    """A template that failed during a pass; ``"system"`` for pass-level failures."""
    template_id: int | str
    error: str


class GenerationResult(BaseModel):
    success: bool
    tasks_generated: int = 0
    errors: list[GenerationError] = Field(default_factory=list)
    message: str


class GenerationStatus(BaseModel):
    is_recurring: bool
    next_generation_date: datetime | None = None
    last_generated_date: datetime | None = None
    has_ended: bool
    generation_due_now: bool


class DuplicateGroup(BaseModel):
    template_id: int
    title: str
    keep_id: int
    duplicate_ids: list[int]


class DuplicateCleanupReport(BaseModel):
    total_removed: int = 0
    # template id -> number of duplicates deleted
    removed_by_template: dict[int, int] = Field(default_factory=dict)


class TickOutcome(str, PyEnum):
    RAN = "ran"
    SKIPPED_RUNNING = "skipped_running"
    SKIPPED_RECENT = "skipped_recent"
    FAILED = "failed"


class TickReport(BaseModel):
    outcome: TickOutcome
    result: GenerationResult | None = None


class SchedulerStatus(BaseModel):
    state: str
    started: bool
    interval_seconds: int
    next_run_time: datetime | None = None
    is_running: bool | None = None
    last_run_date: datetime | None = None
    last_error: str | None = None

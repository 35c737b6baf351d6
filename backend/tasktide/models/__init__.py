from tasktide.models.task import Task
from tasktide.models.scheduler_state import SchedulerState

__all__ = [
    "Task",
    "SchedulerState",
]

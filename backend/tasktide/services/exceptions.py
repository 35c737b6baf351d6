class RecurringTaskError(Exception):
    """Base class for recurring task generation errors."""


class TemplateNotFoundError(RecurringTaskError):
    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class NotRecurringTemplateError(RecurringTaskError):
    """The task exists but cannot generate instances."""


class DuplicateInstanceError(RecurringTaskError):
    """An instance with the same title already exists for the template."""

    def __init__(self, template_id: int, title: str) -> None:
        super().__init__(f"Instance '{title}' already exists for task {template_id}")
        self.template_id = template_id
        self.title = title

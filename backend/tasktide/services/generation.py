"""Service for generating task instances from recurring templates"""
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from tasktide.models.task import Task, utcnow
from tasktide.repositories.templates import TemplateStore
from tasktide.schemas.generation import GenerationError, GenerationResult, GenerationStatus
from tasktide.services.exceptions import (
    DuplicateInstanceError,
    NotRecurringTemplateError,
    TemplateNotFoundError,
)
from tasktide.services.instance_materializer import materialize_instance
from tasktide.services.recurrence import (
    is_recurring_task_ended,
    next_occurrence_after,
    normalize_datetime,
    parse_recurring_config,
    should_generate_recurring_task,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def _summary_message(tasks_generated: int, error_count: int) -> str:
    message = f"Generated {_plural(tasks_generated, 'task instance')}."
    if error_count:
        message += f" {_plural(error_count, 'error')} occurred."
    return message


class GenerationCoordinator:
    """Walks every recurring template and materializes the instances that are due."""

    def __init__(self, store: TemplateStore, clock: Clock = utcnow) -> None:
        self._store = store
        self._clock = clock

    def now(self) -> datetime:
        return normalize_datetime(self._clock())

    def run_pass(self) -> GenerationResult:
        """
        Generate one instance for every template that is due.

        A failing template is recorded and skipped; it never aborts the pass.
        """
        now = self.now()
        try:
            templates = self._store.find_recurring_templates()
        except Exception as e:
            logger.error(f"Generation service error: {e}")
            return GenerationResult(
                success=False,
                tasks_generated=0,
                errors=[GenerationError(template_id="system", error=str(e))],
                message=f"Generation service failed: {e}",
            )

        logger.info(f"Found {len(templates)} recurring task templates")

        tasks_generated = 0
        errors: list[GenerationError] = []
        for template in templates:
            try:
                if self.generate_instance_if_due(template, now):
                    tasks_generated += 1
            except Exception as e:
                logger.error(f"Error generating instance for task {template.id}: {e}")
                errors.append(GenerationError(template_id=template.id, error=str(e)))

        return GenerationResult(
            success=not errors,
            tasks_generated=tasks_generated,
            errors=errors,
            message=_summary_message(tasks_generated, len(errors)),
        )

    def generate_instance_if_due(self, template: Task, now: datetime | None = None) -> bool:
        """Returns True if an instance was generated for ``template``."""
        now = normalize_datetime(now) if now else self.now()

        config = parse_recurring_config(template.recurring_config)
        if config is None:
            logger.debug(f"Task {template.id} has no valid recurring config, skipping")
            return False

        if is_recurring_task_ended(
            template.last_generated_date, config, template.recurring_end_date, now
        ):
            logger.info(f"Task {template.id} has ended, skipping generation")
            return False

        if not should_generate_recurring_task(
            template.last_generated_date, template.next_generation_date, now
        ):
            return False

        try:
            instance = materialize_instance(self._store, template, now)
        except DuplicateInstanceError as e:
            # Another pass won the race for this occurrence
            logger.info(f"Task {template.id} already generated '{e.title}', skipping")
            return False

        anchor = normalize_datetime(template.recurring_start_date) or now
        next_date = next_occurrence_after(anchor, config, now)
        self._store.update_template_bookkeeping(template.id, now, next_date)

        logger.info(
            f"Generated instance {instance.id} for task {template.id}, next generation: {next_date}"
        )
        return True

    def generate_instance_for_task(self, task_id: int) -> bool:
        """Re-run generation for one template, e.g. to recover a missed run."""
        task = self._store.get_task(task_id)
        if not task:
            raise TemplateNotFoundError(task_id)
        if not task.is_recurring:
            raise NotRecurringTemplateError(f"Task {task_id} is not a recurring task")
        if task.parent_task_id:
            raise NotRecurringTemplateError(f"Task {task_id} is an instance, not a template")
        return self.generate_instance_if_due(task)

    def get_generation_status(self, task_id: int) -> GenerationStatus | None:
        task = self._store.get_task(task_id)
        if not task:
            return None

        now = self.now()
        return GenerationStatus(
            is_recurring=bool(task.is_recurring),
            next_generation_date=task.next_generation_date,
            last_generated_date=task.last_generated_date,
            has_ended=is_recurring_task_ended(
                task.last_generated_date, task.recurring_config, task.recurring_end_date, now
            ),
            generation_due_now=should_generate_recurring_task(
                task.last_generated_date, task.next_generation_date, now
            ),
        )

    def get_generated_instances(self, template_id: int) -> list[Task]:
        """Instances of a template, newest first."""
        return list(reversed(self._store.list_instances(template_id)))

    def count_pending_generations(self) -> int:
        return self._store.count_due_recurring_templates(self.now())

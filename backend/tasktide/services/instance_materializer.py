"""Build concrete task instances from recurring templates"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from tasktide.models.task import Task
from tasktide.repositories.templates import TemplateStore
from tasktide.services.recurrence import normalize_datetime

_ONE_DAY = timedelta(days=1)


def generation_marker(now: datetime) -> str:
    """Short US-style date (e.g. 10/19/2026) appended to instance titles."""
    return f"{now.month}/{now.day}/{now.year}"


def instance_title(template: Task, now: datetime) -> str:
    return f"{template.title} ({generation_marker(now)})"


def _shift(value: datetime | None, days: int) -> datetime | None:
    if value is None:
        return None
    return value + timedelta(days=days)


def build_instance_fields(template: Task, now: datetime) -> dict[str, Any]:
    """
    Column values for the instance generated from ``template`` at ``now``.

    Start/due dates move forward by the whole days elapsed since the
    series started; time-of-day fields are copied unchanged.
    """
    now = normalize_datetime(now)
    start = normalize_datetime(template.recurring_start_date)
    days_since_start = (now - start) // _ONE_DAY if start else 0

    return {
        "user_id": template.user_id,
        "project_id": template.project_id,
        "title": instance_title(template, now),
        "description": template.description,
        "priority": template.priority,
        "start_date": _shift(template.start_date, days_since_start),
        "start_time": template.start_time,
        "due_date": _shift(template.due_date, days_since_start),
        "due_time": template.due_time,
        "resource_count": template.resource_count,
        "manhours": template.manhours,
        "depends_on_task_id": template.depends_on_task_id,
        # Link to the template; instances are never regenerated themselves
        "parent_task_id": template.id,
        "is_recurring": False,
    }


def materialize_instance(store: TemplateStore, template: Task, now: datetime) -> Task:
    """Insert exactly one instance row. The template itself is not modified."""
    return store.create_instance(build_instance_fields(template, now))

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from tasktide.models.task import Task
from tasktide.services.exceptions import DuplicateInstanceError

logger = logging.getLogger(__name__)


def _template_filter():
    return (Task.is_recurring.is_(True), Task.parent_task_id.is_(None))


def _due_filter(now: datetime):
    """Templates whose next generation date has passed and whose series is still open."""
    return (
        *_template_filter(),
        Task.next_generation_date.is_not(None),
        Task.next_generation_date <= now,
        or_(Task.recurring_end_date.is_(None), Task.recurring_end_date > now),
    )


class TemplateStore:
    """Task rows as seen by the recurring task generator.

    Every method runs in its own short-lived session, so each write is a
    single committed statement.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def get_task(self, task_id: int) -> Task | None:
        with self._session_factory() as session:
            return session.get(Task, task_id)

    def find_recurring_templates(self) -> list[Task]:
        with self._session_factory() as session:
            stmt = select(Task).where(*_template_filter()).order_by(Task.id.asc())
            return list(session.scalars(stmt))

    def find_due_recurring_templates(self, now: datetime) -> list[Task]:
        with self._session_factory() as session:
            stmt = select(Task).where(*_due_filter(now)).order_by(Task.id.asc())
            return list(session.scalars(stmt))

    def count_due_recurring_templates(self, now: datetime) -> int:
        with self._session_factory() as session:
            stmt = (
                select(func.count())
                .select_from(Task)
                .where(*_due_filter(now))
            )
            return session.scalar(stmt) or 0

    def create_instance(self, fields: dict[str, Any]) -> Task:
        """Insert a generated instance.

        Raises DuplicateInstanceError when the (parent, title) pair is taken.
        """
        with self._session_factory() as session:
            instance = Task(**fields)
            session.add(instance)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                parent_id = fields.get("parent_task_id")
                title = fields.get("title")
                if parent_id is not None and self._instance_exists(session, parent_id, title):
                    raise DuplicateInstanceError(parent_id, title) from None
                raise
            session.refresh(instance)
            return instance

    def update_template_bookkeeping(
        self,
        template_id: int,
        last_generated_date: datetime,
        next_generation_date: datetime | None,
    ) -> None:
        with self._session_factory() as session:
            session.execute(
                update(Task)
                .where(Task.id == template_id)
                .values(
                    last_generated_date=last_generated_date,
                    next_generation_date=next_generation_date,
                )
            )
            session.commit()

    def list_instances(self, template_id: int) -> list[Task]:
        """Instances of a template, oldest first."""
        with self._session_factory() as session:
            stmt = (
                select(Task)
                .where(Task.parent_task_id == template_id)
                .order_by(Task.created_at.asc(), Task.id.asc())
            )
            return list(session.scalars(stmt))

    def delete_tasks(self, task_ids: list[int]) -> int:
        if not task_ids:
            return 0
        with self._session_factory() as session:
            result = session.execute(delete(Task).where(Task.id.in_(task_ids)))
            session.commit()
            return result.rowcount or 0

    @staticmethod
    def _instance_exists(session: Session, parent_id: int, title: str | None) -> bool:
        stmt = select(Task.id).where(Task.parent_task_id == parent_id, Task.title == title)
        return session.scalar(stmt) is not None

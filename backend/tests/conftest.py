from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tasktide.db.base import Base
from tasktide.models import SchedulerState, Task  # noqa: F401
from tasktide.repositories.scheduler_lock import SchedulerLockStore
from tasktide.repositories.templates import TemplateStore

NOW = datetime(2026, 10, 19, 10, 30)


class FixedClock:
    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def store(session_factory) -> TemplateStore:
    return TemplateStore(session_factory)


@pytest.fixture()
def lock_store(session_factory) -> SchedulerLockStore:
    return SchedulerLockStore(session_factory)


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture()
def add_task(session_factory):
    def _add_task(**fields) -> Task:
        fields.setdefault("title", "Task")
        with session_factory() as session:
            task = Task(**fields)
            session.add(task)
            session.commit()
            session.refresh(task)
            return task

    return _add_task


@pytest.fixture()
def add_template(add_task):
    """A daily template that is due at ``NOW`` unless overridden."""

    def _add_template(**fields) -> Task:
        values = {
            "user_id": 1,
            "project_id": 1,
            "title": "Daily Standup",
            "description": "Team sync",
            "priority": "urgent-important",
            "start_date": datetime(2026, 10, 1, 9, 0),
            "start_time": "09:00",
            "due_date": datetime(2026, 10, 1, 9, 0),
            "due_time": "09:15",
            "is_recurring": True,
            "recurring_pattern": "DAILY",
            "recurring_config": {"pattern": "DAILY", "interval": 1},
            "recurring_start_date": datetime(2026, 10, 1, 9, 0),
            "last_generated_date": NOW - timedelta(days=1),
            "next_generation_date": NOW - timedelta(seconds=1),
        }
        values.update(fields)
        return add_task(**values)

    return _add_template

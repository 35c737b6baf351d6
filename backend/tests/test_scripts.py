from datetime import datetime

from tasktide.db import init_scheduler_state
from tasktide.db.seed import seed_demo_data
from tasktide.models.scheduler_state import NEVER_RUN
from tasktide.models.task import Task
from tasktide.services.recurrence import parse_recurring_config


def test_seed_creates_recurring_templates_once(session_factory):
    with session_factory() as session:
        seed_demo_data(session)
        seed_demo_data(session)
        templates = session.query(Task).all()

    assert len(templates) == 3
    for template in templates:
        assert template.is_template
        assert parse_recurring_config(template.recurring_config) is not None
        assert template.next_generation_date is not None
        assert template.next_generation_date >= datetime(2000, 1, 1)


def test_init_scheduler_state_creates_lock(monkeypatch, session_factory, lock_store, capsys):
    monkeypatch.setattr(init_scheduler_state, "SessionLocal", session_factory)

    init_scheduler_state.main()
    init_scheduler_state.main()

    lock = lock_store.get_lock("recurring-task-scheduler")
    assert lock.last_run_date == NEVER_RUN
    assert "is_running=False" in capsys.readouterr().out

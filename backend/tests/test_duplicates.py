from datetime import datetime

import pytest
from sqlalchemy.exc import IntegrityError

from tasktide.db.dedupe_instances import main as dedupe_main
from tasktide.models.task import Task
from tasktide.services.duplicates import find_duplicate_instances, remove_duplicate_instances
from tasktide.services.exceptions import DuplicateInstanceError

UNIQUE_INDEX = "uq_tasks_parent_task_id_title"


def _unique_index():
    return next(index for index in Task.__table__.indexes if index.name == UNIQUE_INDEX)


@pytest.fixture()
def without_unique_index(engine):
    """Schema as it was before duplicate instances were rejected."""
    index = _unique_index()
    index.drop(bind=engine)
    yield engine
    # drop_all in the engine fixture expects the index to exist; clear any
    # duplicate rows the test left behind so the index can be rebuilt
    with engine.begin() as conn:
        conn.execute(Task.__table__.delete())
    index.create(bind=engine, checkfirst=True)


def _add_instance(add_task, template, title, created_at):
    return add_task(
        title=title,
        parent_task_id=template.id,
        created_at=created_at,
        updated_at=created_at,
    )


def test_store_rejects_second_instance_with_same_title(store, add_template):
    template = add_template()
    fields = {"title": "Daily Standup (10/19/2026)", "parent_task_id": template.id}

    store.create_instance(fields)
    with pytest.raises(DuplicateInstanceError) as excinfo:
        store.create_instance(fields)

    assert excinfo.value.template_id == template.id
    assert len(store.list_instances(template.id)) == 1


def test_store_reraises_other_integrity_errors(store, add_template):
    template = add_template()
    with pytest.raises(IntegrityError):
        store.create_instance({"title": None, "parent_task_id": template.id})


def test_plain_tasks_may_share_titles(store, add_task):
    add_task(title="Groceries")
    add_task(title="Groceries")


def test_find_duplicates_keeps_earliest(without_unique_index, store, add_task, add_template):
    template = add_template()
    first = _add_instance(add_task, template, "Daily Standup (10/19/2026)", datetime(2026, 10, 19, 10, 0))
    second = _add_instance(add_task, template, "Daily Standup (10/19/2026)", datetime(2026, 10, 19, 10, 1))
    third = _add_instance(add_task, template, "Daily Standup (10/19/2026)", datetime(2026, 10, 19, 10, 2))
    _add_instance(add_task, template, "Daily Standup (10/20/2026)", datetime(2026, 10, 20, 10, 0))

    groups = find_duplicate_instances(store)

    assert len(groups) == 1
    assert groups[0].template_id == template.id
    assert groups[0].keep_id == first.id
    assert groups[0].duplicate_ids == [second.id, third.id]


def test_remove_duplicates_allows_unique_index(without_unique_index, store, add_task, add_template):
    daily = add_template(title="Daily Standup")
    weekly = add_template(title="Weekly Review")
    for minute in range(3):
        _add_instance(add_task, daily, "Daily Standup (10/19/2026)", datetime(2026, 10, 19, 10, minute))
    for minute in range(2):
        _add_instance(add_task, weekly, "Weekly Review (10/19/2026)", datetime(2026, 10, 19, 10, minute))

    report = remove_duplicate_instances(store)

    assert report.total_removed == 3
    assert report.removed_by_template == {daily.id: 2, weekly.id: 1}
    assert find_duplicate_instances(store) == []
    assert len(store.list_instances(daily.id)) == 1

    _unique_index().create(bind=without_unique_index)


def test_dedupe_script_is_dry_run_by_default(
    without_unique_index, monkeypatch, session_factory, store, add_task, add_template, capsys
):
    monkeypatch.setattr("tasktide.db.dedupe_instances.SessionLocal", session_factory)
    template = add_template()
    for minute in range(2):
        _add_instance(add_task, template, "Daily Standup (10/19/2026)", datetime(2026, 10, 19, 10, minute))

    dedupe_main([])
    assert len(store.list_instances(template.id)) == 2

    dedupe_main(["--apply"])
    assert len(store.list_instances(template.id)) == 1
    assert "Removed 1" in capsys.readouterr().out

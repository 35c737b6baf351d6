from datetime import datetime, timedelta

import pytest

from conftest import NOW
from tasktide.repositories.templates import TemplateStore
from tasktide.services.exceptions import NotRecurringTemplateError, TemplateNotFoundError
from tasktide.services.generation import GenerationCoordinator


class SnapshotStore(TemplateStore):
    """Serves a template list read before another pass committed."""

    def __init__(self, session_factory, snapshot):
        super().__init__(session_factory)
        self._snapshot = snapshot

    def find_recurring_templates(self):
        return self._snapshot


class FailingInsertStore(TemplateStore):
    def __init__(self, session_factory, failing_template_id):
        super().__init__(session_factory)
        self._failing_template_id = failing_template_id

    def create_instance(self, fields):
        if fields["parent_task_id"] == self._failing_template_id:
            raise RuntimeError("insert failed")
        return super().create_instance(fields)


class UnavailableStore(TemplateStore):
    def find_recurring_templates(self):
        raise RuntimeError("database unavailable")


@pytest.fixture()
def coordinator(store, clock) -> GenerationCoordinator:
    return GenerationCoordinator(store, clock=clock)


def test_due_daily_template_generates_one_instance(coordinator, store, add_template):
    template = add_template()

    result = coordinator.run_pass()

    assert result.success
    assert result.tasks_generated == 1
    assert result.errors == []
    assert result.message == "Generated 1 task instance."

    instances = store.list_instances(template.id)
    assert [instance.title for instance in instances] == ["Daily Standup (10/19/2026)"]
    assert instances[0].is_recurring is False

    updated = store.get_task(template.id)
    assert updated.last_generated_date == NOW
    assert updated.next_generation_date == datetime(2026, 10, 20, 9, 0)


def test_ended_template_is_left_untouched(coordinator, store, add_template):
    template = add_template(recurring_end_date=NOW - timedelta(days=1))

    result = coordinator.run_pass()

    assert result.tasks_generated == 0
    assert store.list_instances(template.id) == []
    unchanged = store.get_task(template.id)
    assert unchanged.next_generation_date == template.next_generation_date
    assert unchanged.last_generated_date == template.last_generated_date


def test_template_not_yet_due_is_skipped(coordinator, store, add_template):
    template = add_template(next_generation_date=NOW + timedelta(hours=1))

    assert coordinator.run_pass().tasks_generated == 0
    assert store.list_instances(template.id) == []


def test_template_without_next_date_is_skipped(coordinator, store, add_template):
    template = add_template(next_generation_date=None)

    assert coordinator.run_pass().tasks_generated == 0
    assert store.list_instances(template.id) == []


def test_invalid_config_pauses_template(coordinator, store, add_template):
    template = add_template(recurring_config="not json")

    result = coordinator.run_pass()

    assert result.success
    assert result.tasks_generated == 0
    assert store.list_instances(template.id) == []


def test_instances_and_plain_tasks_are_not_templates(coordinator, store, add_task, add_template):
    template = add_template()
    add_task(title="One-off", next_generation_date=NOW - timedelta(days=1))
    add_task(
        title="Orphan instance",
        is_recurring=True,
        parent_task_id=template.id,
        recurring_config={"pattern": "DAILY", "interval": 1},
        next_generation_date=NOW - timedelta(days=1),
    )

    assert coordinator.run_pass().tasks_generated == 1


def test_back_to_back_passes_generate_once(coordinator, store, add_template):
    template = add_template()

    first = coordinator.run_pass()
    second = coordinator.run_pass()

    assert first.tasks_generated == 1
    assert second.tasks_generated == 0
    assert len(store.list_instances(template.id)) == 1


def test_stale_snapshot_cannot_duplicate_instance(session_factory, store, clock, add_template):
    template = add_template()
    stale_snapshot = store.find_recurring_templates()

    winner = GenerationCoordinator(store, clock=clock)
    loser = GenerationCoordinator(SnapshotStore(session_factory, stale_snapshot), clock=clock)

    assert winner.run_pass().tasks_generated == 1
    result = loser.run_pass()

    assert result.success
    assert result.tasks_generated == 0
    assert result.errors == []
    assert len(store.list_instances(template.id)) == 1
    assert store.get_task(template.id).next_generation_date == datetime(2026, 10, 20, 9, 0)


def test_failing_template_does_not_abort_pass(session_factory, store, clock, add_template):
    broken = add_template(title="Broken")
    healthy = add_template(title="Healthy")
    coordinator = GenerationCoordinator(FailingInsertStore(session_factory, broken.id), clock=clock)

    result = coordinator.run_pass()

    assert not result.success
    assert result.tasks_generated == 1
    assert [(error.template_id, error.error) for error in result.errors] == [
        (broken.id, "insert failed")
    ]
    assert result.message == "Generated 1 task instance. 1 error occurred."
    assert len(store.list_instances(healthy.id)) == 1
    # The failed template stays due for the next pass
    assert store.get_task(broken.id).next_generation_date == broken.next_generation_date


def test_fetch_failure_is_reported_as_system_error(session_factory, clock):
    coordinator = GenerationCoordinator(UnavailableStore(session_factory), clock=clock)

    result = coordinator.run_pass()

    assert not result.success
    assert result.tasks_generated == 0
    assert result.errors[0].template_id == "system"
    assert result.message == "Generation service failed: database unavailable"


def test_weekly_template_moves_to_next_listed_day(coordinator, store, add_template):
    template = add_template(
        recurring_pattern="WEEKLY",
        # Mondays and Wednesdays
        recurring_config={"pattern": "WEEKLY", "interval": 1, "daysOfWeek": [1, 3]},
    )

    coordinator.run_pass()

    assert store.get_task(template.id).next_generation_date == datetime(2026, 10, 21, 9, 0)


def test_monthly_template_keeps_month_end_anchor(coordinator, store, add_template):
    template = add_template(
        recurring_pattern="MONTHLY",
        recurring_config={"pattern": "MONTHLY", "interval": 1, "dayOfMonth": 31},
        recurring_start_date=datetime(2026, 1, 31, 9, 0),
    )

    coordinator.run_pass()

    assert store.get_task(template.id).next_generation_date == datetime(2026, 10, 31, 9, 0)


@pytest.mark.parametrize(
    "config",
    [
        {"pattern": "DAILY", "interval": 2},
        {"pattern": "WEEKLY", "interval": 2, "daysOfWeek": [0, 6]},
        {"pattern": "MONTHLY", "interval": 1, "dayOfMonth": 15},
        {"pattern": "CUSTOM", "interval": 10},
    ],
)
def test_next_generation_date_always_moves_past_now(coordinator, store, add_template, config):
    template = add_template(recurring_pattern=config["pattern"], recurring_config=config)

    coordinator.run_pass()

    updated = store.get_task(template.id)
    assert updated.next_generation_date > NOW
    assert updated.next_generation_date > template.next_generation_date


def test_late_template_catches_up_with_single_instance(coordinator, store, add_template):
    template = add_template(next_generation_date=NOW - timedelta(days=5))

    assert coordinator.run_pass().tasks_generated == 1
    assert len(store.list_instances(template.id)) == 1
    assert store.get_task(template.id).next_generation_date == datetime(2026, 10, 20, 9, 0)


def test_generate_for_missing_task(coordinator):
    with pytest.raises(TemplateNotFoundError):
        coordinator.generate_instance_for_task(999)


def test_generate_for_plain_task(coordinator, add_task):
    task = add_task(title="One-off")
    with pytest.raises(NotRecurringTemplateError):
        coordinator.generate_instance_for_task(task.id)


def test_generate_for_instance(coordinator, add_task, add_template):
    template = add_template()
    instance = add_task(title="Copy", is_recurring=True, parent_task_id=template.id)
    with pytest.raises(NotRecurringTemplateError):
        coordinator.generate_instance_for_task(instance.id)


def test_generate_for_due_template(coordinator, store, add_template):
    template = add_template()

    assert coordinator.generate_instance_for_task(template.id) is True
    assert coordinator.generate_instance_for_task(template.id) is False
    assert len(store.list_instances(template.id)) == 1


def test_generation_status(coordinator, add_template):
    template = add_template()

    status = coordinator.get_generation_status(template.id)

    assert status.is_recurring
    assert status.generation_due_now
    assert not status.has_ended
    assert status.next_generation_date == template.next_generation_date
    assert coordinator.get_generation_status(999) is None


def test_generated_instances_newest_first(coordinator, clock, add_template):
    template = add_template()
    coordinator.run_pass()
    clock.advance(days=1)
    coordinator.run_pass()

    titles = [instance.title for instance in coordinator.get_generated_instances(template.id)]
    assert titles == ["Daily Standup (10/20/2026)", "Daily Standup (10/19/2026)"]


def test_count_pending_generations(coordinator, add_template):
    add_template(title="Due")
    add_template(title="Later", next_generation_date=NOW + timedelta(days=1))
    add_template(title="Ended", recurring_end_date=NOW - timedelta(days=1))
    add_template(title="Never", next_generation_date=None)

    assert coordinator.count_pending_generations() == 1

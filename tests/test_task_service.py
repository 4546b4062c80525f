from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timezone

import pytest

from airdrop_tasks.config import SETTINGS
from airdrop_tasks.domain.entities import RecurringTaskEntity
from airdrop_tasks.domain.enums import StatusFilter, TaskFrequency
from airdrop_tasks.domain.errors import InvalidParameter, PreconditionViolation, TaskNotFound
from airdrop_tasks.domain.filters import TaskFilters
from airdrop_tasks.domain.recurrence import EveryXDays, SpecificDaysOfWeek
from airdrop_tasks.services.task_service import RecurringTaskService


class FakeRepo:
    def __init__(self) -> None:
        self.tasks: dict[str, RecurringTaskEntity] = {}
        self._id = 1

    def list_tasks(self) -> list[RecurringTaskEntity]:
        return list(self.tasks.values())

    def get_task(self, task_id: str) -> RecurringTaskEntity | None:
        return self.tasks.get(task_id)

    def create_task(self, task: RecurringTaskEntity) -> RecurringTaskEntity:
        created = replace(task, id=f"task-{self._id}", version=1)
        self.tasks[created.id] = created
        self._id += 1
        return created

    def save_task(self, task: RecurringTaskEntity) -> RecurringTaskEntity:
        assert self.tasks[task.id].version == task.version
        saved = replace(task, version=task.version + 1)
        self.tasks[task.id] = saved
        return saved

    def delete_task(self, task_id: str) -> None:
        self.tasks.pop(task_id, None)


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 1, 9, 30, tzinfo=timezone.utc))


@pytest.fixture()
def service(clock: FakeClock) -> RecurringTaskService:
    return RecurringTaskService(FakeRepo(), clock=clock)


def test_create_task_seeds_due_date_from_clock(service: RecurringTaskService) -> None:
    task = service.create_task({
        "name": "Claim faucet",
        "frequency": TaskFrequency.EVERY_X_DAYS.value,
        "every_x_days_value": 3,
        "nth_value": 42,
        "tags": "faucet, testnet",
    })

    assert task.id == "task-1"
    assert task.recurrence == EveryXDays(3)
    assert task.next_due_date == date(2024, 1, 4)
    assert task.tags == frozenset({"faucet", "testnet"})
    assert task.is_active


def test_create_task_keeps_explicit_due_date(service: RecurringTaskService) -> None:
    task = service.create_task({
        "name": "Vote",
        "frequency": "specific_days_of_week",
        "specific_days_of_week_value": ["Mon", "Thu"],
        "next_due_date": "2024-01-01",
    })

    assert task.recurrence == SpecificDaysOfWeek(["Mon", "Thu"])
    assert task.next_due_date == date(2024, 1, 1)


def test_create_task_requires_name_and_frequency(service: RecurringTaskService) -> None:
    with pytest.raises(InvalidParameter):
        service.create_task({"name": "No frequency"})
    with pytest.raises(InvalidParameter):
        service.create_task({"frequency": "daily"})
    with pytest.raises(InvalidParameter):
        service.create_task({"name": "Bad", "frequency": "every_x_days", "every_x_days_value": 0})


def test_complete_task_persists_history_and_next_due(service: RecurringTaskService, clock: FakeClock) -> None:
    task = service.create_task({
        "name": "Claim faucet",
        "frequency": "every_x_days",
        "every_x_days_value": 3,
        "next_due_date": "2024-01-01",
    })

    done = service.complete_task(task.id)

    assert done.next_due_date == date(2024, 1, 4)
    assert done.current_streak == 1
    assert done.version == 2
    assert service.completion_history(task.id) == [clock.now]


def test_one_time_task_deactivates_then_reactivates(service: RecurringTaskService, clock: FakeClock) -> None:
    task = service.create_task({"name": "Mint pass", "frequency": "one_time"})
    assert task.next_due_date == date(2024, 1, 1)

    done = service.complete_task(task.id)
    assert not done.is_active
    with pytest.raises(PreconditionViolation):
        service.complete_task(task.id)

    clock.now = datetime(2024, 3, 5, tzinfo=timezone.utc)
    revived = service.reactivate_task(task.id)
    assert revived.is_active
    assert revived.next_due_date == date(2024, 3, 5)


def test_snooze_uses_configured_default(service: RecurringTaskService) -> None:
    task = service.create_task({"name": "Bridge", "frequency": "weekly", "next_due_date": "2024-01-01"})

    assert service.snooze_task(task.id, 3).next_due_date == date(2024, 1, 4)
    snoozed = service.snooze_task(task.id)
    assert (snoozed.next_due_date - date(2024, 1, 4)).days == SETTINGS.default_snooze_days
    assert service.completion_history(task.id) == []


def test_update_task_rebuilds_rule_and_protects_history(service: RecurringTaskService) -> None:
    task = service.create_task({"name": "Bridge", "frequency": "daily"})
    service.complete_task(task.id)

    updated = service.update_task(task.id, {
        "name": "Bridge weekly",
        "every_x_days_value": 7,
        "frequency": "every_x_days",
        "completion_history": [],
        "id": "hijack",
    })

    assert updated.id == task.id
    assert updated.name == "Bridge weekly"
    assert updated.recurrence == EveryXDays(7)
    assert len(updated.completion_history) == 1


def test_unknown_task_raises(service: RecurringTaskService) -> None:
    with pytest.raises(TaskNotFound):
        service.complete_task("missing")
    with pytest.raises(TaskNotFound):
        service.update_task("missing", {"name": "x"})


def test_list_tasks_and_stats_use_clock_date(service: RecurringTaskService, clock: FakeClock) -> None:
    service.create_task({"name": "Past", "frequency": "daily", "next_due_date": "2023-12-25"})
    service.create_task({"name": "Today", "frequency": "daily", "next_due_date": "2024-01-01"})
    service.create_task({"name": "Later", "frequency": "daily", "next_due_date": "2024-01-20"})

    overdue = service.list_tasks(TaskFilters(status=StatusFilter.OVERDUE))
    assert [row.task.name for row in overdue] == ["Past"]

    stats = service.get_stats()
    assert (stats.total, stats.overdue, stats.due_today) == (3, 1, 1)

    clock.now = datetime(2024, 1, 21, tzinfo=timezone.utc)
    assert service.get_stats().overdue == 3


def test_delete_task(service: RecurringTaskService) -> None:
    task = service.create_task({"name": "Temp", "frequency": "daily"})

    service.delete_task(task.id)

    assert service.get_task(task.id) is None
    with pytest.raises(TaskNotFound):
        service.delete_task(task.id)


def test_update_task_blanks_optional_links(service: RecurringTaskService) -> None:
    task = service.create_task({
        "name": "Bridge",
        "frequency": "daily",
        "associated_airdrop_id": "drop-1",
        "category": "defi",
    })

    updated = service.update_task(task.id, {"associated_airdrop_id": "", "category": "", "notes": None})

    assert updated.associated_airdrop_id is None
    assert updated.category is None
    assert updated.notes == ""

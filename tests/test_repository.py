from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timezone
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from airdrop_tasks.domain.entities import RecurringTaskEntity
from airdrop_tasks.domain.errors import TaskNotFound
from airdrop_tasks.domain.lifecycle import complete
from airdrop_tasks.domain.recurrence import NthWeekdayOfMonth, SpecificDates, Weekday
from airdrop_tasks.infra.db import init_db
from airdrop_tasks.infra.repository import StaleTaskError, TaskRepository
from airdrop_tasks.services.task_service import RecurringTaskService


@pytest.fixture()
def repo(tmp_path: Path) -> TaskRepository:
    engine = create_engine(f"sqlite:///{tmp_path / 'tasks.sqlite3'}")
    init_db(engine)
    return TaskRepository(sessionmaker(bind=engine, autoflush=False, autocommit=False))


def make_task(**overrides) -> RecurringTaskEntity:
    data = {
        "id": None,
        "name": "Governance vote",
        "description": "Vote on the weekly proposal",
        "recurrence": NthWeekdayOfMonth(2, Weekday.TUE),
        "next_due_date": date(2024, 2, 13),
        "tags": frozenset({"dao", "layerzero"}),
        "associated_airdrop_id": "drop-7",
        "notes": "Use the cold wallet",
    }
    data.update(overrides)
    return RecurringTaskEntity(**data)


def test_create_and_get_preserve_the_task(repo: TaskRepository) -> None:
    created = repo.create_task(make_task())

    loaded = repo.get_task(created.id)

    assert loaded is not None
    assert loaded.id
    assert loaded.version == 1
    assert loaded.recurrence == NthWeekdayOfMonth(2, Weekday.TUE)
    assert loaded.tags == frozenset({"dao", "layerzero"})
    assert loaded.associated_airdrop_id == "drop-7"
    assert loaded.notes == "Use the cold wallet"
    assert loaded.created_at is not None


def test_save_round_trips_completion_state(repo: TaskRepository) -> None:
    created = repo.create_task(make_task())
    completed_at = datetime(2024, 2, 13, 18, 45, tzinfo=timezone.utc)

    saved = repo.save_task(complete(created, completed_at))

    assert saved.version == 2
    assert saved.completion_history == (completed_at,)
    assert saved.last_completed_date == date(2024, 2, 13)
    assert saved.next_due_date == date(2024, 3, 12)
    assert saved.current_streak == 1


def test_save_rejects_stale_version(repo: TaskRepository) -> None:
    created = repo.create_task(make_task())
    repo.save_task(replace(created, name="First writer"))

    with pytest.raises(StaleTaskError):
        repo.save_task(replace(created, name="Second writer"))

    assert repo.get_task(created.id).name == "First writer"


def test_save_unknown_task(repo: TaskRepository) -> None:
    with pytest.raises(TaskNotFound):
        repo.save_task(make_task(id="missing", version=1))


def test_list_orders_by_due_date_and_delete(repo: TaskRepository) -> None:
    later = repo.create_task(make_task(name="Later", next_due_date=date(2024, 5, 1)))
    sooner = repo.create_task(
        make_task(name="Sooner", recurrence=SpecificDates(["2024-04-01", "2024-04-20"]), next_due_date=date(2024, 4, 1))
    )

    assert [task.id for task in repo.list_tasks()] == [sooner.id, later.id]

    repo.delete_task(sooner.id)

    assert [task.id for task in repo.list_tasks()] == [later.id]
    with pytest.raises(TaskNotFound):
        repo.delete_task("missing")


def test_service_over_sqlite(repo: TaskRepository) -> None:
    service = RecurringTaskService(repo, clock=lambda: datetime(2024, 4, 1, 8, tzinfo=timezone.utc))
    task = service.create_task({
        "name": "Snapshot check",
        "frequency": "specific_dates",
        "specific_dates_value": ["2024-04-01", "2024-04-20"],
        "next_due_date": "2024-04-01",
    })

    first = service.complete_task(task.id)
    second = service.complete_task(task.id)

    assert first.next_due_date == date(2024, 4, 20)
    assert not second.is_active
    assert len(service.completion_history(task.id)) == 2

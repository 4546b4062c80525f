from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update

from airdrop_tasks.domain.entities import RecurringTaskEntity
from airdrop_tasks.domain.errors import SchedulerError, TaskNotFound
from airdrop_tasks.domain.recurrence import rule_from_params, rule_to_params

from .db import SessionLocal
from .models import RecurringTaskModel, utcnow


class StaleTaskError(SchedulerError):
    """The stored task changed since it was read; re-read and apply the operation again."""

    def __init__(self, task_id: str, expected_version: int) -> None:
        super().__init__(f"Recurring task {task_id!r} is no longer at version {expected_version}")
        self.task_id = task_id
        self.expected_version = expected_version


def _to_entity(model: RecurringTaskModel) -> RecurringTaskEntity:
    return RecurringTaskEntity(
        id=model.id,
        name=model.name,
        description=model.description,
        recurrence=rule_from_params(model.frequency, model.recurrence_params),
        next_due_date=model.next_due_date,
        last_completed_date=model.last_completed_date,
        is_active=model.is_active,
        completion_history=tuple(datetime.fromisoformat(value) for value in model.completion_history or []),
        current_streak=model.current_streak,
        associated_airdrop_id=model.associated_airdrop_id,
        tags=frozenset(model.tags or []),
        notes=model.notes,
        category=model.category,
        version=model.version,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _to_row(task: RecurringTaskEntity) -> dict:
    return {
        "name": task.name,
        "description": task.description,
        "notes": task.notes,
        "category": task.category,
        "frequency": task.frequency.value,
        "recurrence_params": rule_to_params(task.recurrence),
        "next_due_date": task.next_due_date,
        "last_completed_date": task.last_completed_date,
        "is_active": task.is_active,
        "completion_history": [value.isoformat() for value in task.completion_history],
        "current_streak": task.current_streak,
        "associated_airdrop_id": task.associated_airdrop_id,
        "tags": sorted(task.tags),
    }


class TaskRepository:
    def __init__(self, session_factory=SessionLocal) -> None:
        self._session_factory = session_factory

    def list_tasks(self) -> list[RecurringTaskEntity]:
        with self._session_factory() as session:
            stmt = select(RecurringTaskModel).order_by(
                RecurringTaskModel.next_due_date.asc(),
                RecurringTaskModel.name.asc(),
            )
            return [_to_entity(task) for task in session.scalars(stmt)]

    def get_task(self, task_id: str) -> Optional[RecurringTaskEntity]:
        with self._session_factory() as session:
            task = session.get(RecurringTaskModel, task_id)
            return _to_entity(task) if task else None

    def create_task(self, task: RecurringTaskEntity) -> RecurringTaskEntity:
        with self._session_factory() as session:
            model = RecurringTaskModel(id=task.id or uuid.uuid4().hex, version=1, **_to_row(task))
            session.add(model)
            session.commit()
            session.refresh(model)
            return _to_entity(model)

    def save_task(self, task: RecurringTaskEntity) -> RecurringTaskEntity:
        """Write ``task`` back only if nobody else saved it since it was read."""
        with self._session_factory() as session:
            result = session.execute(
                update(RecurringTaskModel)
                .where(
                    RecurringTaskModel.id == task.id,
                    RecurringTaskModel.version == task.version,
                )
                .values(**_to_row(task), version=task.version + 1, updated_at=utcnow())
            )
            if result.rowcount == 0:
                session.rollback()
                if session.get(RecurringTaskModel, task.id) is None:
                    raise TaskNotFound(task.id)
                raise StaleTaskError(task.id, task.version)
            session.commit()
            model = session.get(RecurringTaskModel, task.id)
            session.refresh(model)
            return _to_entity(model)

    def delete_task(self, task_id: str) -> None:
        with self._session_factory() as session:
            task = session.get(RecurringTaskModel, task_id)
            if not task:
                raise TaskNotFound(task_id)
            session.delete(task)
            session.commit()

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Optional

from .entities import RecurringTaskEntity
from .errors import InvalidParameter, PreconditionViolation
from .recurrence import Recurrence, compute_next_due_date, first_due_date, to_utc_date


def new_task(
    name: str,
    recurrence: Recurrence,
    today: date | datetime,
    *,
    description: str = "",
    next_due_date: Optional[date] = None,
    associated_airdrop_id: str | None = None,
    tags: Iterable[str] = (),
    notes: str = "",
    category: str | None = None,
) -> RecurringTaskEntity:
    if not name or not name.strip():
        raise InvalidParameter("Task name is required")
    if next_due_date is None:
        next_due_date = first_due_date(recurrence, today)
        if next_due_date is None:
            raise InvalidParameter("Recurrence has no occurrence after today")
    return RecurringTaskEntity(
        id=None,
        name=name.strip(),
        description=description,
        recurrence=recurrence,
        next_due_date=next_due_date,
        associated_airdrop_id=associated_airdrop_id,
        tags=frozenset(tag.strip() for tag in tags if tag and tag.strip()),
        notes=notes,
        category=category,
    )


def complete(task: RecurringTaskEntity, completed_at: datetime) -> RecurringTaskEntity:
    """Record a completion and advance from the later of due date and completion date."""
    if not task.is_active:
        raise PreconditionViolation(f"Task {task.name!r} is inactive and cannot be completed")

    completed_on = to_utc_date(completed_at)
    streak = task.current_streak + 1 if completed_on <= task.next_due_date else 1
    next_due = compute_next_due_date(task.recurrence, max(task.next_due_date, completed_on))

    return replace(
        task,
        completion_history=task.completion_history + (completed_at,),
        last_completed_date=completed_on,
        current_streak=streak,
        next_due_date=task.next_due_date if next_due is None else next_due,
        is_active=next_due is not None,
    )


def snooze(task: RecurringTaskEntity, days: int) -> RecurringTaskEntity:
    if not task.is_active:
        raise PreconditionViolation(f"Task {task.name!r} is inactive and cannot be snoozed")
    if isinstance(days, bool) or not isinstance(days, int) or days < 1:
        raise InvalidParameter(f"Snooze days must be a positive integer, got {days!r}")
    return replace(task, next_due_date=task.next_due_date + timedelta(days=days))


def reactivate(task: RecurringTaskEntity, now: date | datetime) -> RecurringTaskEntity:
    if task.is_active:
        raise PreconditionViolation(f"Task {task.name!r} is already active")
    next_due = first_due_date(task.recurrence, now)
    if next_due is None:
        raise PreconditionViolation(f"Task {task.name!r} has no remaining dates to schedule")
    return replace(task, is_active=True, next_due_date=next_due)

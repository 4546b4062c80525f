from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta

from .entities import RecurringTaskEntity
from .enums import SortKey, StatusFilter
from .filters import TaskFilters


@dataclass(frozen=True)
class TaskView:
    task: RecurringTaskEntity
    is_overdue: bool
    is_due_today: bool
    days_until_due: int
    status_label: str


@dataclass(frozen=True)
class TaskStats:
    total: int
    active: int
    inactive: int
    overdue: int
    due_today: int


def is_overdue(task: RecurringTaskEntity, today: date) -> bool:
    return task.is_active and task.next_due_date < today


def status_label(task: RecurringTaskEntity, today: date) -> str:
    if not task.is_active:
        return "Inactive"
    days = (task.next_due_date - today).days
    if days == 0:
        return "Due Today"
    if days == 1:
        return "Due Tomorrow"
    if days > 1:
        return f"Due in {days} days"
    if days == -1:
        return "Overdue by 1 day"
    return f"Overdue by {-days} days"


def to_view(task: RecurringTaskEntity, today: date) -> TaskView:
    return TaskView(
        task=task,
        is_overdue=is_overdue(task, today),
        is_due_today=task.is_active and task.next_due_date == today,
        days_until_due=(task.next_due_date - today).days,
        status_label=status_label(task, today),
    )


def filter_and_sort(
    tasks: Iterable[RecurringTaskEntity],
    filters: TaskFilters,
    today: date,
) -> list[TaskView]:
    """Annotate, filter and order tasks for display. Input tasks are left untouched."""
    rows = [to_view(task, today) for task in tasks]
    rows = [row for row in rows if _matches(row, filters, today)]
    rows.sort(key=lambda row: (row.task.name.casefold(), row.task.id or ""))
    rows.sort(key=_sort_key(filters.sort_by), reverse=filters.descending)
    return rows


def summarize(tasks: Iterable[RecurringTaskEntity], today: date) -> TaskStats:
    tasks = list(tasks)
    active = [task for task in tasks if task.is_active]
    return TaskStats(
        total=len(tasks),
        active=len(active),
        inactive=len(tasks) - len(active),
        overdue=sum(1 for task in active if task.next_due_date < today),
        due_today=sum(1 for task in active if task.next_due_date == today),
    )


def _matches(row: TaskView, filters: TaskFilters, today: date) -> bool:
    task = row.task
    if not _status_matches(row, filters, today):
        return False

    if filters.search:
        needle = filters.search.strip().casefold()
        haystack = (task.name, task.description or "", task.notes or "")
        if needle and not any(needle in text.casefold() for text in haystack):
            return False

    if filters.tag:
        wanted = filters.tag.strip().casefold()
        if wanted not in {tag.casefold() for tag in task.tags}:
            return False

    if filters.airdrop_id and task.associated_airdrop_id != filters.airdrop_id:
        return False

    return True


def _status_matches(row: TaskView, filters: TaskFilters, today: date) -> bool:
    task = row.task
    status = filters.status
    if status == StatusFilter.ALL:
        return True
    if status == StatusFilter.INACTIVE:
        return not task.is_active
    if not task.is_active:
        return False
    if status == StatusFilter.ACTIVE:
        return not row.is_overdue
    if status == StatusFilter.OVERDUE:
        return row.is_overdue
    if status == StatusFilter.DUE:
        return task.next_due_date <= today
    if status == StatusFilter.UPCOMING:
        horizon = today + timedelta(days=filters.upcoming_days)
        return today <= task.next_due_date <= horizon
    return True


def _sort_key(sort_by: SortKey):
    if sort_by == SortKey.NAME:
        return lambda row: row.task.name.casefold()
    if sort_by == SortKey.FREQUENCY:
        return lambda row: row.task.frequency.value
    return lambda row: row.task.next_due_date

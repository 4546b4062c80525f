from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Any

from airdrop_tasks.config import SETTINGS
from airdrop_tasks.domain import lifecycle
from airdrop_tasks.domain.entities import RecurringTaskEntity
from airdrop_tasks.domain.errors import InvalidParameter, TaskNotFound
from airdrop_tasks.domain.filters import TaskFilters
from airdrop_tasks.domain.recurrence import rule_from_params, rule_to_params, to_utc_date
from airdrop_tasks.domain.views import TaskStats, TaskView, filter_and_sort, summarize

if TYPE_CHECKING:
    from airdrop_tasks.infra.repository import TaskRepository

logger = logging.getLogger(__name__)

PARAM_KEYS = (
    "every_x_days_value",
    "specific_days_of_week_value",
    "every_x_weeks_value",
    "specific_day_of_week_for_x_weeks_value",
    "specific_dates_value",
    "nth_value",
    "day_of_week_for_nth",
)
EDITABLE_FIELDS = (
    "name",
    "description",
    "notes",
    "category",
    "tags",
    "associated_airdrop_id",
    "next_due_date",
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecurringTaskService:
    def __init__(self, repo: TaskRepository, clock: Callable[[], datetime] = utcnow) -> None:
        self._repo = repo
        self._clock = clock

    def today(self) -> date:
        return to_utc_date(self._clock())

    def list_tasks(self, filters: TaskFilters | None = None) -> list[TaskView]:
        return filter_and_sort(self._repo.list_tasks(), filters or TaskFilters(), self.today())

    def get_task(self, task_id: str) -> RecurringTaskEntity | None:
        return self._repo.get_task(task_id)

    def create_task(self, data: dict) -> RecurringTaskEntity:
        if not data.get("frequency"):
            raise InvalidParameter("Task frequency is required")
        recurrence = rule_from_params(data["frequency"], data)
        task = lifecycle.new_task(
            data.get("name") or "",
            recurrence,
            self.today(),
            description=data.get("description") or "",
            next_due_date=_parse_date(data.get("next_due_date")),
            associated_airdrop_id=data.get("associated_airdrop_id") or None,
            tags=_parse_tags(data.get("tags")),
            notes=data.get("notes") or "",
            category=data.get("category") or None,
        )
        created = self._repo.create_task(task)
        logger.info("Created recurring task %s (%s), first due %s", created.id, created.frequency, created.next_due_date)
        return created

    def update_task(self, task_id: str, data: dict) -> RecurringTaskEntity:
        task = self._require(task_id)
        changes: dict[str, Any] = {key: data[key] for key in EDITABLE_FIELDS if key in data}

        if "name" in changes:
            if not changes["name"] or not str(changes["name"]).strip():
                raise InvalidParameter("Task name is required")
            changes["name"] = str(changes["name"]).strip()
        for key in ("associated_airdrop_id", "category"):
            if key in changes:
                changes[key] = changes[key] or None
        for key in ("description", "notes"):
            if key in changes:
                changes[key] = changes[key] or ""
        if "tags" in changes:
            changes["tags"] = frozenset(_parse_tags(changes["tags"]))
        if "next_due_date" in changes:
            changes["next_due_date"] = _parse_date(changes["next_due_date"]) or task.next_due_date

        if "frequency" in data or any(key in data for key in PARAM_KEYS):
            params = {**rule_to_params(task.recurrence), **data}
            changes["recurrence"] = rule_from_params(data.get("frequency") or task.frequency, params)

        return self._repo.save_task(replace(task, **changes))

    def delete_task(self, task_id: str) -> None:
        task = self._require(task_id)
        self._repo.delete_task(task.id)
        logger.info("Deleted recurring task %s", task.id)

    def complete_task(self, task_id: str) -> RecurringTaskEntity:
        task = self._require(task_id)
        saved = self._repo.save_task(lifecycle.complete(task, self._clock()))
        if saved.is_active:
            logger.info("Completed task %s, streak %d, next due %s", saved.id, saved.current_streak, saved.next_due_date)
        else:
            logger.info("Completed task %s, no further occurrences; deactivated", saved.id)
        return saved

    def snooze_task(self, task_id: str, days: int | None = None) -> RecurringTaskEntity:
        if days is None:
            days = SETTINGS.default_snooze_days
        task = self._require(task_id)
        saved = self._repo.save_task(lifecycle.snooze(task, days))
        logger.info("Snoozed task %s by %d day(s) to %s", saved.id, days, saved.next_due_date)
        return saved

    def reactivate_task(self, task_id: str) -> RecurringTaskEntity:
        task = self._require(task_id)
        saved = self._repo.save_task(lifecycle.reactivate(task, self._clock()))
        logger.info("Reactivated task %s, next due %s", saved.id, saved.next_due_date)
        return saved

    def completion_history(self, task_id: str) -> list[datetime]:
        return list(self._require(task_id).completion_history)

    def get_stats(self) -> TaskStats:
        return summarize(self._repo.list_tasks(), self.today())

    def _require(self, task_id: str) -> RecurringTaskEntity:
        task = self._repo.get_task(task_id)
        if task is None:
            raise TaskNotFound(task_id)
        return task


def _parse_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_utc_date(value)
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as exc:
        raise InvalidParameter(f"Invalid date: {value!r}") from exc


def _parse_tags(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [str(tag).strip() for tag in value if str(tag).strip()]

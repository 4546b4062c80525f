from __future__ import annotations

import logging
import sys

from airdrop_tasks.config import SETTINGS
from airdrop_tasks.domain.enums import StatusFilter
from airdrop_tasks.domain.filters import TaskFilters
from airdrop_tasks.domain.recurrence import describe_rule
from airdrop_tasks.domain.views import TaskView
from airdrop_tasks.infra.db import init_db
from airdrop_tasks.infra.logging import setup_logging
from airdrop_tasks.infra.repository import TaskRepository
from airdrop_tasks.services.task_service import RecurringTaskService

logger = logging.getLogger(__name__)


def _format_row(row: TaskView) -> str:
    task = row.task
    marker = "!" if row.is_overdue else "-"
    streak = f"  streak {task.current_streak}" if task.current_streak else ""
    return f"{marker} {task.next_due_date.isoformat()}  {task.name}  [{describe_rule(task.recurrence)}]  {row.status_label}{streak}"


def render_agenda(service: RecurringTaskService) -> list[str]:
    due = service.list_tasks(TaskFilters(status=StatusFilter.DUE))
    upcoming = [
        row
        for row in service.list_tasks(
            TaskFilters(status=StatusFilter.UPCOMING, upcoming_days=SETTINGS.upcoming_days)
        )
        if not row.is_due_today
    ]
    stats = service.get_stats()

    lines = [f"Agenda for {service.today().isoformat()}"]
    lines.append("Due now:" if due else "Nothing due today.")
    lines.extend(_format_row(row) for row in due)
    if upcoming:
        lines.append(f"Next {SETTINGS.upcoming_days} days:")
        lines.extend(_format_row(row) for row in upcoming)
    lines.append(
        f"{stats.active} active, {stats.inactive} inactive, "
        f"{stats.overdue} overdue, {stats.due_today} due today"
    )
    return lines


def main() -> None:
    setup_logging()
    try:
        init_db()
    except Exception:  # noqa: BLE001
        logger.exception("Database initialization failed")
        sys.exit(1)

    service = RecurringTaskService(TaskRepository())
    print("\n".join(render_agenda(service)))


if __name__ == "__main__":
    main()

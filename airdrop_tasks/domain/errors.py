from __future__ import annotations


class SchedulerError(Exception):
    """Base class for recurring task scheduling errors."""


class InvalidParameter(SchedulerError, ValueError):
    """A recurrence rule or operation argument is malformed or out of range."""


class PreconditionViolation(SchedulerError):
    """The operation is not legal for the task in its current state."""


class TaskNotFound(SchedulerError, LookupError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Recurring task {task_id!r} not found")
        self.task_id = task_id

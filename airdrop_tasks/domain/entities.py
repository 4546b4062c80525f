from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from .enums import TaskFrequency
from .recurrence import Recurrence


@dataclass(frozen=True)
class RecurringTaskEntity:
    id: str | None
    name: str
    description: str
    recurrence: Recurrence
    next_due_date: date
    last_completed_date: Optional[date] = None
    is_active: bool = True
    completion_history: tuple[datetime, ...] = ()
    current_streak: int = 0
    associated_airdrop_id: str | None = None
    tags: frozenset[str] = field(default_factory=frozenset)
    notes: str = ""
    category: str | None = None
    version: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def frequency(self) -> TaskFrequency:
        return self.recurrence.frequency

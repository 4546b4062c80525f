from __future__ import annotations

from dataclasses import dataclass

from .enums import SortKey, StatusFilter
from .errors import InvalidParameter


@dataclass(frozen=True)
class TaskFilters:
    status: StatusFilter = StatusFilter.ALL
    search: str | None = None
    tag: str | None = None
    airdrop_id: str | None = None
    sort_by: SortKey = SortKey.NEXT_DUE_DATE
    descending: bool = False
    upcoming_days: int = 7

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "status", StatusFilter(self.status))
        except ValueError as exc:
            raise InvalidParameter(f"Unknown status filter: {self.status!r}") from exc
        try:
            object.__setattr__(self, "sort_by", SortKey(self.sort_by))
        except ValueError as exc:
            raise InvalidParameter(f"Unknown sort key: {self.sort_by!r}") from exc
        if isinstance(self.upcoming_days, bool) or not isinstance(self.upcoming_days, int) or self.upcoming_days < 0:
            raise InvalidParameter(f"upcoming_days must be a non-negative integer, got {self.upcoming_days!r}")

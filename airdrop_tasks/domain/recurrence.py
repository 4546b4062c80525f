from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, ClassVar, Optional

from .enums import TaskFrequency, Weekday
from .errors import InvalidParameter

LAST = -1
_ORDINALS = {1: "1st", 2: "2nd", 3: "3rd", 4: "4th", 5: "5th", LAST: "last"}


def _weekday(value: Any) -> Weekday:
    try:
        return Weekday(value)
    except ValueError as exc:
        raise InvalidParameter(f"Unknown weekday: {value!r}") from exc


def _positive_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParameter(f"{name} must be an integer, got {value!r}")
    if value < 1:
        raise InvalidParameter(f"{name} must be >= 1, got {value}")
    return value


def _to_date(value: Any) -> date:
    if isinstance(value, datetime):
        return to_utc_date(value)
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as exc:
        raise InvalidParameter(f"Invalid calendar date: {value!r}") from exc


@dataclass(frozen=True)
class Daily:
    frequency: ClassVar[TaskFrequency] = TaskFrequency.DAILY


@dataclass(frozen=True)
class Weekly:
    frequency: ClassVar[TaskFrequency] = TaskFrequency.WEEKLY


@dataclass(frozen=True)
class Monthly:
    frequency: ClassVar[TaskFrequency] = TaskFrequency.MONTHLY


@dataclass(frozen=True)
class OneTime:
    frequency: ClassVar[TaskFrequency] = TaskFrequency.ONE_TIME


@dataclass(frozen=True)
class EveryXDays:
    days: int
    frequency: ClassVar[TaskFrequency] = TaskFrequency.EVERY_X_DAYS

    def __post_init__(self) -> None:
        _positive_int(self.days, "every_x_days_value")


@dataclass(frozen=True)
class SpecificDaysOfWeek:
    days: frozenset[Weekday]
    frequency: ClassVar[TaskFrequency] = TaskFrequency.SPECIFIC_DAYS_OF_WEEK

    def __post_init__(self) -> None:
        if isinstance(self.days, str):
            raise InvalidParameter("specific_days_of_week_value must be a collection of weekdays")
        days = frozenset(_weekday(day) for day in self.days)
        if not days:
            raise InvalidParameter("specific_days_of_week_value must not be empty")
        object.__setattr__(self, "days", days)


@dataclass(frozen=True)
class EveryXWeeksOnDay:
    weeks: int
    day: Weekday
    frequency: ClassVar[TaskFrequency] = TaskFrequency.EVERY_X_WEEKS_ON_DAY

    def __post_init__(self) -> None:
        _positive_int(self.weeks, "every_x_weeks_value")
        object.__setattr__(self, "day", _weekday(self.day))


@dataclass(frozen=True)
class SpecificDates:
    dates: tuple[date, ...]
    frequency: ClassVar[TaskFrequency] = TaskFrequency.SPECIFIC_DATES

    def __post_init__(self) -> None:
        if isinstance(self.dates, str):
            raise InvalidParameter("specific_dates_value must be a collection of dates")
        dates = tuple(sorted({_to_date(value) for value in self.dates}))
        if not dates:
            raise InvalidParameter("specific_dates_value must not be empty")
        object.__setattr__(self, "dates", dates)


@dataclass(frozen=True)
class NthWeekdayOfMonth:
    nth: int
    day: Weekday
    frequency: ClassVar[TaskFrequency] = TaskFrequency.NTH_WEEKDAY_OF_MONTH

    def __post_init__(self) -> None:
        if isinstance(self.nth, bool) or not isinstance(self.nth, int) or self.nth not in _ORDINALS:
            raise InvalidParameter(f"nth_value must be 1..5 or -1, got {self.nth!r}")
        object.__setattr__(self, "day", _weekday(self.day))


Recurrence = (
    Daily
    | Weekly
    | Monthly
    | OneTime
    | EveryXDays
    | SpecificDaysOfWeek
    | EveryXWeeksOnDay
    | SpecificDates
    | NthWeekdayOfMonth
)


def to_utc_date(value: date | datetime) -> date:
    """Reduce a date or instant to its UTC calendar date. Naive instants are UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def compute_next_due_date(rule: Recurrence, from_date: date | datetime) -> Optional[date]:
    """Return the next occurrence strictly after ``from_date``, or ``None`` if there is none."""
    current = to_utc_date(from_date)

    if isinstance(rule, Daily):
        return current + timedelta(days=1)
    if isinstance(rule, Weekly):
        return current + timedelta(weeks=1)
    if isinstance(rule, Monthly):
        return _add_months(current, 1)
    if isinstance(rule, EveryXDays):
        return current + timedelta(days=rule.days)
    if isinstance(rule, SpecificDaysOfWeek):
        targets = {day.python_weekday for day in rule.days}
        for offset in range(1, 8):
            candidate = current + timedelta(days=offset)
            if candidate.weekday() in targets:
                return candidate
    if isinstance(rule, EveryXWeeksOnDay):
        anchor = current - timedelta(days=(current.weekday() - rule.day.python_weekday) % 7)
        return anchor + timedelta(weeks=rule.weeks)
    if isinstance(rule, SpecificDates):
        return next((value for value in rule.dates if value > current), None)
    if isinstance(rule, NthWeekdayOfMonth):
        return _next_nth_weekday(current, rule.nth, rule.day)
    if isinstance(rule, OneTime):
        return None
    raise InvalidParameter(f"Unsupported recurrence rule: {rule!r}")


def first_due_date(rule: Recurrence, today: date | datetime) -> Optional[date]:
    """Seed date for a new or reactivated schedule. One-time tasks are due ``today``."""
    if isinstance(rule, OneTime):
        return to_utc_date(today)
    return compute_next_due_date(rule, today)


def _next_nth_weekday(current: date, nth: int, day: Weekday) -> date:
    # Not every month has a 5th occurrence; move on to the next month that does.
    year, month = current.year, current.month
    while True:
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)
        candidate = _nth_weekday(year, month, nth, day)
        if candidate is not None:
            return candidate


def _nth_weekday(year: int, month: int, nth: int, day: Weekday) -> Optional[date]:
    if nth == LAST:
        last = date(year, month, _days_in_month(year, month))
        return last - timedelta(days=(last.weekday() - day.python_weekday) % 7)
    first = date(year, month, 1)
    offset = (day.python_weekday - first.weekday()) % 7 + 7 * (nth - 1)
    candidate = first + timedelta(days=offset)
    return candidate if candidate.month == month else None


def _add_months(base: date, months: int) -> date:
    year = base.year + (base.month - 1 + months) // 12
    month = (base.month - 1 + months) % 12 + 1
    day = min(base.day, _days_in_month(year, month))
    return date(year, month, day)


def _days_in_month(year: int, month: int) -> int:
    if month == 12:
        next_month = date(year + 1, 1, 1)
    else:
        next_month = date(year, month + 1, 1)
    return (next_month - timedelta(days=1)).day


def rule_from_params(frequency: TaskFrequency | str, params: Mapping[str, Any] | None = None) -> Recurrence:
    """Build a rule from the flat parameter record. Keys unrelated to ``frequency`` are ignored."""
    try:
        frequency = TaskFrequency(frequency)
    except ValueError as exc:
        raise InvalidParameter(f"Unknown frequency: {frequency!r}") from exc
    params = params or {}

    if frequency == TaskFrequency.DAILY:
        return Daily()
    if frequency == TaskFrequency.WEEKLY:
        return Weekly()
    if frequency == TaskFrequency.MONTHLY:
        return Monthly()
    if frequency == TaskFrequency.ONE_TIME:
        return OneTime()
    if frequency == TaskFrequency.EVERY_X_DAYS:
        return EveryXDays(_int_param(params, "every_x_days_value"))
    if frequency == TaskFrequency.SPECIFIC_DAYS_OF_WEEK:
        return SpecificDaysOfWeek(_collection_param(params, "specific_days_of_week_value"))
    if frequency == TaskFrequency.EVERY_X_WEEKS_ON_DAY:
        return EveryXWeeksOnDay(
            _int_param(params, "every_x_weeks_value"),
            _require(params, "specific_day_of_week_for_x_weeks_value"),
        )
    if frequency == TaskFrequency.SPECIFIC_DATES:
        return SpecificDates(tuple(_collection_param(params, "specific_dates_value")))
    return NthWeekdayOfMonth(
        _int_param(params, "nth_value"),
        _require(params, "day_of_week_for_nth"),
    )


def rule_to_params(rule: Recurrence) -> dict[str, Any]:
    if isinstance(rule, EveryXDays):
        return {"every_x_days_value": rule.days}
    if isinstance(rule, SpecificDaysOfWeek):
        ordered = [day for day in Weekday if day in rule.days]
        return {"specific_days_of_week_value": [day.value for day in ordered]}
    if isinstance(rule, EveryXWeeksOnDay):
        return {
            "every_x_weeks_value": rule.weeks,
            "specific_day_of_week_for_x_weeks_value": rule.day.value,
        }
    if isinstance(rule, SpecificDates):
        return {"specific_dates_value": [value.isoformat() for value in rule.dates]}
    if isinstance(rule, NthWeekdayOfMonth):
        return {"nth_value": rule.nth, "day_of_week_for_nth": rule.day.value}
    return {}


def describe_rule(rule: Recurrence) -> str:
    if isinstance(rule, EveryXDays):
        return "Every day" if rule.days == 1 else f"Every {rule.days} days"
    if isinstance(rule, SpecificDaysOfWeek):
        return "Every " + ", ".join(day.value for day in Weekday if day in rule.days)
    if isinstance(rule, EveryXWeeksOnDay):
        if rule.weeks == 1:
            return f"Every week on {rule.day.value}"
        return f"Every {rule.weeks} weeks on {rule.day.value}"
    if isinstance(rule, SpecificDates):
        return f"On {len(rule.dates)} specific date(s)"
    if isinstance(rule, NthWeekdayOfMonth):
        return f"{_ORDINALS[rule.nth].capitalize()} {rule.day.value} of the month"
    return rule.frequency.value.replace("_", " ").capitalize()


def _require(params: Mapping[str, Any], key: str) -> Any:
    value = params.get(key)
    if value is None:
        raise InvalidParameter(f"Missing parameter: {key}")
    return value


def _int_param(params: Mapping[str, Any], key: str) -> int:
    value = _require(params, key)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as exc:
            raise InvalidParameter(f"{key} must be an integer, got {value!r}") from exc
    return value


def _collection_param(params: Mapping[str, Any], key: str) -> Iterable[Any]:
    value = _require(params, key)
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return value

from __future__ import annotations

from datetime import date
from enum import StrEnum


class TaskFrequency(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    EVERY_X_DAYS = "every_x_days"
    SPECIFIC_DAYS_OF_WEEK = "specific_days_of_week"
    EVERY_X_WEEKS_ON_DAY = "every_x_weeks_on_day"
    SPECIFIC_DATES = "specific_dates"
    NTH_WEEKDAY_OF_MONTH = "nth_weekday_of_month"
    ONE_TIME = "one_time"


class Weekday(StrEnum):
    SUN = "Sun"
    MON = "Mon"
    TUE = "Tue"
    WED = "Wed"
    THU = "Thu"
    FRI = "Fri"
    SAT = "Sat"

    @classmethod
    def of(cls, day: date) -> Weekday:
        # date.weekday() counts from Monday, members are ordered from Sunday
        return list(cls)[(day.weekday() + 1) % 7]

    @property
    def python_weekday(self) -> int:
        return (list(Weekday).index(self) - 1) % 7


class StatusFilter(StrEnum):
    ALL = "all"
    ACTIVE = "active"
    INACTIVE = "inactive"
    OVERDUE = "overdue"
    DUE = "due"
    UPCOMING = "upcoming"


class SortKey(StrEnum):
    NEXT_DUE_DATE = "next_due_date"
    NAME = "name"
    FREQUENCY = "frequency"

import calendar
from datetime import datetime
from enum import Enum
from typing import Tuple


class Period(str, Enum):
    TODAY = "today"
    MONTH = "month"
    THREE_MONTHS = "three_months"
    SIX_MONTHS = "six_months"
    YEAR = "year"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def months_back(self) -> int:
        return _MONTHS_BACK[self]

    @classmethod
    def parse(cls, raw: str) -> "Period":
        """Look up a period by its value, raising ValueError for anything else."""
        try:
            return cls((raw or "").strip().lower())
        except ValueError:
            valid = ", ".join(period.value for period in cls)
            raise ValueError(f"Unknown period {raw!r}; choose one of: {valid}") from None


_LABELS = {
    Period.TODAY: "Today",
    Period.MONTH: "Last Month",
    Period.THREE_MONTHS: "Last 3 Months",
    Period.SIX_MONTHS: "Last 6 Months",
    Period.YEAR: "Last Year",
}

_MONTHS_BACK = {
    Period.TODAY: 0,
    Period.MONTH: 1,
    Period.THREE_MONTHS: 3,
    Period.SIX_MONTHS: 6,
    Period.YEAR: 12,
}


def shift_months(moment: datetime, months: int) -> datetime:
    """Move ``moment`` by whole calendar months, clamping the day to the month's length."""
    index = moment.year * 12 + (moment.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def resolve_window(period: Period, now: datetime) -> Tuple[datetime, datetime]:
    """Return the inclusive ``(start, end)`` window for a stats request ending at ``now``."""
    start = start_of_day(shift_months(now, -period.months_back))
    return start, now

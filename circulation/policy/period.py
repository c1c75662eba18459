"""Loan, renewal and grace periods: a duration in one of five interval units."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from enum import Enum


class Interval(str, Enum):
    MINUTES = "Minutes"
    HOURS = "Hours"
    DAYS = "Days"
    WEEKS = "Weeks"
    MONTHS = "Months"


# A month counts as 31 days when converted to minutes
_MINUTES_PER_UNIT: dict[Interval, int] = {
    Interval.MINUTES: 1,
    Interval.HOURS: 60,
    Interval.DAYS: 60 * 24,
    Interval.WEEKS: 60 * 24 * 7,
    Interval.MONTHS: 60 * 24 * 31,
}

_LONG_TERM = {Interval.DAYS, Interval.WEEKS, Interval.MONTHS}


def _add_months(moment: datetime, months: int) -> datetime:
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


@dataclass(frozen=True)
class Period:
    """A duration such as "10 Days".

    ``interval`` is kept as the raw name found in the policy so that an
    unrecognised unit can be reported instead of rejected on load.
    """

    duration: int
    interval: str

    @classmethod
    def minutes(cls, duration: int) -> "Period":
        return cls(duration, Interval.MINUTES.value)

    @classmethod
    def hours(cls, duration: int) -> "Period":
        return cls(duration, Interval.HOURS.value)

    @classmethod
    def days(cls, duration: int) -> "Period":
        return cls(duration, Interval.DAYS.value)

    @classmethod
    def weeks(cls, duration: int) -> "Period":
        return cls(duration, Interval.WEEKS.value)

    @classmethod
    def months(cls, duration: int) -> "Period":
        return cls(duration, Interval.MONTHS.value)

    @property
    def unit(self) -> Interval | None:
        """The recognised interval, or None for an unknown unit name."""
        try:
            return Interval(self.interval)
        except ValueError:
            return None

    @property
    def is_valid(self) -> bool:
        return self.unit is not None and self.duration is not None and self.duration > 0

    @property
    def is_long_term(self) -> bool:
        return self.unit in _LONG_TERM

    def to_minutes(self) -> int:
        """Length in minutes; unknown units count as zero."""
        unit = self.unit
        if unit is None or self.duration is None:
            return 0
        return self.duration * _MINUTES_PER_UNIT[unit]

    def add_to(self, moment: datetime, zone: tzinfo) -> datetime:
        """Add this period to ``moment``, expressed in ``zone``.

        Minutes and hours are elapsed time; days, weeks and months move the
        local wall clock so that a 10:00 loan stays due at 10:00.
        """
        unit = self.unit
        if unit is None:
            raise ValueError(f'the interval "{self.interval}" is not recognised')

        if unit in (Interval.MINUTES, Interval.HOURS):
            return (moment + timedelta(minutes=self.to_minutes())).astimezone(zone)

        local = moment.astimezone(zone).replace(tzinfo=None)
        if unit == Interval.DAYS:
            shifted = local + timedelta(days=self.duration)
        elif unit == Interval.WEEKS:
            shifted = local + timedelta(weeks=self.duration)
        else:
            shifted = _add_months(local, self.duration)
        return shifted.replace(tzinfo=zone)

    def __str__(self) -> str:
        return f"{self.duration} {self.interval}"

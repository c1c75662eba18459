"""Library calendar model: opening days, opening hours and adjacent-day triples.

A service point's calendar is consumed one day at a time. The due-date code
only ever needs the requested day plus its nearest calendar-bearing
neighbours, which the calendar service returns as an ``AdjacentOpeningDays``
triple.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo

from circulation.calendar.time_utils import END_OF_DAY, START_OF_DAY, at_time


@dataclass(frozen=True, order=True)
class OpeningHour:
    """One open interval within a day, local wall-clock times."""

    start: time
    end: time

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"Opening hour ends before it starts: {self.start}-{self.end}")

    def contains(self, moment: time) -> bool:
        return self.start <= moment <= self.end


ALL_DAY = OpeningHour(START_OF_DAY, END_OF_DAY)


@dataclass(frozen=True)
class OpeningDay:
    """Open/closed state of a service point on one calendar date."""

    date: date
    is_open: bool
    all_day: bool = False
    open_intervals: tuple[OpeningHour, ...] = field(default_factory=tuple)

    @classmethod
    def closed(cls, day: date) -> "OpeningDay":
        return cls(date=day, is_open=False)

    @classmethod
    def open_all_day(cls, day: date) -> "OpeningDay":
        return cls(date=day, is_open=True, all_day=True)

    @classmethod
    def open_between(cls, day: date, *hours: tuple[time, time]) -> "OpeningDay":
        """Open day with the given (start, end) intervals."""
        intervals = tuple(sorted(OpeningHour(s, e) for s, e in hours))
        return cls(date=day, is_open=True, open_intervals=intervals)

    @property
    def intervals(self) -> tuple[OpeningHour, ...]:
        """Effective open intervals; an all-day opening spans the whole day."""
        if not self.is_open:
            return ()
        if self.all_day or not self.open_intervals:
            return (ALL_DAY,)
        return self.open_intervals

    def is_open_at(self, moment: datetime, zone: tzinfo) -> bool:
        local = moment.astimezone(zone)
        if local.date() != self.date:
            return False
        return any(hour.contains(local.time()) for hour in self.intervals)

    def open_periods(self, zone: tzinfo) -> list[tuple[datetime, datetime]]:
        """Open intervals as zone-aware (start, end) datetimes."""
        return [
            (at_time(self.date, hour.start, zone), at_time(self.date, hour.end, zone))
            for hour in self.intervals
        ]


@dataclass(frozen=True)
class AdjacentOpeningDays:
    """The requested day with its nearest calendar-bearing neighbours.

    ``previous_day`` and ``next_day`` are the nearest days the calendar knows
    to be open; a closed neighbour record means none could be found.
    """

    previous_day: OpeningDay
    requested_day: OpeningDay
    next_day: OpeningDay

    @classmethod
    def closed_around(cls, day: date) -> "AdjacentOpeningDays":
        """A triple with no open days, used when the calendar has no data."""
        return cls(
            previous_day=OpeningDay.closed(day - timedelta(days=1)),
            requested_day=OpeningDay.closed(day),
            next_day=OpeningDay.closed(day + timedelta(days=1)),
        )

    @property
    def requested_date(self) -> date:
        return self.requested_day.date

"""Fixed due-date schedules: date ranges each mapped to one due date."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, tzinfo

from circulation.calendar.time_utils import local_date
from circulation.errors import ScheduleRangeMissingError
from circulation.results import Result, failed, succeeded

LOAN_DATE_OUTSIDE_RANGES = "loan date falls outside of the date ranges in the loan policy"
RENEWAL_DATE_OUTSIDE_RANGES = "renewal date falls outside of the date ranges in the loan policy"


@dataclass(frozen=True)
class ScheduleRange:
    """``from_date``..``to_date`` (inclusive) resolves to ``due_date``."""

    from_date: date
    to_date: date
    due_date: datetime

    def __post_init__(self):
        if self.to_date < self.from_date:
            raise ValueError(f"Schedule range ends before it starts: {self.from_date}..{self.to_date}")

    def contains(self, day: date) -> bool:
        return self.from_date <= day <= self.to_date


@dataclass(frozen=True)
class FixedDueDateSchedule:
    id: str | None = None
    name: str = ""
    ranges: tuple[ScheduleRange, ...] = field(default_factory=tuple)

    def __post_init__(self):
        ordered = sorted(self.ranges, key=lambda r: r.from_date)
        for earlier, later in zip(ordered, ordered[1:]):
            if later.from_date <= earlier.to_date:
                raise ValueError(
                    f"Schedule {self.id} has overlapping ranges: "
                    f"{earlier.from_date}..{earlier.to_date} and {later.from_date}..{later.to_date}"
                )
        object.__setattr__(self, "ranges", tuple(ordered))

    @classmethod
    def none(cls) -> "FixedDueDateSchedule":
        """An empty schedule, standing in for one that could not be found."""
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.ranges

    def find_range(self, day: date) -> ScheduleRange | None:
        for schedule_range in self.ranges:
            if schedule_range.contains(day):
                return schedule_range
        return None

    def find_due_date_for(
        self,
        reference: datetime,
        zone: tzinfo,
        reason: str = LOAN_DATE_OUTSIDE_RANGES,
    ) -> Result[datetime]:
        """Due date of the range containing ``reference``'s local date."""
        day = local_date(reference, zone)
        schedule_range = self.find_range(day)
        if schedule_range is None:
            return failed(ScheduleRangeMissingError(
                reason, {"scheduleId": self.id, "date": day.isoformat()}
            ))
        return succeeded(schedule_range.due_date)

    def truncate(self, due_date: datetime, reference: datetime, zone: tzinfo) -> Result[datetime]:
        """Limit ``due_date`` to the schedule's due date for ``reference``."""
        return self.find_due_date_for(reference, zone).map(
            lambda limit: min(limit, due_date)
        )

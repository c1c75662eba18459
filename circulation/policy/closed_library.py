"""Closed-library due-date management.

When a candidate due date lands on a day (or hour) the service point is
closed, the loan policy's strategy moves it. Every strategy is a pure
function of ``(requested date-time, adjacent opening days, zone)`` and
reports a missing or closed calendar day as a ``CalendarUnavailableError``
inside the returned ``Result`` rather than raising.

The variant set is fixed, so strategies are an enum dispatched through
``calculate_due_date``.
"""

import logging
from datetime import datetime, tzinfo
from enum import Enum
from typing import Callable

from circulation.calendar.opening_days import AdjacentOpeningDays, OpeningDay
from circulation.calendar.time_utils import at_end_of_day, local_date
from circulation.errors import CalendarUnavailableError
from circulation.policy.period import Period
from circulation.results import Result, failed, succeeded

logger = logging.getLogger(__name__)


class ClosedLibraryStrategy(str, Enum):
    KEEP_CURRENT_DATE = "KEEP_CURRENT_DATE"
    MOVE_TO_THE_END_OF_THE_PREVIOUS_OPEN_DAY = "MOVE_TO_THE_END_OF_THE_PREVIOUS_OPEN_DAY"
    MOVE_TO_THE_END_OF_THE_NEXT_OPEN_DAY = "MOVE_TO_THE_END_OF_THE_NEXT_OPEN_DAY"
    END_OF_NEXT_OPEN_DAY = "END_OF_NEXT_OPEN_DAY"
    END_OF_PREVIOUS_DAY_TRUNCATE = "END_OF_PREVIOUS_DAY_TRUNCATE"
    MOVE_TO_END_OF_CURRENT_SERVICE_POINT_HOURS = "MOVE_TO_END_OF_CURRENT_SERVICE_POINT_HOURS"
    MOVE_TO_BEGINNING_OF_NEXT_OPEN_SERVICE_POINT_HOURS = (
        "MOVE_TO_BEGINNING_OF_NEXT_OPEN_SERVICE_POINT_HOURS"
    )

    @property
    def is_identity(self) -> bool:
        return self is ClosedLibraryStrategy.KEEP_CURRENT_DATE


def _absent_timetable(requested: datetime) -> Result[datetime]:
    return failed(CalendarUnavailableError({"requestedDate": requested.isoformat()}))


# ---------------------------------------------------------------------------
# Day-granular strategies
# ---------------------------------------------------------------------------

def keep_current_date(requested: datetime, days: AdjacentOpeningDays, zone: tzinfo) -> Result[datetime]:
    return succeeded(requested)


def move_to_end_of_previous_open_day(
    requested: datetime, days: AdjacentOpeningDays, zone: tzinfo
) -> Result[datetime]:
    if days.requested_day.is_open:
        return succeeded(requested)
    if not days.previous_day.is_open:
        return _absent_timetable(requested)
    return succeeded(at_end_of_day(days.previous_day.date, zone))


def end_of_next_open_day(
    requested: datetime, days: AdjacentOpeningDays, zone: tzinfo
) -> Result[datetime]:
    """End of the requested day if open, else end of the following record.

    Only the immediately following calendar record is considered.
    """
    if days.requested_day.is_open:
        return succeeded(at_end_of_day(requested, zone))
    if not days.next_day.is_open:
        return _absent_timetable(requested)
    return succeeded(at_end_of_day(days.next_day.date, zone))


def end_of_previous_day_truncate(
    requested: datetime, days: AdjacentOpeningDays, zone: tzinfo
) -> Result[datetime]:
    if not days.previous_day.is_open:
        return _absent_timetable(requested)
    return succeeded(at_end_of_day(days.previous_day.date, zone))


# ---------------------------------------------------------------------------
# Hour-granular strategies (short-term loans)
# ---------------------------------------------------------------------------

def _last_period_end(day: OpeningDay, zone: tzinfo, before: datetime | None = None) -> datetime | None:
    ends = [end for _, end in day.open_periods(zone) if before is None or end <= before]
    return max(ends) if ends else None


def _first_period_start(day: OpeningDay, zone: tzinfo, after: datetime | None = None) -> datetime | None:
    starts = [start for start, _ in day.open_periods(zone) if after is None or start >= after]
    return min(starts) if starts else None


def move_to_end_of_current_hours(
    requested: datetime, days: AdjacentOpeningDays, zone: tzinfo
) -> Result[datetime]:
    if days.requested_day.is_open_at(requested, zone):
        return succeeded(requested)

    same_day = _last_period_end(days.requested_day, zone, before=requested)
    if same_day is not None:
        return succeeded(same_day)

    previous = _last_period_end(days.previous_day, zone)
    if previous is not None:
        return succeeded(previous)
    return _absent_timetable(requested)


def move_to_beginning_of_next_open_hours(
    requested: datetime,
    days: AdjacentOpeningDays,
    zone: tzinfo,
    offset: Period | None = None,
) -> Result[datetime]:
    if days.requested_day.is_open_at(requested, zone):
        return succeeded(requested)

    start = _first_period_start(days.requested_day, zone, after=requested)
    if start is None:
        start = _first_period_start(days.next_day, zone)
    if start is None:
        return _absent_timetable(requested)

    if offset is not None and offset.is_valid:
        start = offset.add_to(start, zone)
    return succeeded(start)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

_DAY_STRATEGIES: dict[ClosedLibraryStrategy, Callable[..., Result[datetime]]] = {
    ClosedLibraryStrategy.KEEP_CURRENT_DATE: keep_current_date,
    ClosedLibraryStrategy.MOVE_TO_THE_END_OF_THE_PREVIOUS_OPEN_DAY: move_to_end_of_previous_open_day,
    ClosedLibraryStrategy.MOVE_TO_THE_END_OF_THE_NEXT_OPEN_DAY: end_of_next_open_day,
    ClosedLibraryStrategy.END_OF_NEXT_OPEN_DAY: end_of_next_open_day,
    ClosedLibraryStrategy.END_OF_PREVIOUS_DAY_TRUNCATE: end_of_previous_day_truncate,
    ClosedLibraryStrategy.MOVE_TO_END_OF_CURRENT_SERVICE_POINT_HOURS: move_to_end_of_current_hours,
}


def calculate_due_date(
    strategy: ClosedLibraryStrategy,
    requested: datetime,
    days: AdjacentOpeningDays,
    zone: tzinfo,
    offset: Period | None = None,
) -> Result[datetime]:
    """Apply ``strategy`` to a candidate due date.

    ``days`` must describe the candidate's local date.
    """
    if days is None:
        raise ValueError("Adjacent opening days are required")
    if days.requested_day.date != local_date(requested, zone):
        raise ValueError(
            f"Opening days for {days.requested_day.date} do not describe {requested.isoformat()}"
        )

    if strategy is ClosedLibraryStrategy.MOVE_TO_BEGINNING_OF_NEXT_OPEN_SERVICE_POINT_HOURS:
        result = move_to_beginning_of_next_open_hours(requested, days, zone, offset)
    else:
        result = _DAY_STRATEGIES[strategy](requested, days, zone)

    if result.succeeded:
        logger.debug("Strategy %s moved %s to %s", strategy.value, requested, result.value)
    else:
        logger.debug("Strategy %s failed for %s: %s", strategy.value, requested, result.failure.reason)
    return result

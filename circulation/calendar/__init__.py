"""
Calendar model — service point opening days and hours.

- OpeningDay / OpeningHour: open/closed state and open intervals of a day
- AdjacentOpeningDays: previous / requested / next day triple
- time_utils: end-of-day and minute arithmetic in a fixed zone
"""
from circulation.calendar.opening_days import (
    ALL_DAY,
    AdjacentOpeningDays,
    OpeningDay,
    OpeningHour,
)
from circulation.calendar.time_utils import (
    END_OF_DAY,
    at_end_of_day,
    local_date,
    whole_minutes_between,
)

__all__ = [
    "ALL_DAY",
    "AdjacentOpeningDays",
    "OpeningDay",
    "OpeningHour",
    "END_OF_DAY",
    "at_end_of_day",
    "local_date",
    "whole_minutes_between",
]

"""Test fixed due-date schedules."""
from datetime import date, datetime, timezone

import pytest

from circulation.errors import ScheduleRangeMissingError
from circulation.policy.fixed_schedule import (
    LOAN_DATE_OUTSIDE_RANGES,
    RENEWAL_DATE_OUTSIDE_RANGES,
    FixedDueDateSchedule,
    ScheduleRange,
)

UTC = timezone.utc
JANUARY_DUE = datetime(2024, 2, 1, 23, 59, 59, tzinfo=UTC)


def january_schedule():
    return FixedDueDateSchedule(
        id="semester",
        name="Semester",
        ranges=(ScheduleRange(date(2024, 1, 1), date(2024, 1, 31), JANUARY_DUE),),
    )


def test_date_inside_range_resolves():
    result = january_schedule().find_due_date_for(datetime(2024, 1, 15, 10, tzinfo=UTC), UTC)
    assert result.succeeded
    assert result.value == JANUARY_DUE


def test_range_bounds_are_inclusive():
    schedule = january_schedule()
    assert schedule.find_due_date_for(datetime(2024, 1, 1, 0, 0, tzinfo=UTC), UTC).succeeded
    assert schedule.find_due_date_for(datetime(2024, 1, 31, 23, 0, tzinfo=UTC), UTC).succeeded


def test_date_outside_ranges_fails():
    result = january_schedule().find_due_date_for(datetime(2024, 2, 5, tzinfo=UTC), UTC)
    assert result.failed
    assert isinstance(result.failure, ScheduleRangeMissingError)
    assert result.failure.reason == LOAN_DATE_OUTSIDE_RANGES
    assert result.failure.key == "SCHEDULE_RANGE_MISSING"
    with pytest.raises(ScheduleRangeMissingError):
        result.get()


def test_renewal_reason():
    result = january_schedule().find_due_date_for(
        datetime(2024, 3, 1, tzinfo=UTC), UTC, RENEWAL_DATE_OUTSIDE_RANGES
    )
    assert result.failure.reason == RENEWAL_DATE_OUTSIDE_RANGES


def test_ranges_sorted_and_overlap_rejected():
    spring = ScheduleRange(date(2024, 3, 1), date(2024, 5, 31), datetime(2024, 6, 1, tzinfo=UTC))
    winter = ScheduleRange(date(2024, 1, 1), date(2024, 2, 29), datetime(2024, 3, 1, tzinfo=UTC))
    schedule = FixedDueDateSchedule(id="year", ranges=(spring, winter))
    assert schedule.ranges == (winter, spring)

    overlapping = ScheduleRange(date(2024, 2, 15), date(2024, 3, 15), datetime(2024, 4, 1, tzinfo=UTC))
    with pytest.raises(ValueError, match="overlapping"):
        FixedDueDateSchedule(id="bad", ranges=(winter, overlapping))


def test_truncate_limits_rolling_due_date():
    schedule = january_schedule()
    reference = datetime(2024, 1, 20, tzinfo=UTC)
    assert schedule.truncate(datetime(2024, 2, 20, tzinfo=UTC), reference, UTC).value == JANUARY_DUE
    earlier = datetime(2024, 1, 25, tzinfo=UTC)
    assert schedule.truncate(earlier, reference, UTC).value == earlier
    assert schedule.truncate(earlier, datetime(2024, 4, 1, tzinfo=UTC), UTC).failed


def test_empty_schedule():
    assert FixedDueDateSchedule.none().is_empty
    assert FixedDueDateSchedule.none().find_range(date(2024, 1, 1)) is None

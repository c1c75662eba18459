"""Test JSON representations."""
from datetime import date, datetime, time, timezone

import pytest
from pydantic import ValidationError

from circulation.policy.closed_library import ClosedLibraryStrategy
from circulation.policy.loan_policy import LoanProfile, RenewFrom
from circulation.policy.period import Interval
from circulation.representations import (
    AdjacentOpeningDaysRepresentation,
    FixedDueDateScheduleRepresentation,
    LoanPolicyRepresentation,
    OpeningDayRepresentation,
    OverdueFinePolicyRepresentation,
)

LOAN_POLICY_JSON = {
    "id": "regular-loan",
    "name": "Three weeks",
    "loanable": True,
    "renewable": True,
    "loansPolicy": {
        "profileId": "Rolling",
        "period": {"duration": 3, "intervalId": "Weeks"},
        "closedLibraryDueDateManagementId": "END_OF_NEXT_OPEN_DAY",
        "gracePeriod": {"duration": 15, "intervalId": "Minutes"},
    },
    "renewalsPolicy": {
        "unlimited": False,
        "numberAllowed": 2,
        "renewFromId": "SYSTEM_DATE",
        "differentPeriod": True,
        "period": {"duration": 1, "intervalId": "Weeks"},
    },
    "requestManagement": {
        "holds": {
            "alternateCheckoutLoanPeriod": {"duration": 1, "intervalId": "Weeks"},
            "renewItemsWithRequest": False,
        }
    },
}


def test_loan_policy_to_domain():
    policy = LoanPolicyRepresentation.model_validate(LOAN_POLICY_JSON).to_domain()
    assert policy.id == "regular-loan"
    assert policy.profile is LoanProfile.ROLLING
    assert policy.period.unit is Interval.WEEKS
    assert policy.closed_library_strategy is ClosedLibraryStrategy.END_OF_NEXT_OPEN_DAY
    assert policy.grace_period.to_minutes() == 15
    assert policy.renewals.renew_from_option is RenewFrom.SYSTEM_DATE
    assert policy.renewals.number_allowed == 2
    assert policy.renewal_period.duration == 1
    assert policy.holds.alternate_checkout_period.duration == 1
    assert not policy.holds.renew_items_with_request


def test_loan_policy_defaults():
    policy = LoanPolicyRepresentation.model_validate({"id": "bare"}).to_domain()
    assert policy.loanable and policy.renewable
    assert policy.closed_library_strategy is ClosedLibraryStrategy.KEEP_CURRENT_DATE
    assert policy.renewals.unlimited
    assert policy.holds.renew_items_with_request


def test_unlimited_renewals_and_same_period():
    document = {
        "id": "unlimited",
        "loansPolicy": {"period": {"duration": 10, "intervalId": "Days"}},
        "renewalsPolicy": {
            "unlimited": True,
            "numberAllowed": 5,
            "differentPeriod": False,
            "period": {"duration": 1, "intervalId": "Days"},
        },
    }
    policy = LoanPolicyRepresentation.model_validate(document).to_domain()
    assert policy.renewals.unlimited
    assert policy.renewal_period.duration == 10


def test_unknown_interval_is_kept():
    document = {"id": "odd", "loansPolicy": {"period": {"duration": 2, "intervalId": "Fortnights"}}}
    policy = LoanPolicyRepresentation.model_validate(document).to_domain()
    assert policy.period.unit is None


def test_invalid_loan_policy_documents():
    with pytest.raises(ValidationError):
        LoanPolicyRepresentation.model_validate({"id": "x", "renewalsPolicy": {"numberAllowed": -1}})
    with pytest.raises(ValidationError):
        LoanPolicyRepresentation.model_validate(
            {"id": "x", "loansPolicy": {"closedLibraryDueDateManagementId": "CLOSE_EARLY"}}
        )


def test_fixed_due_date_schedule_to_domain():
    schedule = FixedDueDateScheduleRepresentation.model_validate({
        "id": "semester",
        "name": "Spring",
        "schedules": [
            {"from": "2024-01-01T00:00:00Z", "to": "2024-05-31T23:59:59Z", "due": "2024-06-01T23:59:59Z"},
        ],
    }).to_domain()
    assert schedule.ranges[0].from_date == date(2024, 1, 1)
    assert schedule.ranges[0].to_date == date(2024, 5, 31)
    assert schedule.ranges[0].due_date == datetime(2024, 6, 1, 23, 59, 59, tzinfo=timezone.utc)


def test_overdue_fine_policy_to_domain():
    policy = OverdueFinePolicyRepresentation.model_validate(
        {"id": "fine", "gracePeriodRecall": False, "countClosed": False}
    ).to_domain()
    assert not policy.grace_period_recall
    assert not policy.count_closed


def test_opening_day_to_domain():
    day = OpeningDayRepresentation.model_validate({
        "date": "2024-03-05",
        "open": True,
        "allDay": False,
        "openingHour": [
            {"startTime": "13:00", "endTime": "17:00"},
            {"startTime": "09:00", "endTime": "12:00"},
        ],
    }).to_domain()
    assert day.date == date(2024, 3, 5)
    assert day.is_open
    assert [h.start for h in day.intervals] == [time(9), time(13)]


def test_adjacent_opening_days_to_domain():
    days = AdjacentOpeningDaysRepresentation.model_validate({
        "previousDay": {"date": "2024-03-04", "open": True, "allDay": True},
        "requestedDay": {"date": "2024-03-05", "open": False},
        "nextDay": {"date": "2024-03-06", "open": True, "allDay": True},
    }).to_domain()
    assert days.requested_date == date(2024, 3, 5)
    assert not days.requested_day.is_open
    assert days.next_day.all_day

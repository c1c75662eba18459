"""Shared fixtures for loan-term tests."""
import textwrap
from datetime import date, time

import pytest

from circulation.calendar.opening_days import OpeningDay
from circulation.policy.loan_policy import LoanPolicy
from circulation.policy.period import Period
from circulation.repository import (
    CirculationPolicyRepository,
    InMemoryCalendarRepository,
    InMemoryFixedDueDateScheduleRepository,
    InMemoryPolicyRepository,
)
from circulation.rules.matcher import RuleMatcher
from circulation.rules.parser import parse_rules

CIRCULATION_RULES = textwrap.dedent("""\
    priority: number-of-criteria, line
    fallback-policy: l regular-loan r hold-only n basic-notice o overdue i lost

    # Reading room copies never leave the building
    m book + t reading-room: l in-library-loan
    g undergrad
        m dvd: l short-loan r no-requests
        !m dvd: l undergrad-loan
""")


@pytest.fixture
def rules_text():
    return CIRCULATION_RULES


@pytest.fixture
def matcher():
    return RuleMatcher(parse_rules(CIRCULATION_RULES))


@pytest.fixture
def ten_day_policy():
    return LoanPolicy(id="regular-loan", name="Ten days", period=Period.days(10))


@pytest.fixture
def policy_store():
    return InMemoryPolicyRepository()


@pytest.fixture
def schedule_store():
    return InMemoryFixedDueDateScheduleRepository()


@pytest.fixture
def policy_repository(policy_store, schedule_store):
    return CirculationPolicyRepository(policy_store, schedule_store)


@pytest.fixture
def calendar_repository():
    """Service point "sp-1": open 09:00-17:00 on weekdays of March 2024."""
    repository = InMemoryCalendarRepository()
    for day_of_month in range(1, 32):
        day = date(2024, 3, day_of_month)
        if day.weekday() < 5:
            repository.add("sp-1", OpeningDay.open_between(day, (time(9), time(17))))
        else:
            repository.add("sp-1", OpeningDay.closed(day))
    return repository

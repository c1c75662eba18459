"""Test repositories and async loan-term services."""
from datetime import date, datetime, time, timezone

import pytest

from circulation.config import CirculationConfig, RulesConfig
from circulation.errors import CalendarUnavailableError, PolicyNotFoundError, RuleParseError
from circulation.loans import Loan
from circulation.policy.closed_library import ClosedLibraryStrategy
from circulation.policy.fixed_schedule import FixedDueDateSchedule, ScheduleRange
from circulation.policy.loan_policy import LoanPolicy, LoanProfile
from circulation.policy.overdue_fine_policy import OverdueFinePolicy
from circulation.policy.period import Period
from circulation.repository import InMemoryCirculationRulesRepository
from circulation.rules.criteria import MatchCriteria, PolicyType, TieBreak
from circulation.services import CheckoutService, OverduePeriodCalculatorService, RenewalService

UTC = timezone.utc
END_OF_DAY = time(23, 59, 59, 999000)
BOOK = MatchCriteria(material_type_id="book", loan_type_id="standard", patron_group_id="faculty")
READING_ROOM = MatchCriteria(material_type_id="book", loan_type_id="reading-room", patron_group_id="faculty")


@pytest.fixture
def rules(rules_text):
    return InMemoryCirculationRulesRepository.from_text(rules_text)


@pytest.fixture
def three_day_policy(policy_store):
    return policy_store.add_loan_policy(LoanPolicy(
        id="regular-loan",
        period=Period.days(3),
        closed_library_strategy=ClosedLibraryStrategy.END_OF_NEXT_OPEN_DAY,
    ))


@pytest.fixture
def checkout(rules, policy_repository, calendar_repository):
    return CheckoutService(rules, policy_repository, calendar_repository)


# ----------------------------------------------------------------------------
# Repositories
# ----------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_adjacent_days_skip_closed_days(calendar_repository):
    days = await calendar_repository.find_adjacent_opening_days("sp-1", date(2024, 3, 9))
    assert not days.requested_day.is_open
    assert days.previous_day.date == date(2024, 3, 8)
    assert days.next_day.date == date(2024, 3, 11)


@pytest.mark.asyncio
async def test_unknown_service_point_has_no_calendar(calendar_repository):
    assert await calendar_repository.find_adjacent_opening_days("sp-9", date(2024, 3, 9)) is None


@pytest.mark.asyncio
async def test_opening_days_between(calendar_repository):
    days = await calendar_repository.find_opening_days_between("sp-1", date(2024, 3, 8), date(2024, 3, 11))
    assert [d.date for d in days] == [date(2024, 3, d) for d in (8, 9, 10, 11)]


@pytest.mark.asyncio
async def test_unknown_loan_policy_resolves_to_sentinel(policy_repository):
    policy = await policy_repository.get_loan_policy("missing")
    assert policy.is_unknown
    assert policy.id == "missing"
    assert not policy.loanable


@pytest.mark.asyncio
async def test_schedules_are_attached(policy_store, schedule_store, policy_repository):
    schedule = schedule_store.add(FixedDueDateSchedule(
        id="semester",
        ranges=(ScheduleRange(date(2024, 1, 1), date(2024, 5, 31), datetime(2024, 6, 1, tzinfo=UTC)),),
    ))
    policy_store.add_loan_policy(LoanPolicy(
        id="semester-loan", profile=LoanProfile.FIXED, fixed_due_date_schedule_id="semester"
    ))
    policy = await policy_repository.get_loan_policy("semester-loan")
    assert policy.loan_schedule == schedule
    assert policy.renewal_schedule.is_empty


@pytest.mark.asyncio
async def test_rules_repository_match(rules):
    match = await rules.find_rule_match(READING_ROOM, PolicyType.LOAN)
    assert match.policy_id == "in-library-loan"


UNDERGRAD_READING_ROOM = MatchCriteria(
    material_type_id="book", loan_type_id="reading-room", patron_group_id="undergrad"
)


@pytest.mark.asyncio
async def test_rules_repository_tie_break_from_environment(rules_text, monkeypatch):
    monkeypatch.setenv("CIRCULATION_RULE_TIE_BREAK", "first-line")
    rules = InMemoryCirculationRulesRepository.from_text(rules_text, CirculationConfig.from_env())
    match = await rules.find_rule_match(UNDERGRAD_READING_ROOM, PolicyType.LOAN)
    assert match.policy_id == "in-library-loan"


@pytest.mark.asyncio
async def test_rules_repository_defaults_to_rules_text_order(rules):
    match = await rules.find_rule_match(UNDERGRAD_READING_ROOM, PolicyType.LOAN)
    assert match.policy_id == "undergrad-loan"


@pytest.mark.asyncio
async def test_explicit_tie_break_beats_config(rules_text):
    config = CirculationConfig(rules=RulesConfig(tie_break=TieBreak.FIRST_WINS))
    rules = InMemoryCirculationRulesRepository.from_text(
        rules_text, config, tie_break=TieBreak.LAST_WINS
    )
    match = await rules.find_rule_match(UNDERGRAD_READING_ROOM, PolicyType.LOAN)
    assert match.policy_id == "undergrad-loan"


def test_rules_repository_fallback_requirement_from_config():
    text = "m book: l books"
    with pytest.raises(RuleParseError):
        InMemoryCirculationRulesRepository.from_text(text)
    config = CirculationConfig(rules=RulesConfig(require_fallback=False))
    rules = InMemoryCirculationRulesRepository.from_text(text, config)
    assert rules.matcher.rule_set.fallback is None


# ----------------------------------------------------------------------------
# Checkout
# ----------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_checkout_due_date_on_closed_day(checkout, three_day_policy):
    policy, due_date = await checkout.calculate_due_date(
        BOOK, datetime(2024, 3, 6, 10, 0, tzinfo=UTC), "sp-1"
    )
    assert policy.id == "regular-loan"
    assert due_date == datetime.combine(date(2024, 3, 11), END_OF_DAY, tzinfo=UTC)


@pytest.mark.asyncio
async def test_checkout_truncated_to_patron_expiration(checkout, three_day_policy):
    _, due_date = await checkout.calculate_due_date(
        BOOK,
        datetime(2024, 3, 6, 10, 0, tzinfo=UTC),
        "sp-1",
        patron_expiration=datetime(2024, 3, 7, 12, 0, tzinfo=UTC),
    )
    assert due_date == datetime.combine(date(2024, 3, 6), END_OF_DAY, tzinfo=UTC)


@pytest.mark.asyncio
async def test_checkout_with_unknown_policy(checkout, three_day_policy):
    with pytest.raises(PolicyNotFoundError, match="Loan policy in-library-loan could not be found"):
        await checkout.calculate_due_date(READING_ROOM, datetime(2024, 3, 6, tzinfo=UTC), "sp-1")


@pytest.mark.asyncio
async def test_checkout_without_calendar(checkout, three_day_policy):
    with pytest.raises(CalendarUnavailableError):
        await checkout.calculate_due_date(BOOK, datetime(2024, 3, 6, 10, 0, tzinfo=UTC), "sp-9")


@pytest.mark.asyncio
async def test_check_out_creates_loan(checkout, three_day_policy):
    loan = await checkout.check_out(
        "loan-1", "item-1", "user-1", BOOK, datetime(2024, 3, 6, 10, 0, tzinfo=UTC), "sp-1"
    )
    assert loan.loan_policy_id == "regular-loan"
    assert loan.overdue_fine_policy_id == "overdue"
    assert loan.checkout_service_point_id == "sp-1"
    assert loan.due_date.date() == date(2024, 3, 11)
    assert loan.renewal_count == 0


# ----------------------------------------------------------------------------
# Renewal and overdue
# ----------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_renewal_service(rules, policy_repository, calendar_repository, three_day_policy):
    service = RenewalService(rules, policy_repository, calendar_repository)
    loan = Loan(
        id="loan-1",
        due_date=datetime(2024, 3, 13, 10, 0, tzinfo=UTC),
        loan_policy_id="regular-loan",
        checkout_service_point_id="sp-1",
    )
    context = await service.renew(loan, BOOK, datetime(2024, 3, 12, 9, 0, tzinfo=UTC))
    assert context.succeeded
    assert context.loan.due_date == datetime.combine(date(2024, 3, 18), END_OF_DAY, tzinfo=UTC)
    assert context.loan.renewal_count == 1


@pytest.mark.asyncio
async def test_renewal_service_reports_unknown_policy(rules, policy_repository, calendar_repository):
    service = RenewalService(rules, policy_repository, calendar_repository)
    loan = Loan(id="loan-1", due_date=datetime(2024, 3, 13, 10, 0, tzinfo=UTC))
    context = await service.renew(loan, BOOK, datetime(2024, 3, 12, tzinfo=UTC))
    assert context.reasons == ["item is not loanable"]


@pytest.mark.asyncio
async def test_overdue_service_counts_open_time(policy_store, policy_repository, calendar_repository, three_day_policy):
    policy_store.add_overdue_fine_policy(OverdueFinePolicy(id="overdue", count_closed=False))
    service = OverduePeriodCalculatorService(policy_repository, calendar_repository)
    loan = Loan(
        id="loan-1",
        due_date=datetime(2024, 3, 8, 16, 0, tzinfo=UTC),
        loan_policy_id="regular-loan",
        overdue_fine_policy_id="overdue",
        checkout_service_point_id="sp-1",
    )
    assert await service.count_overdue_minutes(loan, datetime(2024, 3, 11, 10, 0, tzinfo=UTC)) == 120


@pytest.mark.asyncio
async def test_overdue_service_with_unknown_fine_policy(policy_repository, calendar_repository):
    service = OverduePeriodCalculatorService(policy_repository, calendar_repository)
    loan = Loan(id="loan-1", due_date=datetime(2024, 3, 8, 16, 0, tzinfo=UTC))
    assert await service.count_overdue_minutes(loan, datetime(2024, 3, 8, 16, 30, tzinfo=UTC)) == 30

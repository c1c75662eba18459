"""Async repository contracts for rules, policies, schedules and calendars.

The decision logic never talks to storage itself. Services await these
contracts, then hand the snapshots they return to the pure calculators.
In-memory implementations back the tests and embedded use; replace them
with storage clients in production.
"""

import logging
from abc import ABC, abstractmethod
from datetime import date, timedelta
from typing import Any, Generic, Iterable, TypeVar

from circulation.calendar.opening_days import AdjacentOpeningDays, OpeningDay
from circulation.config import CirculationConfig
from circulation.policy.fixed_schedule import FixedDueDateSchedule
from circulation.policy.loan_policy import LoanPolicy
from circulation.policy.overdue_fine_policy import OverdueFinePolicy
from circulation.rules.criteria import CirculationRuleMatch, MatchCriteria, PolicyType, TieBreak
from circulation.rules.matcher import RuleMatcher
from circulation.rules.parser import parse_rules

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Contracts
# ---------------------------------------------------------------------------

class PolicyRepository(ABC):
    @abstractmethod
    async def find_policy_by_id(self, policy_type: PolicyType, policy_id: str) -> Any | None:
        """The stored policy, or None when the id is unknown."""


class CirculationRulesRepository(ABC):
    @abstractmethod
    async def find_rule_match(
        self, criteria: MatchCriteria, policy_type: PolicyType
    ) -> CirculationRuleMatch:
        """Raises NoApplicableRuleError when nothing applies."""


class FixedDueDateScheduleRepository(ABC):
    @abstractmethod
    async def find_schedules_by_ids(self, ids: Iterable[str]) -> dict[str, FixedDueDateSchedule]:
        """Schedules keyed by id; unknown ids are left out."""


class CalendarRepository(ABC):
    @abstractmethod
    async def find_adjacent_opening_days(
        self, service_point_id: str, day: date
    ) -> AdjacentOpeningDays | None:
        """Requested day plus nearest open neighbours, or None without a calendar."""

    @abstractmethod
    async def find_opening_days_between(
        self, service_point_id: str, start: date, end: date
    ) -> list[OpeningDay]:
        """Known opening days from ``start`` to ``end`` inclusive."""


# ---------------------------------------------------------------------------
# In-memory implementations
# ---------------------------------------------------------------------------

class InMemoryStore(Generic[T]):
    """Keyed in-memory store shared by the in-memory repositories."""

    def __init__(self):
        self._records: dict[Any, T] = {}

    def add(self, key: Any, record: T) -> T:
        self._records[key] = record
        return record

    def get(self, key: Any) -> T | None:
        return self._records.get(key)


class InMemoryPolicyRepository(PolicyRepository):
    def __init__(self):
        self._store: InMemoryStore[Any] = InMemoryStore()

    def add(self, policy_type: PolicyType, policy: Any) -> Any:
        return self._store.add((policy_type, policy.id), policy)

    def add_loan_policy(self, policy: LoanPolicy) -> LoanPolicy:
        return self.add(PolicyType.LOAN, policy)

    def add_overdue_fine_policy(self, policy: OverdueFinePolicy) -> OverdueFinePolicy:
        return self.add(PolicyType.OVERDUE_FINE, policy)

    async def find_policy_by_id(self, policy_type: PolicyType, policy_id: str) -> Any | None:
        return self._store.get((policy_type, policy_id))


class InMemoryCirculationRulesRepository(CirculationRulesRepository):
    """Serves matches from one parsed rule set."""

    def __init__(self, matcher: RuleMatcher):
        self.matcher = matcher

    @classmethod
    def from_text(
        cls,
        text: str,
        config: CirculationConfig | None = None,
        tie_break: TieBreak | None = None,
        require_fallback: bool | None = None,
    ) -> "InMemoryCirculationRulesRepository":
        """Parse ``text`` with ``config.rules``; explicit arguments win."""
        rules_config = (config or CirculationConfig.default()).rules
        if tie_break is None:
            tie_break = rules_config.tie_break
        if require_fallback is None:
            require_fallback = rules_config.require_fallback
        return cls(RuleMatcher(parse_rules(text, require_fallback), tie_break=tie_break))

    async def find_rule_match(
        self, criteria: MatchCriteria, policy_type: PolicyType
    ) -> CirculationRuleMatch:
        return self.matcher.match(criteria, policy_type)


class InMemoryFixedDueDateScheduleRepository(FixedDueDateScheduleRepository):
    def __init__(self, schedules: Iterable[FixedDueDateSchedule] = ()):
        self._store: InMemoryStore[FixedDueDateSchedule] = InMemoryStore()
        for schedule in schedules:
            self.add(schedule)

    def add(self, schedule: FixedDueDateSchedule) -> FixedDueDateSchedule:
        return self._store.add(schedule.id, schedule)

    async def find_schedules_by_ids(self, ids: Iterable[str]) -> dict[str, FixedDueDateSchedule]:
        found = {}
        for schedule_id in ids:
            schedule = self._store.get(schedule_id)
            if schedule is not None:
                found[schedule_id] = schedule
        return found


class InMemoryCalendarRepository(CalendarRepository):
    """Opening days per service point.

    Dates without a stored record are closed. Neighbour search stops after
    ``search_limit_days`` in each direction.
    """

    def __init__(self, search_limit_days: int = 365):
        self.search_limit_days = search_limit_days
        self._calendars: dict[str, dict[date, OpeningDay]] = {}

    def add(self, service_point_id: str, *days: OpeningDay) -> None:
        calendar = self._calendars.setdefault(service_point_id, {})
        for day in days:
            calendar[day.date] = day

    def _nearest_open(self, calendar: dict[date, OpeningDay], day: date, step: int) -> OpeningDay:
        for offset in range(1, self.search_limit_days + 1):
            candidate = calendar.get(day + timedelta(days=step * offset))
            if candidate is not None and candidate.is_open:
                return candidate
        return OpeningDay.closed(day + timedelta(days=step))

    async def find_adjacent_opening_days(
        self, service_point_id: str, day: date
    ) -> AdjacentOpeningDays | None:
        calendar = self._calendars.get(service_point_id)
        if calendar is None:
            return None
        return AdjacentOpeningDays(
            previous_day=self._nearest_open(calendar, day, -1),
            requested_day=calendar.get(day) or OpeningDay.closed(day),
            next_day=self._nearest_open(calendar, day, 1),
        )

    async def find_opening_days_between(
        self, service_point_id: str, start: date, end: date
    ) -> list[OpeningDay]:
        calendar = self._calendars.get(service_point_id, {})
        return sorted(
            (d for d in calendar.values() if start <= d.date <= end),
            key=lambda d: d.date,
        )


# ---------------------------------------------------------------------------
# Policy lookups
# ---------------------------------------------------------------------------

class CirculationPolicyRepository:
    """Loads loan and overdue fine policies, attaching fixed schedules.

    Unknown ids resolve to ``LoanPolicy.unknown`` so callers can still
    report which policy the rules pointed at.
    """

    def __init__(
        self,
        policies: PolicyRepository,
        schedules: FixedDueDateScheduleRepository,
    ):
        self.policies = policies
        self.schedules = schedules

    async def get_loan_policy(self, policy_id: str | None) -> LoanPolicy:
        if policy_id is None:
            return LoanPolicy.unknown(None)

        policy = await self.policies.find_policy_by_id(PolicyType.LOAN, policy_id)
        if policy is None:
            logger.warning("Loan policy %s could not be found", policy_id)
            return LoanPolicy.unknown(policy_id)
        return await self._attach_schedules(policy)

    async def _attach_schedules(self, policy: LoanPolicy) -> LoanPolicy:
        ids = [
            schedule_id
            for schedule_id in (
                policy.fixed_due_date_schedule_id,
                policy.alternate_renewal_schedule_id,
            )
            if schedule_id is not None
        ]
        if not ids:
            return policy

        found = await self.schedules.find_schedules_by_ids(ids)
        loan_schedule = found.get(policy.fixed_due_date_schedule_id, FixedDueDateSchedule.none())
        renewal_schedule = found.get(policy.alternate_renewal_schedule_id, FixedDueDateSchedule.none())
        return policy.with_schedules(loan_schedule, renewal_schedule)

    async def get_overdue_fine_policy(self, policy_id: str | None) -> OverdueFinePolicy:
        if policy_id is None:
            return OverdueFinePolicy.unknown(None)
        policy = await self.policies.find_policy_by_id(PolicyType.OVERDUE_FINE, policy_id)
        if policy is None:
            logger.warning("Overdue fine policy %s could not be found", policy_id)
            return OverdueFinePolicy.unknown(policy_id)
        return policy

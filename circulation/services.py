"""
Loan-term services — async orchestration over the repositories.

- CheckoutService: rule match → policy → candidate → calendar → strategy → patron expiration
- RenewalService: rule match → policy → candidate → calendar → accumulating validation
- OverduePeriodCalculatorService: policies → (calendar range) → overdue minutes

Lookups are awaited one after another; the date arithmetic itself is the
pure code in ``circulation.due_date``, ``circulation.renewal`` and
``circulation.overdue``. Business failures surface as ``CirculationError``.
"""

import logging
from datetime import date, datetime

from circulation.calendar.opening_days import AdjacentOpeningDays
from circulation.calendar.time_utils import ensure_aware, local_date
from circulation.config import CirculationConfig
from circulation.due_date import DueDateCalculator
from circulation.errors import PolicyNotFoundError
from circulation.loans import Loan, RequestQueue
from circulation.overdue import count_overdue_minutes
from circulation.policy.loan_policy import LoanPolicy
from circulation.renewal.renewal import RenewalContext, renew
from circulation.repository import (
    CalendarRepository,
    CirculationPolicyRepository,
    CirculationRulesRepository,
)
from circulation.rules.criteria import MatchCriteria, PolicyType

logger = logging.getLogger(__name__)


class _LoanTermsService:
    """Shared lookups for the services below."""

    def __init__(
        self,
        rules: CirculationRulesRepository,
        policies: CirculationPolicyRepository,
        calendar: CalendarRepository,
        config: CirculationConfig | None = None,
    ):
        self.rules = rules
        self.policies = policies
        self.calendar = calendar
        self.config = config or CirculationConfig.default()
        self.calculator = DueDateCalculator(self.config.calendar.zone)

    async def _applicable_loan_policy(self, criteria: MatchCriteria) -> LoanPolicy:
        match = await self.rules.find_rule_match(criteria, PolicyType.LOAN)
        logger.debug(
            "Loan policy %s applies (line %s%s)",
            match.policy_id, match.line, ", fallback" if match.is_fallback else "",
        )
        return await self.policies.get_loan_policy(match.policy_id)

    async def _adjacent_days(
        self, service_point_id: str | None, day: date
    ) -> AdjacentOpeningDays:
        days = None
        if service_point_id is not None:
            days = await self.calendar.find_adjacent_opening_days(service_point_id, day)
        if days is None:
            logger.warning(
                "No calendar for service point %s on %s, treating library as closed",
                service_point_id, day,
            )
            return AdjacentOpeningDays.closed_around(day)
        return days


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------

class CheckoutService(_LoanTermsService):
    async def calculate_due_date(
        self,
        criteria: MatchCriteria,
        loan_date: datetime,
        service_point_id: str | None,
        patron_expiration: datetime | None = None,
        request_queue: RequestQueue | None = None,
    ) -> tuple[LoanPolicy, datetime]:
        """Applicable loan policy and the due date it gives for ``loan_date``.

        Raises:
            NoApplicableRuleError: no rule assigns a loan policy.
            PolicyNotFoundError: the matched policy id is unknown.
            CirculationError: the policy cannot produce a due date.
        """
        loan_date = ensure_aware(loan_date)
        if patron_expiration is not None:
            patron_expiration = ensure_aware(patron_expiration)

        policy = await self._applicable_loan_policy(criteria)
        if policy.is_unknown:
            raise PolicyNotFoundError("loan", policy.id)

        candidate = self.calculator.candidate_checkout_due_date(
            policy, loan_date, request_queue
        ).get()

        days = None
        if not policy.closed_library_strategy.is_identity:
            days = await self._adjacent_days(
                service_point_id, local_date(candidate, self.calculator.zone)
            )
        due_date = self.calculator.calculate_checkout_due_date(
            policy, loan_date, days, request_queue
        ).get()

        if patron_expiration is not None and patron_expiration < due_date:
            expiration_days = await self._adjacent_days(
                service_point_id, local_date(patron_expiration, self.calculator.zone)
            )
            due_date = self.calculator.truncate_to_patron_expiration(
                policy, due_date, patron_expiration, expiration_days
            ).get()

        return policy, due_date

    async def check_out(
        self,
        loan_id: str,
        item_id: str,
        user_id: str,
        criteria: MatchCriteria,
        loan_date: datetime,
        service_point_id: str | None = None,
        patron_expiration: datetime | None = None,
        request_queue: RequestQueue | None = None,
        overdue_fine_policy_id: str | None = None,
    ) -> Loan:
        policy, due_date = await self.calculate_due_date(
            criteria, loan_date, service_point_id, patron_expiration, request_queue
        )
        if overdue_fine_policy_id is None:
            match = await self.rules.find_rule_match(criteria, PolicyType.OVERDUE_FINE)
            overdue_fine_policy_id = match.policy_id

        logger.info("Checked out item %s to user %s, due %s", item_id, user_id, due_date)
        return Loan(
            id=loan_id,
            due_date=due_date,
            loan_date=loan_date,
            item_id=item_id,
            user_id=user_id,
            loan_policy_id=policy.id,
            overdue_fine_policy_id=overdue_fine_policy_id,
            checkout_service_point_id=service_point_id,
            action="checkedout",
        )


# ---------------------------------------------------------------------------
# Renewal
# ---------------------------------------------------------------------------

class RenewalService(_LoanTermsService):
    async def renew(
        self,
        loan: Loan,
        criteria: MatchCriteria,
        system_date: datetime,
        request_queue: RequestQueue | None = None,
        override: bool = False,
    ) -> RenewalContext:
        """Renew ``loan`` under the policy the rules currently select.

        A refused renewal comes back as a context carrying every error; call
        ``raise_if_refused()`` to abort instead.
        """
        system_date = ensure_aware(system_date)
        policy = await self._applicable_loan_policy(criteria)
        queue = request_queue or RequestQueue.empty()

        days = None
        candidate = self.calculator.candidate_renewal_due_date(policy, loan, system_date, queue)
        if candidate.succeeded and not policy.closed_library_strategy.is_identity:
            days = await self._adjacent_days(
                loan.checkout_service_point_id,
                local_date(candidate.value, self.calculator.zone),
            )

        context = RenewalContext(
            loan=loan, loan_policy=policy, request_queue=queue, override=override
        )
        return renew(context, system_date, days, self.calculator)


# ---------------------------------------------------------------------------
# Overdue
# ---------------------------------------------------------------------------

class OverduePeriodCalculatorService:
    def __init__(
        self,
        policies: CirculationPolicyRepository,
        calendar: CalendarRepository,
        config: CirculationConfig | None = None,
    ):
        self.policies = policies
        self.calendar = calendar
        self.config = config or CirculationConfig.default()

    async def count_overdue_minutes(self, loan: Loan, system_date: datetime) -> int:
        system_date = ensure_aware(system_date)
        loan_policy = await self.policies.get_loan_policy(loan.loan_policy_id)
        fine_policy = await self.policies.get_overdue_fine_policy(loan.overdue_fine_policy_id)
        zone = self.config.calendar.zone

        opening_days = None
        if loan.due_date < system_date and not fine_policy.count_closed:
            if loan.checkout_service_point_id is None:
                logger.warning("Loan %s has no checkout service point, no open time counted", loan.id)
                opening_days = []
            else:
                opening_days = await self.calendar.find_opening_days_between(
                    loan.checkout_service_point_id,
                    local_date(loan.due_date, zone),
                    local_date(system_date, zone),
                )

        return count_overdue_minutes(
            loan, loan_policy, fine_policy, system_date, opening_days, zone
        )

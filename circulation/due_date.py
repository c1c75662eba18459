"""Due-date calculation for checkouts and renewals.

Combines a loan policy (rolling period or fixed schedule), a reference
instant and the service point calendar:

1. ``candidate_*``: the due date the policy alone produces
2. ``apply_closed_library_strategy``: moved if the library is closed then
3. ``truncate_to_patron_expiration``: pulled back for expiring patrons

Every step returns a ``Result``; nothing here raises for business failures.
Naive instants are read as UTC.
Calendar days are passed in, already fetched for the candidate's date.
"""

import logging
from datetime import datetime, timezone, tzinfo

from circulation.calendar.opening_days import AdjacentOpeningDays
from circulation.calendar.time_utils import ensure_aware, local_date
from circulation.errors import (
    DueDateCalculationError,
    ItemNotLoanableError,
    NoDueDateChangeError,
)
from circulation.loans import Loan, RequestQueue
from circulation.policy.closed_library import ClosedLibraryStrategy, calculate_due_date
from circulation.policy.fixed_schedule import (
    LOAN_DATE_OUTSIDE_RANGES,
    RENEWAL_DATE_OUTSIDE_RANGES,
    FixedDueDateSchedule,
)
from circulation.policy.loan_policy import LoanPolicy, RenewFrom
from circulation.policy.period import Period
from circulation.results import Result, failed, succeeded

logger = logging.getLogger(__name__)

CANNOT_DETERMINE_RENEW_FROM = "cannot determine when to renew from"


def _invalid_period(period: Period | None, policy: LoanPolicy) -> DueDateCalculationError | None:
    parameters = {"loanPolicyId": policy.id, "loanPolicyName": policy.name}
    if period is None:
        return DueDateCalculationError(
            "the loan period in the loan policy is not recognised", parameters
        )
    if period.unit is None:
        return DueDateCalculationError(
            f'the interval "{period.interval}" in the loan policy is not recognised', parameters
        )
    if period.duration is None or period.duration <= 0:
        return DueDateCalculationError(
            f'the duration "{period.duration}" in the loan policy is invalid', parameters
        )
    return None


class DueDateCalculator:
    """Calculates due dates in a fixed zone.

    Usage::

        calculator = DueDateCalculator(config.calendar.zone)
        candidate = calculator.candidate_checkout_due_date(policy, loan_date).get()
        days = await calendar_repository.find_adjacent_opening_days(sp_id, candidate.date())
        due_date = calculator.calculate_checkout_due_date(policy, loan_date, days).get()
    """

    def __init__(self, zone: tzinfo = timezone.utc):
        self.zone = zone

    # -- policy-only candidates --

    def _rolling(
        self,
        policy: LoanPolicy,
        period: Period | None,
        reference: datetime,
        limit: FixedDueDateSchedule,
        limit_reference: datetime,
    ) -> Result[datetime]:
        error = _invalid_period(period, policy)
        if error is not None:
            return failed(error)

        due_date = period.add_to(reference, self.zone)
        if limit.is_empty:
            return succeeded(due_date)
        return limit.truncate(due_date, limit_reference, self.zone)

    def candidate_checkout_due_date(
        self,
        policy: LoanPolicy,
        loan_date: datetime,
        request_queue: RequestQueue | None = None,
    ) -> Result[datetime]:
        loan_date = ensure_aware(loan_date)
        if not policy.loanable:
            return failed(ItemNotLoanableError(policy.id))

        if policy.is_fixed:
            return policy.loan_schedule.find_due_date_for(
                loan_date, self.zone, LOAN_DATE_OUTSIDE_RANGES
            )

        period = policy.period
        if (
            request_queue is not None
            and request_queue.has_active_hold_at_head
            and policy.holds.alternate_checkout_period is not None
        ):
            period = policy.holds.alternate_checkout_period
        return self._rolling(policy, period, loan_date, policy.loan_schedule, loan_date)

    def candidate_renewal_due_date(
        self,
        policy: LoanPolicy,
        loan: Loan,
        system_date: datetime,
        request_queue: RequestQueue | None = None,
    ) -> Result[datetime]:
        system_date = ensure_aware(system_date)
        if policy.is_fixed:
            return policy.schedule_for_renewal().find_due_date_for(
                system_date, self.zone, RENEWAL_DATE_OUTSIDE_RANGES
            )

        renew_from = policy.renewals.renew_from_option
        if renew_from is None:
            return failed(DueDateCalculationError(
                CANNOT_DETERMINE_RENEW_FROM, {"renewFrom": policy.renewals.renew_from}
            ))
        reference = loan.due_date if renew_from is RenewFrom.CURRENT_DUE_DATE else system_date

        period = policy.renewal_period
        if (
            request_queue is not None
            and request_queue.has_active_hold_at_head
            and policy.holds.alternate_renewal_period is not None
        ):
            period = policy.holds.alternate_renewal_period
        return self._rolling(policy, period, reference, policy.schedule_for_renewal(), system_date)

    # -- calendar adjustments --

    def apply_closed_library_strategy(
        self,
        policy: LoanPolicy,
        candidate: datetime,
        opening_days: AdjacentOpeningDays | None,
    ) -> Result[datetime]:
        """Move ``candidate`` per the policy's strategy; identity without calendar data."""
        strategy = policy.closed_library_strategy
        if strategy.is_identity or opening_days is None:
            return succeeded(candidate)
        return calculate_due_date(
            strategy, candidate, opening_days, self.zone, policy.opening_time_offset
        )

    def truncate_to_patron_expiration(
        self,
        policy: LoanPolicy,
        due_date: datetime,
        expiration: datetime | None,
        opening_days: AdjacentOpeningDays | None = None,
    ) -> Result[datetime]:
        """Keep the loan from outliving the patron's account.

        ``opening_days`` describe the expiration date; a missing calendar is
        treated as closed on every day.
        """
        if expiration is None:
            return succeeded(due_date)
        expiration = ensure_aware(expiration)
        if expiration >= due_date:
            return succeeded(due_date)

        if opening_days is None:
            opening_days = AdjacentOpeningDays.closed_around(local_date(expiration, self.zone))
        if policy.is_long_term:
            strategy = ClosedLibraryStrategy.END_OF_PREVIOUS_DAY_TRUNCATE
        else:
            strategy = ClosedLibraryStrategy.MOVE_TO_END_OF_CURRENT_SERVICE_POINT_HOURS

        logger.debug("Truncating due date %s to patron expiration %s", due_date, expiration)
        return calculate_due_date(strategy, expiration, opening_days, self.zone)

    # -- complete calculations --

    def calculate_checkout_due_date(
        self,
        policy: LoanPolicy,
        loan_date: datetime,
        opening_days: AdjacentOpeningDays | None = None,
        request_queue: RequestQueue | None = None,
    ) -> Result[datetime]:
        loan_date = ensure_aware(loan_date)

        def not_before_loan_date(due_date: datetime) -> Result[datetime]:
            if due_date < loan_date:
                return failed(DueDateCalculationError(
                    "calculated due date is before the loan date",
                    {"dueDate": due_date.isoformat(), "loanDate": loan_date.isoformat()},
                ))
            return succeeded(due_date)

        return (
            self.candidate_checkout_due_date(policy, loan_date, request_queue)
            .then(lambda candidate: self.apply_closed_library_strategy(policy, candidate, opening_days))
            .then(not_before_loan_date)
        )

    def adjusted_renewal_due_date(
        self,
        policy: LoanPolicy,
        loan: Loan,
        system_date: datetime,
        opening_days: AdjacentOpeningDays | None = None,
        request_queue: RequestQueue | None = None,
    ) -> Result[datetime]:
        """Renewal candidate after the closed-library step, not yet compared
        with the current due date.
        """
        return (
            self.candidate_renewal_due_date(policy, loan, system_date, request_queue)
            .then(lambda candidate: self.apply_closed_library_strategy(policy, candidate, opening_days))
        )

    def calculate_renewal_due_date(
        self,
        policy: LoanPolicy,
        loan: Loan,
        system_date: datetime,
        opening_days: AdjacentOpeningDays | None = None,
        request_queue: RequestQueue | None = None,
    ) -> Result[datetime]:
        """Renewal due date, which must be later than the current one."""
        return self.adjusted_renewal_due_date(
            policy, loan, system_date, opening_days, request_queue
        ).then(lambda due_date: extends_due_date(loan, due_date))


def extends_due_date(loan: Loan, due_date: datetime) -> Result[datetime]:
    """Fails with ``NoDueDateChangeError`` unless ``due_date`` is later than the loan's."""
    if due_date <= loan.due_date:
        return failed(NoDueDateChangeError({
            "currentDueDate": loan.due_date.isoformat(),
            "proposedDueDate": due_date.isoformat(),
        }))
    return succeeded(due_date)

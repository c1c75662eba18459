"""Regular renewal: validate, recalculate the due date, and renew.

``renew`` never mutates its input. It returns a new ``RenewalContext``
holding either the renewed loan or every validation error found; the loan
in a refused context is exactly the loan that came in.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime

from circulation.calendar.opening_days import AdjacentOpeningDays
from circulation.due_date import DueDateCalculator, extends_due_date
from circulation.errors import RenewalValidationError, ValidationError
from circulation.loans import Loan, RequestQueue
from circulation.policy.loan_policy import LoanPolicy
from circulation.renewal.validators import check_due_date, evaluate_rules, validate_renewal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenewalContext:
    """Everything a renewal decision needs, and its outcome.

    ``override`` lets a privileged caller bypass validation errors; the due
    date must still be calculable. Errors bypassed that way are kept in
    ``overridden_errors``.
    """

    loan: Loan
    loan_policy: LoanPolicy
    request_queue: RequestQueue = field(default_factory=RequestQueue.empty)
    override: bool = False
    errors: tuple[ValidationError, ...] = ()
    overridden_errors: tuple[ValidationError, ...] = ()

    @property
    def succeeded(self) -> bool:
        return not self.errors

    @property
    def reasons(self) -> list[str]:
        return [e.reason for e in self.errors]

    def with_loan(self, loan: Loan) -> "RenewalContext":
        return replace(self, loan=loan)

    def with_errors(self, errors: tuple[ValidationError, ...]) -> "RenewalContext":
        return replace(self, errors=errors)

    def raise_if_refused(self) -> "RenewalContext":
        if self.errors:
            raise RenewalValidationError(self.errors)
        return self


def renew(
    context: RenewalContext,
    system_date: datetime,
    opening_days: AdjacentOpeningDays | None = None,
    calculator: DueDateCalculator | None = None,
) -> RenewalContext:
    """Validate and perform a regular renewal.

    ``opening_days`` describe the candidate due date's local date (see
    ``DueDateCalculator.candidate_renewal_due_date``).
    """
    calculator = calculator or DueDateCalculator()
    loan, policy, queue = context.loan, context.loan_policy, context.request_queue

    checks = list(validate_renewal(policy, loan, queue).results)

    adjusted = None
    if context.override or (policy.loanable and policy.renewable):
        adjusted = calculator.adjusted_renewal_due_date(
            policy, loan, system_date, opening_days=opening_days, request_queue=queue
        )
        checks.append(check_due_date(
            adjusted.then(lambda due_date: extends_due_date(loan, due_date))
        ))

    outcome = evaluate_rules(*checks)

    if outcome.all_passed:
        renewed = loan.renew(adjusted.value, policy.id)
        logger.debug("Loan %s renewed until %s", loan.id, renewed.due_date)
        return context.with_loan(renewed)

    # Overrides bypass validation errors, including an unchanged due date,
    # but never a due date that cannot be calculated.
    if context.override and adjusted is not None and adjusted.succeeded:
        renewed = loan.override_renewal(adjusted.value, policy.id)
        logger.info(
            "Loan %s renewed through override despite: %s",
            loan.id, "; ".join(r.message for r in outcome.failed),
        )
        return replace(context, loan=renewed, overridden_errors=outcome.errors)

    logger.debug(
        "Renewal of loan %s refused: %s", loan.id, "; ".join(r.message for r in outcome.failed)
    )
    return context.with_errors(outcome.errors)

"""Pure-function renewal checks.

Each check is a stateless function returning a ``RuleResult``. No lookups,
no side effects, so every check can run on every renewal and the caller
sees all violations at once instead of only the first.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from circulation.errors import ValidationError
from circulation.loans import RENEWAL_BLOCKING_STATUSES, Loan, RequestQueue
from circulation.policy.loan_policy import LoanPolicy
from circulation.results import Result


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class RuleResult:
    """Outcome of a single check."""

    passed: bool
    rule_name: str
    message: str
    key: str = ""
    details: dict[str, Any] = field(default_factory=dict)

    def to_validation_error(self) -> ValidationError:
        return ValidationError(reason=self.message, key=self.key, parameters=dict(self.details))


@dataclass
class RuleSetResult:
    """Aggregate outcome of multiple checks."""

    all_passed: bool
    results: list[RuleResult]
    failed: list[RuleResult] = field(default_factory=list)

    def __post_init__(self):
        self.failed = [r for r in self.results if not r.passed]
        self.all_passed = len(self.failed) == 0

    @property
    def errors(self) -> tuple[ValidationError, ...]:
        return tuple(r.to_validation_error() for r in self.failed)


def _passed(rule_name: str) -> RuleResult:
    return RuleResult(passed=True, rule_name=rule_name, message="ok")


# ---------------------------------------------------------------------------
# Request queue checks
# ---------------------------------------------------------------------------

def check_no_active_recall(queue: RequestQueue) -> RuleResult:
    """A recall at the head of the queue blocks renewal outright."""
    if not queue.has_active_recall_at_head:
        return _passed("active_recall")
    return RuleResult(
        passed=False,
        rule_name="active_recall",
        message="items cannot be renewed when there is an active recall request",
        key="ITEM_HAS_OPEN_RECALL_REQUEST",
        details={"requestId": queue.head.id},
    )


def check_hold_allows_renewal(policy: LoanPolicy, queue: RequestQueue) -> RuleResult:
    if not queue.has_active_hold_at_head or policy.holds.renew_items_with_request:
        return _passed("hold_renewal")
    return RuleResult(
        passed=False,
        rule_name="hold_renewal",
        message=(
            "Items with this loan policy cannot be renewed "
            "when there is an active, pending hold request"
        ),
        key="RENEWAL_ITEM_HAS_OPEN_HOLD_REQUEST",
        details={"loanPolicyId": policy.id, "loanPolicyName": policy.name},
    )


def check_fixed_profile_hold_period(policy: LoanPolicy, queue: RequestQueue) -> RuleResult:
    """Fixed policies cannot also name a holds alternate renewal period."""
    if not (
        queue.has_active_hold_at_head
        and policy.is_fixed
        and policy.holds.alternate_renewal_period is not None
    ):
        return _passed("fixed_profile_hold_period")
    return RuleResult(
        passed=False,
        rule_name="fixed_profile_hold_period",
        message=(
            "Item's loan policy has fixed profile but alternative "
            "renewal period for holds is specified"
        ),
        key="FIXED_POLICY_HAS_ALTERNATE_RENEWAL_PERIOD_FOR_HOLDS",
        details={"loanPolicyId": policy.id, "loanPolicyName": policy.name},
    )


def check_fixed_profile_renewal_period(policy: LoanPolicy, queue: RequestQueue) -> RuleResult:
    if not (
        queue.has_active_hold_at_head
        and policy.is_fixed
        and policy.renewals.period is not None
    ):
        return _passed("fixed_profile_renewal_period")
    return RuleResult(
        passed=False,
        rule_name="fixed_profile_renewal_period",
        message="Item's loan policy has fixed profile but renewal period is specified",
        key="FIXED_POLICY_HAS_ALTERNATE_RENEWAL_PERIOD",
        details={"loanPolicyId": policy.id, "loanPolicyName": policy.name},
    )


# ---------------------------------------------------------------------------
# Loan and policy checks
# ---------------------------------------------------------------------------

def check_item_status(loan: Loan) -> RuleResult:
    if loan.item_status not in RENEWAL_BLOCKING_STATUSES:
        return _passed("item_status")
    return RuleResult(
        passed=False,
        rule_name="item_status",
        message=f"item is {loan.item_status.value}",
        key="ITEM_STATUS_BLOCKS_RENEWAL",
        details={"itemStatus": loan.item_status.value, "itemId": loan.item_id},
    )


def check_loanable(policy: LoanPolicy) -> RuleResult:
    if policy.loanable:
        return _passed("loanable")
    return RuleResult(
        passed=False,
        rule_name="loanable",
        message="item is not loanable",
        key="ITEM_NOT_LOANABLE",
        details={"loanPolicyId": policy.id, "loanPolicyName": policy.name},
    )


def check_renewable(policy: LoanPolicy) -> RuleResult:
    """Only reported for loanable items; "not loanable" already covers the rest."""
    if not policy.loanable or policy.renewable:
        return _passed("renewable")
    return RuleResult(
        passed=False,
        rule_name="renewable",
        message="loan is not renewable",
        key="LOAN_IS_NOT_RENEWABLE",
        details={"loanPolicyId": policy.id, "loanPolicyName": policy.name},
    )


def check_renewal_limit(policy: LoanPolicy, loan: Loan) -> RuleResult:
    if not (policy.loanable and policy.renewable) or not policy.has_reached_renewal_limit(
        loan.renewal_count
    ):
        return _passed("renewal_limit")
    return RuleResult(
        passed=False,
        rule_name="renewal_limit",
        message="loan at maximum renewal number",
        key="LOAN_AT_MAXIMUM_RENEWAL_NUMBER",
        details={
            "loanPolicyId": policy.id,
            "loanPolicyName": policy.name,
            "renewalCount": loan.renewal_count,
            "numberAllowed": policy.renewals.number_allowed,
        },
    )


def check_due_date(result: Result[datetime]) -> RuleResult:
    """Turn a due-date calculation failure into a renewal error."""
    if result.succeeded:
        return _passed("due_date")
    error = result.failure
    return RuleResult(
        passed=False,
        rule_name="due_date",
        message=error.reason,
        key=error.key,
        details=dict(error.parameters),
    )


# ---------------------------------------------------------------------------
# Rule composition
# ---------------------------------------------------------------------------

def evaluate_rules(*rules: RuleResult) -> RuleSetResult:
    """Compose multiple check results into a single aggregate."""
    return RuleSetResult(
        all_passed=all(r.passed for r in rules),
        results=list(rules),
    )


def validate_renewal(policy: LoanPolicy, loan: Loan, queue: RequestQueue) -> RuleSetResult:
    """Run every check that does not need a calculated due date."""
    return evaluate_rules(
        check_no_active_recall(queue),
        check_hold_allows_renewal(policy, queue),
        check_fixed_profile_hold_period(policy, queue),
        check_fixed_profile_renewal_period(policy, queue),
        check_item_status(loan),
        check_loanable(policy),
        check_renewable(policy),
        check_renewal_limit(policy, loan),
    )

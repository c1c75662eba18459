"""
Renewal — accumulating validation and due-date recalculation.

- validators: pure checks returning RuleResult, composed with evaluate_rules
- RenewalContext / renew: the renewal decision as an immutable value
"""
from circulation.renewal.renewal import RenewalContext, renew
from circulation.renewal.validators import (
    RuleResult,
    RuleSetResult,
    check_due_date,
    check_fixed_profile_hold_period,
    check_fixed_profile_renewal_period,
    check_hold_allows_renewal,
    check_item_status,
    check_loanable,
    check_no_active_recall,
    check_renewable,
    check_renewal_limit,
    evaluate_rules,
    validate_renewal,
)

__all__ = [
    # Renewal
    "RenewalContext",
    "renew",
    # Checks
    "RuleResult",
    "RuleSetResult",
    "check_due_date",
    "check_fixed_profile_hold_period",
    "check_fixed_profile_renewal_period",
    "check_hold_allows_renewal",
    "check_item_status",
    "check_loanable",
    "check_no_active_recall",
    "check_renewable",
    "check_renewal_limit",
    "evaluate_rules",
    "validate_renewal",
]

"""Error taxonomy for loan-term decisions.

Every failure carries a stable human-readable ``reason`` and a machine
``key`` so that callers can assert on a specific cause:

- NoApplicableRuleError: neither a specific nor a fallback rule matched
- PolicyNotFoundError: a referenced policy id is absent from storage
- ScheduleRangeMissingError: a fixed schedule has no range for the date
- CalendarUnavailableError: a required calendar day is missing or closed
- RenewalValidationError: one or more accumulated renewal violations
- NoDueDateChangeError: renewal would not move the due date later
"""

from dataclasses import dataclass, field
from typing import Any


# ---------------------------------------------------------------------------
# Structured validation error (value object)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ValidationError:
    """A single business-rule violation reported to API consumers."""

    reason: str
    key: str
    parameters: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.reason,
            "code": self.key,
            "parameters": [
                {"key": k, "value": str(v)} for k, v in self.parameters.items()
            ],
        }


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class CirculationError(Exception):
    """Base class for all loan-term failures."""

    key = "CIRCULATION_ERROR"

    def __init__(self, reason: str, parameters: dict[str, Any] | None = None):
        super().__init__(reason)
        self.reason = reason
        self.parameters = parameters or {}

    def to_validation_error(self) -> ValidationError:
        return ValidationError(
            reason=self.reason, key=self.key, parameters=dict(self.parameters)
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.reason!r})"


class NoApplicableRuleError(CirculationError):
    key = "NO_APPLICABLE_RULE"

    def __init__(self, policy_type: str, criteria: dict[str, Any]):
        super().__init__(
            f"no applicable {policy_type} rule for the request",
            {"policyType": policy_type, **criteria},
        )
        self.policy_type = policy_type
        self.criteria = criteria


class PolicyNotFoundError(CirculationError):
    key = "POLICY_NOT_FOUND"

    def __init__(self, policy_kind: str, policy_id: str | None):
        super().__init__(
            f"{policy_kind.capitalize()} policy {policy_id} could not be found, "
            "please check circulation rules",
            {"policyId": policy_id},
        )
        self.policy_id = policy_id


class ScheduleRangeMissingError(CirculationError):
    key = "SCHEDULE_RANGE_MISSING"


class CalendarUnavailableError(CirculationError):
    key = "CALENDAR_UNAVAILABLE"

    def __init__(self, parameters: dict[str, Any] | None = None):
        super().__init__("Calendar timetable is absent for requested date", parameters)


class DueDateCalculationError(CirculationError):
    """Policy cannot produce a due date (bad period, unresolvable anchor)."""

    key = "DUE_DATE_CALCULATION"


class ItemNotLoanableError(CirculationError):
    key = "ITEM_NOT_LOANABLE"

    def __init__(self, loan_policy_id: str | None = None):
        super().__init__("item is not loanable", {"loanPolicyId": loan_policy_id})


class NoDueDateChangeError(CirculationError):
    key = "NO_DUE_DATE_CHANGE"

    def __init__(self, parameters: dict[str, Any] | None = None):
        super().__init__("renewal would not change the due date", parameters)


class RenewalValidationError(CirculationError):
    """Raised by callers that choose to abort on a refused renewal."""

    key = "RENEWAL_VALIDATION"

    def __init__(self, errors: tuple[ValidationError, ...]):
        reasons = "; ".join(e.reason for e in errors)
        super().__init__(f"renewal refused: {reasons}")
        self.errors = errors

    @property
    def reasons(self) -> list[str]:
        return [e.reason for e in self.errors]


class RuleParseError(ValueError):
    """Circulation rule text could not be parsed."""

    def __init__(self, message: str, line: int | None = None):
        location = f"line {line}: " if line is not None else ""
        super().__init__(f"{location}{message}")
        self.line = line

"""Circulation rule model: criteria dimensions, rules and match results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Criterion(str, Enum):
    """Request dimensions a rule can constrain, keyed by rule-text letter."""

    MATERIAL_TYPE = "m"
    LOAN_TYPE = "t"
    PATRON_GROUP = "g"
    INSTITUTION = "a"
    CAMPUS = "b"
    LIBRARY = "c"
    LOCATION = "s"


class PolicyType(str, Enum):
    LOAN = "l"
    REQUEST = "r"
    NOTICE = "n"
    OVERDUE_FINE = "o"
    LOST_ITEM_FEE = "i"

    @property
    def label(self) -> str:
        return _POLICY_LABELS[self]


_POLICY_LABELS = {
    PolicyType.LOAN: "loan",
    PolicyType.REQUEST: "request",
    PolicyType.NOTICE: "notice",
    PolicyType.OVERDUE_FINE: "overdue fine",
    PolicyType.LOST_ITEM_FEE: "lost item fee",
}


class TieBreak(str, Enum):
    """Which of two equally specific rules wins."""

    LAST_WINS = "last-line"
    FIRST_WINS = "first-line"


class PriorityKey(str, Enum):
    NUMBER_OF_CRITERIA = "number-of-criteria"
    CRITERIUM = "criterium"
    LINE = "line"


DEFAULT_PRIORITY = (PriorityKey.NUMBER_OF_CRITERIA, PriorityKey.LINE)


# ---------------------------------------------------------------------------
# Request criteria
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LocationCriteria:
    institution_id: str | None = None
    campus_id: str | None = None
    library_id: str | None = None
    location_id: str | None = None


@dataclass(frozen=True)
class MatchCriteria:
    """Snapshot of one request's values for every rule dimension."""

    material_type_id: str | None = None
    loan_type_id: str | None = None
    patron_group_id: str | None = None
    location: LocationCriteria = field(default_factory=LocationCriteria)

    def value_for(self, criterion: Criterion) -> str | None:
        return {
            Criterion.MATERIAL_TYPE: self.material_type_id,
            Criterion.LOAN_TYPE: self.loan_type_id,
            Criterion.PATRON_GROUP: self.patron_group_id,
            Criterion.INSTITUTION: self.location.institution_id,
            Criterion.CAMPUS: self.location.campus_id,
            Criterion.LIBRARY: self.location.library_id,
            Criterion.LOCATION: self.location.location_id,
        }[criterion]

    def to_dict(self) -> dict[str, Any]:
        return {
            "materialTypeId": self.material_type_id,
            "loanTypeId": self.loan_type_id,
            "patronGroupId": self.patron_group_id,
            "institutionId": self.location.institution_id,
            "campusId": self.location.campus_id,
            "libraryId": self.location.library_id,
            "locationId": self.location.location_id,
        }


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CriterionMatch:
    """Accepted values for one dimension; ``negated`` inverts the test."""

    values: frozenset[str]
    negated: bool = False

    def accepts(self, value: str | None) -> bool:
        if self.negated:
            return value not in self.values
        return value in self.values


@dataclass(frozen=True)
class CirculationRule:
    criteria: dict[Criterion, CriterionMatch]
    policies: dict[PolicyType, str]
    line: int
    is_fallback: bool = False

    @property
    def specificity(self) -> int:
        """Number of constrained (non-wildcard) dimensions."""
        return len(self.criteria)

    def constrains(self, criterion: Criterion) -> bool:
        return criterion in self.criteria

    def assigns(self, policy_type: PolicyType) -> bool:
        return policy_type in self.policies

    def matches(self, request: MatchCriteria) -> bool:
        return all(
            match.accepts(request.value_for(criterion))
            for criterion, match in self.criteria.items()
        )


@dataclass(frozen=True)
class RuleSet:
    """Ordered rules plus the ranking read from the ``priority:`` line."""

    rules: tuple[CirculationRule, ...]
    priority: tuple[PriorityKey, ...] = DEFAULT_PRIORITY
    criterium_order: tuple[Criterion, ...] = ()
    tie_break: TieBreak | None = None

    @property
    def fallback(self) -> CirculationRule | None:
        return next((r for r in self.rules if r.is_fallback), None)

    @property
    def specific_rules(self) -> tuple[CirculationRule, ...]:
        return tuple(r for r in self.rules if not r.is_fallback)


# ---------------------------------------------------------------------------
# Match results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AppliedRuleConditions:
    """Which item/patron conditions the winning rule relied on."""

    material_type_matched: bool = False
    loan_type_matched: bool = False
    patron_group_matched: bool = False

    @classmethod
    def for_rule(cls, rule: CirculationRule) -> "AppliedRuleConditions":
        return cls(
            material_type_matched=rule.constrains(Criterion.MATERIAL_TYPE),
            loan_type_matched=rule.constrains(Criterion.LOAN_TYPE),
            patron_group_matched=rule.constrains(Criterion.PATRON_GROUP),
        )


@dataclass(frozen=True)
class CirculationRuleMatch:
    policy_type: PolicyType
    policy_id: str
    line: int
    applied_rule_conditions: AppliedRuleConditions
    is_fallback: bool = False

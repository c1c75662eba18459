"""
Circulation rules — selecting the policies that govern a request.

- parse_rules: line-oriented rules text into a RuleSet
- RuleMatcher: specificity-ranked matching with a fallback rule
- MatchCriteria: material type, loan type, patron group and location values
"""
from circulation.rules.criteria import (
    AppliedRuleConditions,
    CirculationRule,
    CirculationRuleMatch,
    Criterion,
    CriterionMatch,
    LocationCriteria,
    MatchCriteria,
    PolicyType,
    PriorityKey,
    RuleSet,
    TieBreak,
)
from circulation.rules.matcher import RuleMatcher
from circulation.rules.parser import parse_rules

__all__ = [
    # Model
    "AppliedRuleConditions",
    "CirculationRule",
    "CirculationRuleMatch",
    "Criterion",
    "CriterionMatch",
    "LocationCriteria",
    "MatchCriteria",
    "PolicyType",
    "PriorityKey",
    "RuleSet",
    "TieBreak",
    # Matching
    "RuleMatcher",
    "parse_rules",
]

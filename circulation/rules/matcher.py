"""Circulation rule matching.

An explicit ordered scan: every rule that assigns the requested policy type
and whose constrained dimensions all accept the request's values is a
candidate. Candidates are ranked by the rule set's priority keys (by
default the number of constrained criteria, then line position) and the
best one wins. The fallback rule answers when no candidate exists.

Matching is a pure function of the rule set and the criteria snapshot, so
one ``RuleMatcher`` can serve concurrent requests.
"""

import logging

from circulation.errors import NoApplicableRuleError
from circulation.rules.criteria import (
    AppliedRuleConditions,
    CirculationRule,
    CirculationRuleMatch,
    MatchCriteria,
    PolicyType,
    PriorityKey,
    RuleSet,
    TieBreak,
)

logger = logging.getLogger(__name__)


class RuleMatcher:
    """Select policy ids for a request from an ordered rule set.

    ``tie_break`` overrides the order declared in the rules text; when
    neither is given later-declared rules win among equals.

    Usage::

        matcher = RuleMatcher(parse_rules(text))
        loan_policy_id = matcher.match(criteria, PolicyType.LOAN).policy_id
    """

    def __init__(self, rule_set: RuleSet, tie_break: TieBreak | None = None):
        self.rule_set = rule_set
        self.tie_break = tie_break or rule_set.tie_break or TieBreak.LAST_WINS

    def _rank(self, rule: CirculationRule) -> tuple:
        key = []
        for entry in self.rule_set.priority:
            if entry is PriorityKey.NUMBER_OF_CRITERIA:
                key.append(rule.specificity)
            elif entry is PriorityKey.CRITERIUM:
                key.append(tuple(
                    int(rule.constrains(c)) for c in self.rule_set.criterium_order
                ))
            elif entry is PriorityKey.LINE:
                key.append(rule.line if self.tie_break is TieBreak.LAST_WINS else -rule.line)
        return tuple(key)

    def matching_rules(
        self, criteria: MatchCriteria, policy_type: PolicyType = PolicyType.LOAN
    ) -> list[CirculationRule]:
        """All non-fallback rules that match, best first."""
        candidates = [
            rule for rule in self.rule_set.specific_rules
            if rule.assigns(policy_type) and rule.matches(criteria)
        ]
        return sorted(candidates, key=self._rank, reverse=True)

    def match(
        self, criteria: MatchCriteria, policy_type: PolicyType = PolicyType.LOAN
    ) -> CirculationRuleMatch:
        """Policy id for ``policy_type``.

        Raises NoApplicableRuleError when neither a specific rule nor the
        fallback assigns that policy type.
        """
        candidates = self.matching_rules(criteria, policy_type)
        if candidates:
            winner = candidates[0]
        else:
            fallback = self.rule_set.fallback
            if fallback is None or not fallback.assigns(policy_type):
                logger.warning(
                    "No %s rule applies to %s", policy_type.label, criteria.to_dict()
                )
                raise NoApplicableRuleError(policy_type.label, criteria.to_dict())
            winner = fallback

        logger.debug(
            "Rule on line %s selected %s policy %s",
            winner.line, policy_type.label, winner.policies[policy_type],
        )
        return CirculationRuleMatch(
            policy_type=policy_type,
            policy_id=winner.policies[policy_type],
            line=winner.line,
            applied_rule_conditions=AppliedRuleConditions.for_rule(winner),
            is_fallback=winner.is_fallback,
        )

    def match_all(self, criteria: MatchCriteria) -> dict[PolicyType, CirculationRuleMatch]:
        """Resolve every policy type at once."""
        return {policy_type: self.match(criteria, policy_type) for policy_type in PolicyType}

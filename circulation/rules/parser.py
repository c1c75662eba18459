"""Parser for the line-oriented circulation rules text.

Example::

    priority: number-of-criteria, line
    fallback-policy: l regular-loan r hold-only n basic-notice o overdue i lost

    m book + t reading-room: l in-library-loan
    g undergrad
        m dvd: l short-loan r no-requests
        !m dvd: l undergrad-loan

- Criteria are ``<letter> <value> [<value> ...]`` terms joined by ``+``;
  several values mean any-of, ``!`` negates, ``*`` is an explicit wildcard
  and ``all`` matches everything.
- ``: <type> <id> ...`` assigns policies (l loan, r request, n notice,
  o overdue fine, i lost item fee).
- An indented line inherits the criteria and policies of the nearest
  less-indented line above it.
- ``#`` starts a comment, as does ``/`` at the start of a line.
"""

import logging
import re

from circulation.errors import RuleParseError
from circulation.rules.criteria import (
    DEFAULT_PRIORITY,
    CirculationRule,
    Criterion,
    CriterionMatch,
    PolicyType,
    PriorityKey,
    RuleSet,
    TieBreak,
)

logger = logging.getLogger(__name__)

_CRITERIUM = re.compile(r"criterium\s*\(([^)]*)\)")
_TIE_BREAK_ENTRIES = {
    "line": TieBreak.LAST_WINS,
    "last-line": TieBreak.LAST_WINS,
    "first-line": TieBreak.FIRST_WINS,
}


def _strip_comment(raw: str) -> str:
    if raw.lstrip().startswith("/"):
        return ""
    return raw.split("#", 1)[0].rstrip()


def _indent_of(raw: str, line_no: int) -> int:
    prefix = raw[: len(raw) - len(raw.lstrip())]
    if "\t" in prefix:
        raise RuleParseError("Tab character is not allowed for indentation", line_no)
    return len(prefix)


# ---------------------------------------------------------------------------
# Line parsers
# ---------------------------------------------------------------------------

def _parse_criterion_letter(token: str, line_no: int) -> Criterion:
    try:
        return Criterion(token)
    except ValueError:
        raise RuleParseError(f"Unknown criterion type: {token}", line_no) from None


def _parse_policy_type(token: str, line_no: int) -> PolicyType:
    try:
        return PolicyType(token)
    except ValueError:
        raise RuleParseError(f"Unknown policy type: {token}", line_no) from None


def parse_criteria(text: str, line_no: int) -> dict[Criterion, CriterionMatch]:
    """Parse ``m book dvd + !g staff`` into per-dimension matches."""
    criteria: dict[Criterion, CriterionMatch] = {}
    for term in text.split("+"):
        tokens = term.split()
        if not tokens:
            raise RuleParseError("Empty criterion", line_no)
        if tokens == ["all"]:
            continue

        head = tokens[0]
        negated = head.startswith("!")
        letter = head[1:] if negated else head
        criterion = _parse_criterion_letter(letter, line_no)
        values = tokens[1:]
        if not values:
            raise RuleParseError(f"Criterion {letter} needs at least one value", line_no)
        if criterion in criteria:
            raise RuleParseError(f"Criterion {letter} is repeated", line_no)
        if values == ["*"]:
            if negated:
                raise RuleParseError(f"Wildcard cannot be negated for {letter}", line_no)
            continue
        if "*" in values:
            raise RuleParseError(f"Wildcard cannot be combined with values for {letter}", line_no)

        criteria[criterion] = CriterionMatch(frozenset(values), negated)
    return criteria


def parse_policies(text: str, line_no: int) -> dict[PolicyType, str]:
    """Parse ``l loan-id r request-id`` into policy assignments."""
    tokens = text.split()
    if len(tokens) % 2:
        raise RuleParseError(f"Policy type {tokens[-1]} has no policy id", line_no)

    policies: dict[PolicyType, str] = {}
    for letter, policy_id in zip(tokens[::2], tokens[1::2]):
        policy_type = _parse_policy_type(letter, line_no)
        if policy_type in policies:
            raise RuleParseError(f"Policy type {letter} is assigned twice", line_no)
        policies[policy_type] = policy_id
    return policies


def parse_priority(text: str, line_no: int):
    """Parse the body of a ``priority:`` line.

    Returns (priority keys, criterium order, tie break).
    """
    criterium_order: tuple[Criterion, ...] = ()
    match = _CRITERIUM.search(text)
    if match:
        criterium_order = tuple(
            _parse_criterion_letter(t.strip(), line_no)
            for t in match.group(1).split(",")
            if t.strip()
        )
        text = text[: match.start()] + "criterium" + text[match.end():]

    entries = [e.strip() for e in text.split(",") if e.strip()]
    if entries and all(len(e) == 1 for e in entries):
        # Bare letter list: "priority: t, s, c, b, a, m, g"
        order = tuple(_parse_criterion_letter(e, line_no) for e in entries)
        return (PriorityKey.CRITERIUM, PriorityKey.LINE), order, None

    keys: list[PriorityKey] = []
    tie_break = None
    for entry in entries:
        if entry in _TIE_BREAK_ENTRIES:
            tie_break = _TIE_BREAK_ENTRIES[entry]
            keys.append(PriorityKey.LINE)
        elif entry == PriorityKey.NUMBER_OF_CRITERIA.value:
            keys.append(PriorityKey.NUMBER_OF_CRITERIA)
        elif entry == PriorityKey.CRITERIUM.value:
            keys.append(PriorityKey.CRITERIUM)
        else:
            raise RuleParseError(f"Unknown priority entry: {entry}", line_no)

    if PriorityKey.CRITERIUM in keys and not criterium_order:
        raise RuleParseError("criterium priority needs a letter list", line_no)
    if PriorityKey.LINE not in keys:
        keys.append(PriorityKey.LINE)
    return tuple(keys), criterium_order, tie_break


# ---------------------------------------------------------------------------
# Document parser
# ---------------------------------------------------------------------------

def parse_rules(text: str, require_fallback: bool = True) -> RuleSet:
    """Parse circulation rules text into an ordered ``RuleSet``.

    Raises RuleParseError on syntax errors, a repeated ``fallback-policy``
    line, or (when ``require_fallback``) a fallback that does not assign
    every policy type.
    """
    rules: list[CirculationRule] = []
    priority = DEFAULT_PRIORITY
    criterium_order: tuple[Criterion, ...] = ()
    tie_break = None
    fallback: CirculationRule | None = None
    priority_seen = False

    # (indent, inherited criteria, inherited policies)
    stack: list[tuple[int, dict, dict]] = []

    for line_no, raw in enumerate(text.splitlines(), start=1):
        line = _strip_comment(raw)
        if not line.strip():
            continue
        indent = _indent_of(line, line_no)
        body = line.strip()

        if body.startswith("priority:"):
            if indent:
                raise RuleParseError("priority line cannot be indented", line_no)
            if priority_seen:
                raise RuleParseError("priority is declared twice", line_no)
            priority, criterium_order, tie_break = parse_priority(
                body[len("priority:"):], line_no
            )
            priority_seen = True
            continue

        if body.startswith("fallback-policy:"):
            if indent:
                raise RuleParseError("fallback-policy line cannot be indented", line_no)
            if fallback is not None:
                raise RuleParseError("fallback-policy is declared twice", line_no)
            fallback = CirculationRule(
                criteria={},
                policies=parse_policies(body[len("fallback-policy:"):], line_no),
                line=line_no,
                is_fallback=True,
            )
            continue

        while stack and stack[-1][0] >= indent:
            stack.pop()
        parent_criteria, parent_policies = (stack[-1][1], stack[-1][2]) if stack else ({}, {})

        criteria_text, _, policies_text = body.partition(":")
        criteria = {**parent_criteria, **parse_criteria(criteria_text, line_no)}
        policies = {**parent_policies, **parse_policies(policies_text, line_no)}

        if policies:
            rules.append(CirculationRule(criteria=criteria, policies=policies, line=line_no))
        stack.append((indent, criteria, policies))

    if fallback is None:
        if require_fallback:
            raise RuleParseError("fallback-policy is missing")
    else:
        missing = [t.value for t in PolicyType if t not in fallback.policies]
        if require_fallback and missing:
            raise RuleParseError(
                f"fallback-policy must assign every policy type, missing: {', '.join(missing)}",
                fallback.line,
            )
        rules.append(fallback)

    logger.debug("Parsed %s circulation rules", len(rules))
    return RuleSet(
        rules=tuple(rules),
        priority=priority,
        criterium_order=criterium_order,
        tie_break=tie_break,
    )

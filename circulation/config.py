"""Dataclass-based configuration for the loan-terms engine.

Settings are frozen dataclasses so a configuration snapshot can be shared
between concurrent requests without copying:
- CalendarConfig: the zone in which due dates and "end of day" are computed
- RulesConfig: tie-break order and fallback strictness for rule matching

Usage::

    config = CirculationConfig.from_env()
    rules = InMemoryCirculationRulesRepository.from_text(text, config)
"""

import os
from dataclasses import dataclass, field
from datetime import timezone, tzinfo
from zoneinfo import ZoneInfo

from circulation.rules.criteria import TieBreak

_UTC_NAMES = {"UTC", "Z", "Etc/UTC"}


def resolve_zone(name: str) -> tzinfo:
    """Resolve a zone name, mapping the UTC aliases to ``timezone.utc``."""
    if name in _UTC_NAMES:
        return timezone.utc
    return ZoneInfo(name)


# ---------------------------------------------------------------------------
# Nested config sections
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CalendarConfig:
    """Time zone used for due-date arithmetic."""

    timezone: str = "UTC"

    @property
    def zone(self) -> tzinfo:
        return resolve_zone(self.timezone)


@dataclass(frozen=True)
class RulesConfig:
    """Circulation rule matching behaviour.

    An unset ``tie_break`` leaves the order to the rules text.
    """

    tie_break: TieBreak | None = None
    require_fallback: bool = True


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CirculationConfig:
    """Complete configuration for loan-term calculations."""

    calendar: CalendarConfig = field(default_factory=CalendarConfig)
    rules: RulesConfig = field(default_factory=RulesConfig)

    @classmethod
    def default(cls) -> "CirculationConfig":
        """Create config with all defaults."""
        return cls()

    @classmethod
    def from_env(cls, prefix: str = "CIRCULATION_") -> "CirculationConfig":
        """Create config from environment variables.

        Example: CIRCULATION_TIMEZONE=Europe/Berlin
        """
        calendar = CalendarConfig()
        rules = RulesConfig()

        zone_name = os.getenv(f"{prefix}TIMEZONE")
        if zone_name:
            resolve_zone(zone_name)
            calendar = CalendarConfig(timezone=zone_name)

        tie_break = os.getenv(f"{prefix}RULE_TIE_BREAK")
        if tie_break:
            rules = RulesConfig(
                tie_break=TieBreak(tie_break.lower()),
                require_fallback=rules.require_fallback,
            )

        require_fallback = os.getenv(f"{prefix}REQUIRE_FALLBACK")
        if require_fallback:
            rules = RulesConfig(
                tie_break=rules.tie_break,
                require_fallback=require_fallback.lower() == "true",
            )

        return cls(calendar=calendar, rules=rules)

"""Loan policy model: due-date profile, renewal rules and holds handling.

Policies are immutable; the ``with_*`` methods return modified copies so a
policy snapshot can be shared between concurrent checkouts.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from circulation.policy.closed_library import ClosedLibraryStrategy
from circulation.policy.fixed_schedule import FixedDueDateSchedule
from circulation.policy.period import Period


class LoanProfile(str, Enum):
    ROLLING = "Rolling"
    FIXED = "Fixed"


class RenewFrom(str, Enum):
    CURRENT_DUE_DATE = "CURRENT_DUE_DATE"
    SYSTEM_DATE = "SYSTEM_DATE"


@dataclass(frozen=True)
class RenewalsPolicy:
    """How renewals are anchored and limited.

    ``renew_from`` keeps the stored value; anything other than the two
    ``RenewFrom`` names cannot be resolved when renewing. ``number_allowed``
    of None means unlimited renewals.
    """

    renew_from: str = RenewFrom.CURRENT_DUE_DATE.value
    period: Period | None = None
    number_allowed: int | None = None
    alternate_fixed_due_date_schedule_id: str | None = None

    @property
    def renew_from_option(self) -> RenewFrom | None:
        try:
            return RenewFrom(self.renew_from)
        except ValueError:
            return None

    @property
    def unlimited(self) -> bool:
        return self.number_allowed is None


@dataclass(frozen=True)
class HoldsPolicy:
    alternate_checkout_period: Period | None = None
    alternate_renewal_period: Period | None = None
    renew_items_with_request: bool = True


@dataclass(frozen=True)
class LoanPolicy:
    id: str | None
    name: str = ""
    loanable: bool = True
    renewable: bool = True
    profile: LoanProfile = LoanProfile.ROLLING
    period: Period | None = None
    fixed_due_date_schedule_id: str | None = None
    closed_library_strategy: ClosedLibraryStrategy = ClosedLibraryStrategy.KEEP_CURRENT_DATE
    opening_time_offset: Period | None = None
    grace_period: Period | None = None
    renewals: RenewalsPolicy = field(default_factory=RenewalsPolicy)
    holds: HoldsPolicy = field(default_factory=HoldsPolicy)
    loan_schedule: FixedDueDateSchedule = field(default_factory=FixedDueDateSchedule.none)
    renewal_schedule: FixedDueDateSchedule = field(default_factory=FixedDueDateSchedule.none)
    is_unknown: bool = False

    @classmethod
    def unknown(cls, policy_id: str | None) -> "LoanPolicy":
        """Stand-in for a policy id that storage does not know about."""
        return cls(
            id=policy_id,
            name="Unknown loan policy",
            loanable=False,
            renewable=False,
            is_unknown=True,
        )

    # -- profile --

    @property
    def is_rolling(self) -> bool:
        return self.profile is LoanProfile.ROLLING

    @property
    def is_fixed(self) -> bool:
        return self.profile is LoanProfile.FIXED

    @property
    def is_long_term(self) -> bool:
        """Fixed loans and day/week/month periods are due at day granularity."""
        if self.is_fixed:
            return True
        return self.period is not None and self.period.is_long_term

    # -- renewals --

    @property
    def renewal_period(self) -> Period | None:
        """Period applied on renewal: the renewal-specific one when set."""
        return self.renewals.period or self.period

    @property
    def alternate_renewal_schedule_id(self) -> str | None:
        return self.renewals.alternate_fixed_due_date_schedule_id

    def has_reached_renewal_limit(self, renewal_count: int) -> bool:
        if self.renewals.unlimited:
            return False
        return renewal_count >= self.renewals.number_allowed

    def schedule_for_renewal(self) -> FixedDueDateSchedule:
        if not self.renewal_schedule.is_empty:
            return self.renewal_schedule
        return self.loan_schedule

    # -- copy-on-write updates --

    def with_schedules(
        self,
        loan_schedule: FixedDueDateSchedule,
        renewal_schedule: FixedDueDateSchedule | None = None,
    ) -> "LoanPolicy":
        return replace(
            self,
            loan_schedule=loan_schedule,
            renewal_schedule=renewal_schedule or FixedDueDateSchedule.none(),
        )

    def with_closed_library_strategy(self, strategy: ClosedLibraryStrategy) -> "LoanPolicy":
        return replace(self, closed_library_strategy=strategy)

    def with_renewals(self, **changes) -> "LoanPolicy":
        return replace(self, renewals=replace(self.renewals, **changes))

    def with_holds(self, **changes) -> "LoanPolicy":
        return replace(self, holds=replace(self.holds, **changes))

"""Pydantic schemas for stored JSON documents.

Policies, schedules and calendars arrive as camelCase JSON from storage
clients. Each schema validates one document shape and converts it into the
immutable domain value with ``to_domain()``.
"""

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from circulation.calendar.opening_days import AdjacentOpeningDays, OpeningDay, OpeningHour
from circulation.calendar.time_utils import ensure_aware
from circulation.policy.closed_library import ClosedLibraryStrategy
from circulation.policy.fixed_schedule import FixedDueDateSchedule, ScheduleRange
from circulation.policy.loan_policy import (
    HoldsPolicy,
    LoanPolicy,
    LoanProfile,
    RenewalsPolicy,
    RenewFrom,
)
from circulation.policy.overdue_fine_policy import OverdueFinePolicy
from circulation.policy.period import Period


class _Representation(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ---------------------------------------------------------------------------
# Loan policy
# ---------------------------------------------------------------------------

class PeriodRepresentation(_Representation):
    duration: int
    interval_id: str = Field(..., alias="intervalId")

    def to_domain(self) -> Period:
        return Period(self.duration, self.interval_id)


def _period(representation: Optional[PeriodRepresentation]) -> Optional[Period]:
    return representation.to_domain() if representation is not None else None


class LoansSectionRepresentation(_Representation):
    profile_id: LoanProfile = Field(LoanProfile.ROLLING, alias="profileId")
    period: Optional[PeriodRepresentation] = None
    closed_library_due_date_management_id: ClosedLibraryStrategy = Field(
        ClosedLibraryStrategy.KEEP_CURRENT_DATE, alias="closedLibraryDueDateManagementId"
    )
    grace_period: Optional[PeriodRepresentation] = Field(None, alias="gracePeriod")
    opening_time_offset: Optional[PeriodRepresentation] = Field(None, alias="openingTimeOffset")
    fixed_due_date_schedule_id: Optional[str] = Field(None, alias="fixedDueDateScheduleId")


class RenewalsSectionRepresentation(_Representation):
    unlimited: bool = False
    number_allowed: Optional[int] = Field(None, alias="numberAllowed", ge=0)
    renew_from_id: str = Field(RenewFrom.CURRENT_DUE_DATE.value, alias="renewFromId")
    different_period: bool = Field(False, alias="differentPeriod")
    period: Optional[PeriodRepresentation] = None
    alternate_fixed_due_date_schedule_id: Optional[str] = Field(
        None, alias="alternateFixedDueDateScheduleId"
    )

    def to_domain(self) -> RenewalsPolicy:
        return RenewalsPolicy(
            renew_from=self.renew_from_id,
            period=_period(self.period) if self.different_period else None,
            number_allowed=None if self.unlimited else self.number_allowed,
            alternate_fixed_due_date_schedule_id=self.alternate_fixed_due_date_schedule_id,
        )


class HoldsSectionRepresentation(_Representation):
    alternate_checkout_loan_period: Optional[PeriodRepresentation] = Field(
        None, alias="alternateCheckoutLoanPeriod"
    )
    renew_items_with_request: bool = Field(True, alias="renewItemsWithRequest")
    alternate_renewal_loan_period: Optional[PeriodRepresentation] = Field(
        None, alias="alternateRenewalLoanPeriod"
    )

    def to_domain(self) -> HoldsPolicy:
        return HoldsPolicy(
            alternate_checkout_period=_period(self.alternate_checkout_loan_period),
            alternate_renewal_period=_period(self.alternate_renewal_loan_period),
            renew_items_with_request=self.renew_items_with_request,
        )


class RequestManagementRepresentation(_Representation):
    holds: HoldsSectionRepresentation = Field(default_factory=HoldsSectionRepresentation)


class LoanPolicyRepresentation(_Representation):
    id: str
    name: str = ""
    loanable: bool = True
    renewable: bool = True
    loans_policy: LoansSectionRepresentation = Field(
        default_factory=LoansSectionRepresentation, alias="loansPolicy"
    )
    renewals_policy: RenewalsSectionRepresentation = Field(
        default_factory=RenewalsSectionRepresentation, alias="renewalsPolicy"
    )
    request_management: RequestManagementRepresentation = Field(
        default_factory=RequestManagementRepresentation, alias="requestManagement"
    )

    def to_domain(self) -> LoanPolicy:
        loans = self.loans_policy
        return LoanPolicy(
            id=self.id,
            name=self.name,
            loanable=self.loanable,
            renewable=self.renewable,
            profile=loans.profile_id,
            period=_period(loans.period),
            fixed_due_date_schedule_id=loans.fixed_due_date_schedule_id,
            closed_library_strategy=loans.closed_library_due_date_management_id,
            opening_time_offset=_period(loans.opening_time_offset),
            grace_period=_period(loans.grace_period),
            renewals=self.renewals_policy.to_domain(),
            holds=self.request_management.holds.to_domain(),
        )


# ---------------------------------------------------------------------------
# Fixed due-date schedules
# ---------------------------------------------------------------------------

class ScheduleRangeRepresentation(_Representation):
    from_: datetime = Field(..., alias="from")
    to: datetime
    due: datetime

    def to_domain(self) -> ScheduleRange:
        return ScheduleRange(
            from_date=self.from_.date(),
            to_date=self.to.date(),
            due_date=ensure_aware(self.due),
        )


class FixedDueDateScheduleRepresentation(_Representation):
    id: str
    name: str = ""
    schedules: list[ScheduleRangeRepresentation] = Field(default_factory=list)

    def to_domain(self) -> FixedDueDateSchedule:
        return FixedDueDateSchedule(
            id=self.id,
            name=self.name,
            ranges=tuple(s.to_domain() for s in self.schedules),
        )


# ---------------------------------------------------------------------------
# Overdue fine policy
# ---------------------------------------------------------------------------

class OverdueFinePolicyRepresentation(_Representation):
    id: str
    name: str = ""
    grace_period_recall: bool = Field(True, alias="gracePeriodRecall")
    count_closed: bool = Field(True, alias="countClosed")

    def to_domain(self) -> OverdueFinePolicy:
        return OverdueFinePolicy(
            id=self.id,
            name=self.name,
            grace_period_recall=self.grace_period_recall,
            count_closed=self.count_closed,
        )


# ---------------------------------------------------------------------------
# Calendar
# ---------------------------------------------------------------------------

class OpeningHourRepresentation(_Representation):
    start_time: time = Field(..., alias="startTime")
    end_time: time = Field(..., alias="endTime")

    def to_domain(self) -> OpeningHour:
        return OpeningHour(self.start_time, self.end_time)


class OpeningDayRepresentation(_Representation):
    day: date = Field(..., alias="date")
    open: bool = False
    all_day: bool = Field(False, alias="allDay")
    opening_hour: list[OpeningHourRepresentation] = Field(
        default_factory=list, alias="openingHour"
    )

    def to_domain(self) -> OpeningDay:
        return OpeningDay(
            date=self.day,
            is_open=self.open,
            all_day=self.all_day,
            open_intervals=tuple(sorted(h.to_domain() for h in self.opening_hour)),
        )


class AdjacentOpeningDaysRepresentation(_Representation):
    previous_day: OpeningDayRepresentation = Field(..., alias="previousDay")
    requested_day: OpeningDayRepresentation = Field(..., alias="requestedDay")
    next_day: OpeningDayRepresentation = Field(..., alias="nextDay")

    def to_domain(self) -> AdjacentOpeningDays:
        return AdjacentOpeningDays(
            previous_day=self.previous_day.to_domain(),
            requested_day=self.requested_day.to_domain(),
            next_day=self.next_day.to_domain(),
        )

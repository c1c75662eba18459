"""
Policy model — loan policies, periods, schedules and closed-library handling.

- Period / Interval: durations in Minutes, Hours, Days, Weeks or Months
- LoanPolicy: rolling vs fixed profile, renewals and holds sections
- FixedDueDateSchedule: date ranges mapped to due dates
- OverdueFinePolicy: grace-on-recall and count-closed flags
- ClosedLibraryStrategy: due-date adjustment when the library is closed
"""
from circulation.policy.closed_library import (
    ClosedLibraryStrategy,
    calculate_due_date,
)
from circulation.policy.fixed_schedule import (
    FixedDueDateSchedule,
    ScheduleRange,
)
from circulation.policy.loan_policy import (
    HoldsPolicy,
    LoanPolicy,
    LoanProfile,
    RenewalsPolicy,
    RenewFrom,
)
from circulation.policy.overdue_fine_policy import OverdueFinePolicy
from circulation.policy.period import Interval, Period

__all__ = [
    # Closed library
    "ClosedLibraryStrategy",
    "calculate_due_date",
    # Schedules
    "FixedDueDateSchedule",
    "ScheduleRange",
    # Loan policy
    "HoldsPolicy",
    "LoanPolicy",
    "LoanProfile",
    "RenewalsPolicy",
    "RenewFrom",
    # Overdue
    "OverdueFinePolicy",
    # Periods
    "Interval",
    "Period",
]

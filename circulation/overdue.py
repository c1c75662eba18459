"""Overdue minutes for fine assessment.

Overdue time runs from the due date to now. When the overdue fine policy
does not count closed time, only minutes inside the checkout service
point's open hours count. The loan policy's grace period is then
subtracted, except for recall-shortened loans whose fine policy does not
honour grace on recall.
"""

import logging
from datetime import datetime, timezone, tzinfo
from typing import Iterable

from circulation.calendar.opening_days import OpeningDay
from circulation.calendar.time_utils import ensure_aware, whole_minutes_between
from circulation.loans import Loan
from circulation.policy.loan_policy import LoanPolicy
from circulation.policy.overdue_fine_policy import OverdueFinePolicy

logger = logging.getLogger(__name__)


def open_minutes_between(
    start: datetime,
    end: datetime,
    opening_days: Iterable[OpeningDay],
    zone: tzinfo = timezone.utc,
) -> int:
    """Minutes of ``[start, end]`` that fall inside open intervals.

    Days missing from ``opening_days`` count as closed.
    """
    if end <= start:
        return 0
    seconds = 0.0
    for day in opening_days:
        for open_start, open_end in day.open_periods(zone):
            overlap_start = max(open_start, start)
            overlap_end = min(open_end, end)
            if overlap_end > overlap_start:
                seconds += (overlap_end - overlap_start).total_seconds()
    return int(seconds // 60)


def grace_period_minutes(
    loan: Loan, loan_policy: LoanPolicy | None, fine_policy: OverdueFinePolicy
) -> int:
    """Grace minutes to subtract; unknown interval units give zero."""
    if loan_policy is None or loan_policy.grace_period is None:
        return 0
    if loan.due_date_changed_by_recall and not fine_policy.grace_period_recall:
        return 0
    return loan_policy.grace_period.to_minutes()


def count_overdue_minutes(
    loan: Loan,
    loan_policy: LoanPolicy | None,
    fine_policy: OverdueFinePolicy,
    system_date: datetime,
    opening_days: Iterable[OpeningDay] | None = None,
    zone: tzinfo = timezone.utc,
) -> int:
    """Whole overdue minutes, floored at zero.

    ``opening_days`` cover the due date through ``system_date`` for the
    checkout service point; they are required only when the fine policy
    does not count closed time.
    """
    system_date = ensure_aware(system_date)
    if loan.due_date >= system_date:
        return 0

    if fine_policy.count_closed:
        overdue = whole_minutes_between(loan.due_date, system_date)
    else:
        if opening_days is None:
            raise ValueError("Opening days are required when closed time is not counted")
        overdue = open_minutes_between(loan.due_date, system_date, opening_days, zone)

    grace = grace_period_minutes(loan, loan_policy, fine_policy)
    logger.debug("Loan %s overdue %s minutes before %s grace minutes", loan.id, overdue, grace)
    return max(overdue - grace, 0)

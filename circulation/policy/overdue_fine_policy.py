"""Overdue fine policy flags that affect the overdue-minute count."""

from dataclasses import dataclass


@dataclass(frozen=True)
class OverdueFinePolicy:
    """``grace_period_recall``: whether the loan policy's grace period is
    still honoured when a recall shortened the due date.
    ``count_closed``: whether time the library was closed counts as overdue.
    """

    id: str | None = None
    name: str = ""
    grace_period_recall: bool = True
    count_closed: bool = True
    is_unknown: bool = False

    @classmethod
    def unknown(cls, policy_id: str | None) -> "OverdueFinePolicy":
        return cls(id=policy_id, name="Unknown overdue fine policy", is_unknown=True)

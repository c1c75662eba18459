"""Loan, item status and request queue value objects.

Every state change (checkout, renewal, recall shortening, status change)
returns a new ``Loan``; nothing is mutated in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from circulation.calendar.time_utils import ensure_aware


# ---------------------------------------------------------------------------
# Item status
# ---------------------------------------------------------------------------

class ItemStatus(str, Enum):
    """Item statuses by display name."""

    AVAILABLE = "Available"
    AWAITING_PICKUP = "Awaiting pickup"
    AWAITING_DELIVERY = "Awaiting delivery"
    CHECKED_OUT = "Checked out"
    IN_TRANSIT = "In transit"
    PAGED = "Paged"
    MISSING = "Missing"
    DECLARED_LOST = "Declared lost"
    AGED_TO_LOST = "Aged to lost"
    CLAIMED_RETURNED = "Claimed returned"
    LOST_AND_PAID = "Lost and paid"
    WITHDRAWN = "Withdrawn"

    @classmethod
    def from_name(cls, name: str) -> "ItemStatus":
        for status in cls:
            if status.value.lower() == name.strip().lower():
                return status
        raise ValueError(f"Unknown item status: {name}")


# Statuses that block a renewal outright
RENEWAL_BLOCKING_STATUSES = frozenset({
    ItemStatus.DECLARED_LOST,
    ItemStatus.AGED_TO_LOST,
    ItemStatus.CLAIMED_RETURNED,
})


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class RequestType(str, Enum):
    HOLD = "Hold"
    RECALL = "Recall"
    PAGE = "Page"


class RequestStatus(str, Enum):
    OPEN_NOT_YET_FILLED = "Open - Not yet filled"
    OPEN_AWAITING_PICKUP = "Open - Awaiting pickup"
    OPEN_IN_TRANSIT = "Open - In transit"
    OPEN_AWAITING_DELIVERY = "Open - Awaiting delivery"
    CLOSED_FILLED = "Closed - Filled"
    CLOSED_CANCELLED = "Closed - Cancelled"
    CLOSED_UNFILLED = "Closed - Unfilled"
    CLOSED_PICKUP_EXPIRED = "Closed - Pickup expired"

    @property
    def is_open(self) -> bool:
        return self.value.startswith("Open")


@dataclass(frozen=True)
class Request:
    id: str
    type: RequestType
    status: RequestStatus = RequestStatus.OPEN_NOT_YET_FILLED
    position: int = 1

    @property
    def is_active(self) -> bool:
        return self.status.is_open

    @property
    def is_recall(self) -> bool:
        return self.type is RequestType.RECALL

    @property
    def is_hold(self) -> bool:
        return self.type is RequestType.HOLD


@dataclass(frozen=True)
class RequestQueue:
    """Requests for one item, ordered by queue position."""

    requests: tuple[Request, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(
            self, "requests", tuple(sorted(self.requests, key=lambda r: r.position))
        )

    @classmethod
    def empty(cls) -> "RequestQueue":
        return cls()

    @classmethod
    def of(cls, *requests: Request) -> "RequestQueue":
        return cls(tuple(requests))

    @property
    def head(self) -> Request | None:
        """First request that has not been fulfilled or closed."""
        return next((r for r in self.requests if r.is_active), None)

    @property
    def has_active_recall_at_head(self) -> bool:
        head = self.head
        return head is not None and head.is_recall

    @property
    def has_active_hold_at_head(self) -> bool:
        head = self.head
        return head is not None and head.is_hold

    def __len__(self) -> int:
        return len(self.requests)


# ---------------------------------------------------------------------------
# Loan
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Loan:
    id: str
    due_date: datetime
    loan_date: datetime | None = None
    item_id: str | None = None
    user_id: str | None = None
    loan_policy_id: str | None = None
    overdue_fine_policy_id: str | None = None
    renewal_count: int = 0
    due_date_changed_by_recall: bool = False
    checkout_service_point_id: str | None = None
    item_status: ItemStatus = ItemStatus.CHECKED_OUT
    action: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "due_date", ensure_aware(self.due_date))
        if self.loan_date is not None:
            object.__setattr__(self, "loan_date", ensure_aware(self.loan_date))

    def renew(self, due_date: datetime, loan_policy_id: str | None = None) -> "Loan":
        return replace(
            self,
            due_date=due_date,
            renewal_count=self.renewal_count + 1,
            loan_policy_id=loan_policy_id or self.loan_policy_id,
            action="renewed",
        )

    def override_renewal(self, due_date: datetime, loan_policy_id: str | None = None) -> "Loan":
        return replace(
            self.renew(due_date, loan_policy_id), action="renewedThroughOverride"
        )

    def recall(self, due_date: datetime) -> "Loan":
        """Shorten the due date for a recall; never extends it."""
        if due_date >= self.due_date:
            return self
        return replace(
            self, due_date=due_date, due_date_changed_by_recall=True, action="recallrequested"
        )

    def with_item_status(self, status: ItemStatus) -> "Loan":
        return replace(self, item_status=status)

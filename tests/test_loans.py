"""Test loan and request queue values."""
from datetime import datetime, timezone

import pytest

from circulation.loans import ItemStatus, Loan, Request, RequestQueue, RequestStatus, RequestType

UTC = timezone.utc
DUE = datetime(2024, 1, 11, 10, 0, tzinfo=UTC)


def test_recall_only_shortens():
    loan = Loan(id="loan-1", due_date=DUE)
    recalled = loan.recall(datetime(2024, 1, 5, tzinfo=UTC))
    assert recalled.due_date_changed_by_recall
    assert recalled.action == "recallrequested"
    assert loan.recall(datetime(2024, 2, 1, tzinfo=UTC)) is loan


def test_renew_keeps_policy_when_none_given():
    loan = Loan(id="loan-1", due_date=DUE, loan_policy_id="regular-loan")
    renewed = loan.renew(datetime(2024, 1, 21, tzinfo=UTC))
    assert renewed.loan_policy_id == "regular-loan"
    assert renewed.renewal_count == 1


def test_queue_head_skips_closed_requests():
    queue = RequestQueue.of(
        Request("r2", RequestType.HOLD, position=2),
        Request("r1", RequestType.RECALL, RequestStatus.CLOSED_CANCELLED, position=1),
    )
    assert queue.head.id == "r2"
    assert queue.has_active_hold_at_head
    assert not queue.has_active_recall_at_head
    assert len(queue) == 2


def test_empty_queue():
    queue = RequestQueue.empty()
    assert queue.head is None
    assert not queue.has_active_hold_at_head


@pytest.mark.parametrize("name,status", [
    ("Aged to lost", ItemStatus.AGED_TO_LOST),
    ("checked out", ItemStatus.CHECKED_OUT),
])
def test_item_status_from_name(name, status):
    assert ItemStatus.from_name(name) is status


def test_unknown_item_status():
    with pytest.raises(ValueError):
        ItemStatus.from_name("Shelved")


def test_naive_dates_are_read_as_utc():
    loan = Loan(id="loan-1", due_date=datetime(2024, 1, 11, 10, 0), loan_date=datetime(2024, 1, 1))
    assert loan.due_date == DUE
    assert loan.due_date.tzinfo is UTC
    assert loan.loan_date == datetime(2024, 1, 1, tzinfo=UTC)


def test_status_change_returns_new_loan():
    loan = Loan(id="loan-1", due_date=DUE)
    lost = loan.with_item_status(ItemStatus.DECLARED_LOST)
    assert lost.item_status is ItemStatus.DECLARED_LOST
    assert loan.item_status is ItemStatus.CHECKED_OUT

"""
Pure status rules for purchase requests.

Nothing here touches the database; the lifecycle and receiving services load
the rows, call these functions and persist the outcome.
"""

from collections import Counter
from typing import Iterable, Optional

from constants.statuses import (
    COMPLETABLE_REQUEST_STATUSES,
    ITEM_APPROVED,
    ITEM_COMPLETION_STATUSES,
    ITEM_PENDING,
    ITEM_REJECTED,
    ITEM_STATUSES,
    RECEIVING_COMPLETE,
    RECEIVING_OVER_DELIVERED,
    RECEIVING_PARTIAL,
    RECEIVING_PENDING,
    REQUEST_APPROVED,
    REQUEST_PARTIAL,
    REQUEST_PENDING,
    REQUEST_REJECTED,
)


def count_statuses(item_statuses: Iterable[str]) -> Counter:
    """
    Tally item statuses. Unknown values raise ValueError.
    """
    counts: Counter = Counter()
    for item_status in item_statuses:
        if item_status not in ITEM_STATUSES:
            raise ValueError(f"Unknown item status: {item_status!r}")
        counts[item_status] += 1
    return counts


def compute_request_status(item_statuses: Iterable[str]) -> str:
    """
    Derive the request status from its items' statuses.

    Precedence:
      1. any pending item  -> pending
      2. all approved      -> approved
      3. all rejected      -> rejected
      4. anything else     -> partial

    A request always has at least one item, so an empty input is an
    invariant breach and raises ValueError.
    """
    counts = count_statuses(item_statuses)
    total = sum(counts.values())
    if total == 0:
        raise ValueError("Cannot compute the status of a request without items")

    if counts[ITEM_PENDING]:
        return REQUEST_PENDING
    if counts[ITEM_APPROVED] == total:
        return REQUEST_APPROVED
    if counts[ITEM_REJECTED] == total:
        return REQUEST_REJECTED
    return REQUEST_PARTIAL


def completion_blocker(request_status: str, item_statuses: Iterable[str]) -> Optional[str]:
    """
    Return the reason a request cannot be completed, or None when it can.
    Guards are checked in a fixed order so callers report the first failure.
    """
    counts = count_statuses(item_statuses)

    pending = counts[ITEM_PENDING]
    if pending:
        return (
            f"Cannot complete a request with {pending} item(s) still pending. "
            "Review every item first."
        )
    if request_status not in COMPLETABLE_REQUEST_STATUSES:
        return "Request must be approved or partially approved to be completed."
    if not any(counts[s] for s in ITEM_COMPLETION_STATUSES):
        return "Cannot complete a request without at least one approved or suspended item."
    return None


def classify_receiving(quantity_ordered: int, quantity_received: int) -> str:
    """
    Receiving progress of one item. Over-delivery is reported, not raised:
    historical rows may predate the quantity guard.
    """
    if quantity_received <= 0:
        return RECEIVING_PENDING
    if quantity_received < quantity_ordered:
        return RECEIVING_PARTIAL
    if quantity_received == quantity_ordered:
        return RECEIVING_COMPLETE
    return RECEIVING_OVER_DELIVERED

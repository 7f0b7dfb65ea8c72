"""Tests for the pure request status rules"""

import itertools

import pytest

from apps.lifecycle.aggregation import (
    classify_receiving,
    completion_blocker,
    compute_request_status,
    count_statuses,
)

ITEM_VALUES = ["pending", "approved", "rejected", "suspended"]
REQUEST_VALUES = {"pending", "approved", "partial", "rejected"}


class TestComputeRequestStatus:
    """Aggregation of item statuses into a request status"""

    @pytest.mark.parametrize("size", [1, 2, 3, 4])
    def test_total_and_order_independent(self, size):
        for combo in itertools.product(ITEM_VALUES, repeat=size):
            result = compute_request_status(combo)
            assert result in REQUEST_VALUES
            for perm in itertools.permutations(combo):
                assert compute_request_status(perm) == result

    def test_any_pending_dominates(self):
        assert compute_request_status(["approved", "approved", "pending"]) == "pending"
        assert compute_request_status(["rejected", "pending", "suspended"]) == "pending"
        assert compute_request_status(["pending"]) == "pending"

    def test_unanimous_approved(self):
        assert compute_request_status(["approved"] * 5) == "approved"

    def test_unanimous_rejected(self):
        assert compute_request_status(["rejected", "rejected"]) == "rejected"

    @pytest.mark.parametrize(
        "statuses",
        [
            ["approved", "rejected"],
            ["approved", "suspended"],
            ["rejected", "suspended"],
            ["suspended"],
            ["suspended", "suspended"],
        ],
    )
    def test_mixed_decisions_are_partial(self, statuses):
        assert compute_request_status(statuses) == "partial"

    def test_empty_input_raises(self):
        with pytest.raises(ValueError):
            compute_request_status([])

    def test_unknown_status_raises(self):
        with pytest.raises(ValueError):
            compute_request_status(["approved", "lost"])

    def test_accepts_generators(self):
        assert compute_request_status(s for s in ["approved", "approved"]) == "approved"


def test_count_statuses():
    counts = count_statuses(["approved", "approved", "suspended"])
    assert counts["approved"] == 2
    assert counts["suspended"] == 1
    assert counts["pending"] == 0


class TestCompletionBlocker:
    """Guards checked before a request may be completed"""

    def test_approved_request_can_complete(self):
        assert completion_blocker("approved", ["approved", "approved"]) is None

    def test_partial_with_suspended_only_can_complete(self):
        assert completion_blocker("partial", ["rejected", "suspended"]) is None

    def test_pending_items_reported_first(self):
        reason = completion_blocker("rejected", ["pending", "pending", "approved"])
        assert "2 item(s) still pending" in reason

    def test_request_status_must_be_approved_or_partial(self):
        reason = completion_blocker("rejected", ["rejected", "rejected"])
        assert "approved or partially approved" in reason

    def test_needs_an_approved_or_suspended_item(self):
        # Manual override can leave a partial request with only rejected items
        reason = completion_blocker("partial", ["rejected"])
        assert "at least one approved or suspended item" in reason


@pytest.mark.parametrize(
    "ordered,received,expected",
    [
        (10, 0, "pending"),
        (10, 1, "partial"),
        (10, 9, "partial"),
        (10, 10, "complete"),
        (10, 12, "over_delivered"),
    ],
)
def test_classify_receiving(ordered, received, expected):
    assert classify_receiving(ordered, received) == expected

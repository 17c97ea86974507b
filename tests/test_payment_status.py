from __future__ import annotations

import pytest

from rentez.domain.payment_status import IllegalTransition, accepts_proof, can_transition, manual_status, next_status


def test_allowed_transitions():
    assert next_status("pending", "overdue") == "overdue"
    assert next_status("pending", "paid") == "paid"
    assert next_status("pending", "cancelled") == "cancelled"
    assert next_status("overdue", "paid") == "paid"


def test_same_status_is_noop():
    for s in ("pending", "overdue", "paid", "cancelled"):
        assert next_status(s, s) == s


@pytest.mark.parametrize(
    "current,target",
    [
        ("overdue", "pending"),
        ("paid", "pending"),
        ("paid", "overdue"),
        ("cancelled", "paid"),
        ("overdue", "cancelled"),
        ("pending", "refunded"),
    ],
)
def test_illegal_transitions_raise(current, target):
    assert not can_transition(current, target) or target == "refunded"
    with pytest.raises(IllegalTransition) as ei:
        next_status(current, target)
    assert ei.value.current == current
    assert ei.value.target == target


def test_users_cannot_request_system_statuses():
    assert manual_status("pending", "paid") == "paid"
    assert manual_status("overdue", "paid") == "paid"
    assert manual_status("overdue", "overdue") == "overdue"
    for target in ("cancelled", "overdue"):
        with pytest.raises(IllegalTransition):
            manual_status("pending", target)


def test_proof_rules():
    assert accepts_proof("pending") and accepts_proof("overdue")
    assert not accepts_proof("paid") and not accepts_proof("cancelled")

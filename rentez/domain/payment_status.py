# rentez/domain/payment_status.py
from __future__ import annotations

# -----------------------------------------------------------------------------
# RentPayment status machine
# -----------------------------------------------------------------------------
#   pending --(due date passes)--> overdue
#   pending | overdue --(marked paid / receipt verified)--> paid
#   pending --(lease terminated)--> cancelled
#
# paid and cancelled are terminal. The overdue sweep is the only automatic
# transition and it never moves a payment backward.
# -----------------------------------------------------------------------------

TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"overdue", "paid", "cancelled"}),
    "overdue": frozenset({"paid"}),
    "paid": frozenset(),
    "cancelled": frozenset(),
}

OPEN = frozenset({"pending", "overdue"})

# overdue belongs to the daily sweep, cancelled to lease termination
SYSTEM_ONLY = frozenset({"overdue", "cancelled"})


class IllegalTransition(ValueError):
    def __init__(self, current: str, target: str):
        super().__init__(f"cannot move payment from '{current}' to '{target}'")
        self.current = current
        self.target = target


def can_transition(current: str, target: str) -> bool:
    if current == target:
        return True
    return target in TRANSITIONS.get(current, frozenset())


def next_status(current: str, target: str) -> str:
    if target not in TRANSITIONS:
        raise IllegalTransition(current, target)
    if not can_transition(current, target):
        raise IllegalTransition(current, target)
    return target


def manual_status(current: str, target: str) -> str:
    """Status change requested by a user; system-only targets are refused."""
    if target in SYSTEM_ONLY and target != current:
        raise IllegalTransition(current, target)
    return next_status(current, target)


def accepts_proof(status: str) -> bool:
    return status in OPEN

from __future__ import annotations

from datetime import date

from sqlalchemy import select

from rentez.models import RentPayment
from rentez.services.payment_sweeps import mark_overdue_payments


def _statuses(db, lease_id: int) -> list[str]:
    db.expire_all()
    return list(
        db.scalars(
            select(RentPayment.status).where(RentPayment.lease_id == lease_id).order_by(RentPayment.month_number)
        ).all()
    )


def test_pending_past_due_becomes_overdue(db, approved_lease):
    # due dates: 2026-02-28, 2026-03-31, 2026-04-30, ...
    n = mark_overdue_payments(db, today=date(2026, 4, 1))
    assert n == 2
    assert _statuses(db, approved_lease.id)[:3] == ["overdue", "overdue", "pending"]


def test_due_today_is_not_overdue(db, approved_lease):
    assert mark_overdue_payments(db, today=date(2026, 2, 28)) == 0


def test_paid_and_cancelled_are_untouched(db, approved_lease):
    rows = db.scalars(
        select(RentPayment).where(RentPayment.lease_id == approved_lease.id).order_by(RentPayment.month_number)
    ).all()
    rows[0].status = "paid"
    rows[1].status = "cancelled"
    db.commit()

    mark_overdue_payments(db, today=date(2026, 4, 1))
    assert _statuses(db, approved_lease.id)[:2] == ["paid", "cancelled"]


def test_sweep_never_moves_backward(db, approved_lease):
    mark_overdue_payments(db, today=date(2026, 4, 1))
    # an earlier "today" must not revive anything
    assert mark_overdue_payments(db, today=date(2026, 1, 1)) == 0
    assert _statuses(db, approved_lease.id)[:2] == ["overdue", "overdue"]

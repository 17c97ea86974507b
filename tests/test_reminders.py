from __future__ import annotations

from datetime import date, datetime

import pytest
from sqlalchemy import select

from rentez.models import RentPayment
from rentez.services.payment_sweeps import payments_due_for_reminder, send_reminder_for_payment

# first installment of the fixture lease is due 2026-02-28
TODAY = date(2026, 2, 26)


class FakeMailer:
    def __init__(self, fail: bool = False):
        self.sent: list[dict] = []
        self.fail = fail

    def __call__(self, **kw) -> bool:
        if self.fail:
            raise ConnectionError("smtp down")
        self.sent.append(kw)
        return True


def test_window_selects_upcoming_open_payments(db, approved_lease):
    ids = payments_due_for_reminder(db, today=TODAY, window_days=3)
    first = db.scalar(select(RentPayment).where(RentPayment.lease_id == approved_lease.id, RentPayment.month_number == 1))
    assert ids == [first.id]

    assert payments_due_for_reminder(db, today=date(2026, 2, 1), window_days=3) == []


def test_reminder_is_sent_once_per_day(db, approved_lease, tenant):
    (pid,) = payments_due_for_reminder(db, today=TODAY, window_days=3)
    mailer = FakeMailer()

    assert send_reminder_for_payment(db, payment_id=pid, today=TODAY, deliver=mailer) is True
    assert send_reminder_for_payment(db, payment_id=pid, today=TODAY, deliver=mailer) is False
    assert len(mailer.sent) == 1
    assert mailer.sent[0]["to"] == tenant.email
    assert mailer.sent[0]["due_date"] == date(2026, 2, 28)

    assert payments_due_for_reminder(db, today=TODAY, window_days=3) == []


def test_failed_delivery_raises_and_does_not_stamp(db, approved_lease):
    (pid,) = payments_due_for_reminder(db, today=TODAY, window_days=3)

    with pytest.raises(ConnectionError):
        send_reminder_for_payment(db, payment_id=pid, today=TODAY, deliver=FakeMailer(fail=True))
    db.rollback()

    db.expire_all()
    assert db.get(RentPayment, pid).last_reminder_sent_at is None
    assert payments_due_for_reminder(db, today=TODAY, window_days=3) == [pid]


def test_reminded_yesterday_is_eligible_again(db, approved_lease):
    (pid,) = payments_due_for_reminder(db, today=TODAY, window_days=3)
    row = db.get(RentPayment, pid)
    row.last_reminder_sent_at = datetime(2026, 2, 25, 23, 0)
    db.commit()

    assert payments_due_for_reminder(db, today=TODAY, window_days=3) == [pid]


def test_paid_payments_are_skipped(db, approved_lease):
    (pid,) = payments_due_for_reminder(db, today=TODAY, window_days=3)
    db.get(RentPayment, pid).status = "paid"
    db.commit()

    assert send_reminder_for_payment(db, payment_id=pid, today=TODAY, deliver=FakeMailer()) is False

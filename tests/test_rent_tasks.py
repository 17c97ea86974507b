from __future__ import annotations

from datetime import date

from sqlalchemy import select

from rentez.models import RentPayment
from rentez.services import payment_sweeps
from rentez.workers import rent_tasks


def test_beat_schedule_has_daily_sweeps():
    from rentez.workers.celery_app import celery_app

    sched = celery_app.conf.beat_schedule
    assert sched["mark-overdue-payments"]["task"] == "rentez.workers.rent_tasks.mark_overdue_payments"
    assert sched["send-rent-reminders"]["task"] == "rentez.workers.rent_tasks.send_rent_reminders"


def test_overdue_task_reports_count(monkeypatch, approved_lease):
    monkeypatch.setattr(payment_sweeps, "_today", lambda: date(2026, 4, 1))
    assert rent_tasks.mark_overdue_payments() == {"ok": True, "updated": 2}


def test_reminder_fan_out_and_single_send(monkeypatch, db, approved_lease):
    monkeypatch.setattr(payment_sweeps, "_today", lambda: date(2026, 2, 26))

    queued: list[int] = []
    monkeypatch.setattr(rent_tasks.send_rent_reminder, "delay", lambda pid: queued.append(pid))
    out = rent_tasks.send_rent_reminders()
    assert out == {"ok": True, "queued": 1}

    sent: list[dict] = []
    monkeypatch.setattr(payment_sweeps, "deliver_rent_reminder", lambda **kw: sent.append(kw) or True)

    first = rent_tasks.send_rent_reminder(queued[0])
    again = rent_tasks.send_rent_reminder(queued[0])
    assert first["sent"] is True
    assert again["sent"] is False
    assert len(sent) == 1

    db.expire_all()
    row = db.scalar(select(RentPayment).where(RentPayment.id == queued[0]))
    assert row.last_reminder_sent_at is not None

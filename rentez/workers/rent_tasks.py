# rentez/workers/rent_tasks.py
from __future__ import annotations

import logging
import random

from ..db import SessionLocal
from ..services.payment_sweeps import mark_overdue_payments as run_overdue_sweep
from ..services.payment_sweeps import payments_due_for_reminder, send_reminder_for_payment
from .celery_app import celery_app

log = logging.getLogger(__name__)

RETRY_BASE_SECONDS = 60
RETRY_MAX_SECONDS = 30 * 60


def _backoff_seconds(retries: int) -> int:
    """Exponential backoff with +/- 20% jitter; retries is 0 for the first retry."""
    delay = min(RETRY_MAX_SECONDS, RETRY_BASE_SECONDS * (2 ** max(0, int(retries))))
    jitter = int(delay * 0.2)
    if jitter > 0:
        delay = max(1, delay + random.randint(-jitter, jitter))
    return delay


@celery_app.task(name="rentez.workers.rent_tasks.mark_overdue_payments")
def mark_overdue_payments() -> dict:
    db = SessionLocal()
    try:
        n = run_overdue_sweep(db)
        return {"ok": True, "updated": n}
    finally:
        db.close()


@celery_app.task(name="rentez.workers.rent_tasks.send_rent_reminders")
def send_rent_reminders() -> dict:
    """Fans out one reminder task per eligible payment."""
    db = SessionLocal()
    try:
        ids = payments_due_for_reminder(db)
    finally:
        db.close()

    for payment_id in ids:
        send_rent_reminder.delay(payment_id)
    log.info("queued %d rent reminders", len(ids))
    return {"ok": True, "queued": len(ids)}


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=RETRY_BASE_SECONDS,
    name="rentez.workers.rent_tasks.send_rent_reminder",
)
def send_rent_reminder(self, payment_id: int) -> dict:
    """
    Sends one reminder. Safe to retry: send_reminder_for_payment skips
    payments already reminded today.
    """
    db = SessionLocal()
    try:
        sent = send_reminder_for_payment(db, payment_id=int(payment_id))
        return {"ok": True, "sent": sent, "payment_id": int(payment_id)}
    except Exception as e:
        db.rollback()
        retries = int(getattr(self.request, "retries", 0) or 0)
        log.warning(
            "rent reminder failed (attempt %d): %s",
            retries + 1,
            e,
            extra={"payment_id": int(payment_id)},
        )
        if retries >= int(self.max_retries or 3):
            log.error("rent reminder gave up", extra={"payment_id": int(payment_id)})
            return {"ok": False, "reason": "failed_final", "error": str(e), "payment_id": int(payment_id)}
        raise self.retry(exc=e, countdown=_backoff_seconds(retries))
    finally:
        db.close()

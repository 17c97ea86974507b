# rentez/services/payment_sweeps.py
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from ..config import settings
from ..domain.payment_status import OPEN
from ..models import AppUser, Property, RentPayment, utcnow
from .email_service import deliver_rent_reminder

log = logging.getLogger(__name__)


def _today() -> date:
    return utcnow().date()


def mark_overdue_payments(db: Session, *, today: Optional[date] = None) -> int:
    """Daily sweep: pending installments whose due date has passed become overdue."""
    today = today or _today()
    res = db.execute(
        update(RentPayment)
        .where(RentPayment.status == "pending", RentPayment.due_date < today)
        .values(status="overdue", updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    db.commit()
    n = int(res.rowcount or 0)
    log.info("overdue sweep updated %d payments", n)
    return n


def _reminder_filters(today: date, window_days: int):
    day_start = datetime.combine(today, datetime.min.time())
    return (
        RentPayment.status.in_(tuple(OPEN)),
        RentPayment.due_date >= today,
        RentPayment.due_date <= today + timedelta(days=int(window_days)),
        or_(RentPayment.last_reminder_sent_at.is_(None), RentPayment.last_reminder_sent_at < day_start),
    )


def payments_due_for_reminder(
    db: Session,
    *,
    today: Optional[date] = None,
    window_days: Optional[int] = None,
) -> list[int]:
    """Ids of open payments due within the window that haven't been reminded today."""
    today = today or _today()
    window = settings.reminder_window_days if window_days is None else int(window_days)
    q = select(RentPayment.id).where(*_reminder_filters(today, window)).order_by(RentPayment.due_date, RentPayment.id)
    return [int(x) for x in db.scalars(q).all()]


def send_reminder_for_payment(
    db: Session,
    *,
    payment_id: int,
    today: Optional[date] = None,
    deliver: Optional[Callable[..., bool]] = None,
) -> bool:
    """
    Sends the reminder for one payment and stamps last_reminder_sent_at.

    Re-checks eligibility first, so a retried or duplicated task is a no-op
    once the reminder went out today. Delivery errors propagate (the task
    retries); nothing is stamped in that case.
    """
    today = today or _today()
    payment = db.scalar(
        select(RentPayment).where(
            RentPayment.id == int(payment_id), *_reminder_filters(today, settings.reminder_window_days)
        )
    )
    if payment is None:
        return False

    tenant = db.get(AppUser, payment.tenant_id)
    prop = db.get(Property, payment.property_id)
    if tenant is None or prop is None:
        log.warning("reminder skipped: missing tenant/property", extra={"payment_id": payment.id})
        return False

    deliver = deliver or deliver_rent_reminder
    sent = deliver(
        to=tenant.email,
        tenant_name=tenant.name,
        property_title=prop.title,
        amount=float(payment.amount),
        due_date=payment.due_date,
    )
    if not sent:
        return False

    payment.last_reminder_sent_at = utcnow()
    db.commit()
    log.info("rent reminder sent to %s", tenant.email, extra={"payment_id": payment.id})
    return True

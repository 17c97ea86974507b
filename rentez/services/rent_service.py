# rentez/services/rent_service.py
from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..domain.audit import record, snapshot
from ..domain.payment_status import accepts_proof, manual_status, next_status
from ..models import RentPayment, utcnow

log = logging.getLogger(__name__)


class ReceiptError(ValueError):
    pass


def list_payments(db: Session, *, tenant_id: Optional[int] = None, owner_id: Optional[int] = None) -> list[RentPayment]:
    q = select(RentPayment)
    if tenant_id is not None:
        q = q.where(RentPayment.tenant_id == tenant_id)
    if owner_id is not None:
        q = q.where(RentPayment.owner_id == owner_id)
    return list(db.scalars(q.order_by(RentPayment.due_date.desc(), RentPayment.id.desc())).all())


def update_payment(db: Session, *, payment: RentPayment, changes: dict[str, Any]) -> RentPayment:
    """
    Applies a partial update. Users can only move a payment to paid; marking
    it paid stamps payment_date when the caller didn't.
    """
    target = changes.get("status")
    if target:
        payment.status = manual_status(payment.status, target)
        if target == "paid" and not (changes.get("payment_date") or payment.payment_date):
            payment.payment_date = utcnow()

    for key in ("payment_date", "payment_method", "transaction_id", "notes"):
        val = changes.get(key)
        if val:
            setattr(payment, key, val)

    db.commit()
    db.refresh(payment)
    return payment


def attach_proof(db: Session, *, payment: RentPayment, proof_path: str) -> RentPayment:
    if not accepts_proof(payment.status):
        raise ReceiptError(f"Cannot upload proof for a {payment.status} payment")

    payment.payment_proof = proof_path
    payment.verification_status = "pending_verification"
    db.commit()
    db.refresh(payment)
    log.info("payment proof uploaded", extra={"payment_id": payment.id, "user_id": payment.tenant_id})
    return payment


def verify_receipt(
    db: Session,
    *,
    payment: RentPayment,
    owner_id: int,
    action: str,
    notes: Optional[str] = None,
) -> RentPayment:
    """
    approve -> verified + paid (payment_date defaults to now), one commit.
    reject  -> rejected, status untouched.
    """
    if payment.verification_status != "pending_verification":
        raise ReceiptError("No payment proof awaiting verification")

    before = snapshot(payment)
    if action == "approve":
        payment.status = next_status(payment.status, "paid")
        payment.verification_status = "verified"
        payment.payment_date = payment.payment_date or utcnow()
    elif action == "reject":
        payment.verification_status = "rejected"
    else:
        raise ReceiptError('Invalid action. Use "approve" or "reject"')

    payment.verification_notes = notes or ""
    payment.verified_by_id = owner_id
    payment.verified_at = utcnow()

    record(db, actor_user_id=owner_id, action=f"payment.receipt_{action}", row=payment, before=before)
    db.commit()
    db.refresh(payment)
    return payment


def payment_stats(db: Session, *, user_id: int, role: str) -> list[dict[str, Any]]:
    col = RentPayment.owner_id if role == "owner" else RentPayment.tenant_id
    rows = db.execute(
        select(RentPayment.status, func.count(RentPayment.id), func.coalesce(func.sum(RentPayment.amount), 0.0))
        .where(col == user_id)
        .group_by(RentPayment.status)
        .order_by(RentPayment.status)
    ).all()
    return [{"status": s, "count": int(c), "total_amount": float(t)} for s, c, t in rows]

# rentez/routers/rent.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal, require_owner, require_tenant
from ..db import get_db
from ..domain.payment_status import IllegalTransition, accepts_proof
from ..models import AppUser, RentPayment
from ..schemas import PaymentStatOut, RentPaymentCreate, RentPaymentOut, RentPaymentUpdate, VerifyReceiptIn
from ..services.ownership import must_get_payment, must_own_property
from ..services.rent_service import (
    ReceiptError,
    attach_proof,
    list_payments,
    payment_stats,
    update_payment,
    verify_receipt,
)
from ..services.uploads import save_upload

router = APIRouter(prefix="/rent", tags=["rent"])


@router.get("/tenant", response_model=List[RentPaymentOut])
def tenant_payments(db: Session = Depends(get_db), p: Principal = Depends(require_tenant)):
    return list_payments(db, tenant_id=p.user_id)


@router.get("/owner", response_model=List[RentPaymentOut])
def owner_payments(db: Session = Depends(get_db), p: Principal = Depends(require_owner)):
    return list_payments(db, owner_id=p.user_id)


@router.get("/stats", response_model=List[PaymentStatOut])
def stats(db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    return payment_stats(db, user_id=p.user_id, role=p.role)


@router.post("", response_model=RentPaymentOut)
def create_payment(payload: RentPaymentCreate, db: Session = Depends(get_db), p: Principal = Depends(require_owner)):
    prop = must_own_property(db, p=p, property_id=payload.property_id)
    tenant = db.get(AppUser, payload.tenant_id)
    if tenant is None or tenant.role != "tenant":
        raise HTTPException(status_code=400, detail="Tenant not found")

    # ad-hoc charge, not part of any lease schedule
    row = RentPayment(
        property_id=prop.id,
        tenant_id=tenant.id,
        owner_id=p.user_id,
        amount=payload.amount,
        due_date=payload.due_date,
        status="pending",
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@router.put("/{payment_id}", response_model=RentPaymentOut)
def update(
    payment_id: int,
    payload: RentPaymentUpdate,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    payment = must_get_payment(db, payment_id=payment_id)
    if p.user_id not in (payment.owner_id, payment.tenant_id):
        raise HTTPException(status_code=403, detail="Not authorized")

    try:
        return update_payment(db, payment=payment, changes=payload.model_dump(exclude_unset=True))
    except IllegalTransition as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{payment_id}/upload-proof", response_model=RentPaymentOut)
def upload_proof(
    payment_id: int,
    payment_proof: UploadFile = File(None),
    db: Session = Depends(get_db),
    p: Principal = Depends(require_tenant),
):
    payment = must_get_payment(db, payment_id=payment_id)
    if payment.tenant_id != p.user_id:
        raise HTTPException(status_code=403, detail="Not authorized")
    if payment_proof is None:
        raise HTTPException(status_code=400, detail="Please upload a payment receipt")

    try:
        if not accepts_proof(payment.status):
            raise ReceiptError(f"Cannot upload proof for a {payment.status} payment")
        path = save_upload(payment_proof, prefix="receipt")
        return attach_proof(db, payment=payment, proof_path=path)
    except ReceiptError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/{payment_id}/verify-receipt", response_model=RentPaymentOut)
def verify(
    payment_id: int,
    payload: VerifyReceiptIn,
    db: Session = Depends(get_db),
    p: Principal = Depends(require_owner),
):
    payment = must_get_payment(db, payment_id=payment_id)
    if payment.owner_id != p.user_id:
        raise HTTPException(status_code=403, detail="Not authorized")

    try:
        return verify_receipt(db, payment=payment, owner_id=p.user_id, action=payload.action, notes=payload.notes)
    except (ReceiptError, IllegalTransition) as e:
        raise HTTPException(status_code=400, detail=str(e))

# rentez/services/ownership.py
from __future__ import annotations

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ..auth import Principal
from ..models import Application, Lease, Property, RentPayment


def must_get_property(db: Session, *, property_id: int) -> Property:
    row = db.get(Property, property_id)
    if not row:
        raise HTTPException(status_code=404, detail="Property not found")
    return row


def must_own_property(db: Session, *, p: Principal, property_id: int) -> Property:
    row = must_get_property(db, property_id=property_id)
    if row.owner_id != p.user_id:
        raise HTTPException(status_code=403, detail="Not authorized for this property")
    return row


def must_get_application(db: Session, *, application_id: int) -> Application:
    row = db.get(Application, application_id)
    if not row:
        raise HTTPException(status_code=404, detail="Application not found")
    return row


def must_get_lease(db: Session, *, lease_id: int) -> Lease:
    row = db.get(Lease, lease_id)
    if not row:
        raise HTTPException(status_code=404, detail="Lease not found")
    return row


def must_be_lease_party(db: Session, *, p: Principal, lease_id: int) -> Lease:
    row = must_get_lease(db, lease_id=lease_id)
    if p.user_id not in (row.owner_id, row.tenant_id):
        raise HTTPException(status_code=403, detail="Unauthorized access")
    return row


def must_get_payment(db: Session, *, payment_id: int) -> RentPayment:
    row = db.get(RentPayment, payment_id)
    if not row:
        raise HTTPException(status_code=404, detail="Payment not found")
    return row

# rentez/routers/leases.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import desc, or_, select
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal, require_owner
from ..db import get_db
from ..models import Lease
from ..schemas import LeaseCreate, LeaseOut
from ..services.lease_service import LeaseConflict, create_lease_from_application, terminate_lease
from ..services.ownership import must_be_lease_party, must_get_application

router = APIRouter(prefix="/leases", tags=["leases"])


@router.post("", response_model=LeaseOut)
def create_lease(payload: LeaseCreate, db: Session = Depends(get_db), p: Principal = Depends(require_owner)):
    application = must_get_application(db, application_id=payload.application_id)
    if application.owner_id != p.user_id or application.status != "approved":
        raise HTTPException(status_code=404, detail="Approved application not found")

    try:
        return create_lease_from_application(
            db,
            application=application,
            owner_id=p.user_id,
            security_deposit=payload.security_deposit,
            terms=payload.terms,
        )
    except LeaseConflict as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/active", response_model=List[LeaseOut])
def active_leases(db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    q = (
        select(Lease)
        .where(Lease.status == "active", or_(Lease.tenant_id == p.user_id, Lease.owner_id == p.user_id))
        .order_by(desc(Lease.start_date), desc(Lease.id))
    )
    return list(db.scalars(q).all())


@router.get("/{lease_id}", response_model=LeaseOut)
def get_lease(lease_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    return must_be_lease_party(db, p=p, lease_id=lease_id)


@router.put("/{lease_id}/terminate")
def terminate(lease_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    lease = must_be_lease_party(db, p=p, lease_id=lease_id)
    if lease.owner_id != p.user_id:
        raise HTTPException(status_code=403, detail="Only the owner can terminate a lease")

    try:
        cancelled = terminate_lease(db, lease=lease, actor_user_id=p.user_id)
    except LeaseConflict as e:
        raise HTTPException(status_code=400, detail=str(e))

    db.refresh(lease)
    return {"lease": LeaseOut.model_validate(lease), "cancelled_payments": cancelled}

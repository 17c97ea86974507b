# rentez/routers/applications.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal, require_owner, require_tenant
from ..db import get_db
from ..domain.payment_status import IllegalTransition
from ..models import Application
from ..schemas import (
    ApplicationCreate,
    ApplicationDecision,
    ApplicationDecisionOut,
    ApplicationOut,
    ApplicationStatsOut,
    ApplicationStatus,
    LeaseOut,
)
from ..services.application_service import (
    ApplicationRejected,
    application_stats,
    decide_application,
    submit_application,
)
from ..services.lease_service import LeaseConflict
from ..services.ownership import must_get_application, must_get_property, must_own_property

router = APIRouter(prefix="/applications", tags=["applications"])


@router.post("", response_model=ApplicationOut)
def create_application(
    payload: ApplicationCreate,
    db: Session = Depends(get_db),
    p: Principal = Depends(require_tenant),
):
    prop = must_get_property(db, property_id=payload.property_id)
    try:
        return submit_application(
            db,
            tenant_id=p.user_id,
            prop=prop,
            message=payload.message,
            move_in_date=payload.move_in_date,
            lease_duration=payload.lease_duration,
        )
    except ApplicationRejected as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/my-applications", response_model=List[ApplicationOut])
def my_applications(db: Session = Depends(get_db), p: Principal = Depends(require_tenant)):
    q = select(Application).where(Application.tenant_id == p.user_id).order_by(desc(Application.created_at), desc(Application.id))
    return list(db.scalars(q).all())


@router.get("/received", response_model=List[ApplicationOut])
def received_applications(
    status: Optional[ApplicationStatus] = None,
    db: Session = Depends(get_db),
    p: Principal = Depends(require_owner),
):
    q = select(Application).where(Application.owner_id == p.user_id)
    if status:
        q = q.where(Application.status == status)
    return list(db.scalars(q.order_by(desc(Application.created_at), desc(Application.id))).all())


@router.get("/stats", response_model=ApplicationStatsOut)
def stats(db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    return ApplicationStatsOut(**application_stats(db, user_id=p.user_id, role=p.role))


@router.get("/property/{property_id}", response_model=List[ApplicationOut])
def property_applications(property_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    must_own_property(db, p=p, property_id=property_id)
    q = select(Application).where(Application.property_id == property_id).order_by(desc(Application.created_at), desc(Application.id))
    return list(db.scalars(q).all())


@router.put("/{application_id}/status", response_model=ApplicationDecisionOut)
def decide(
    application_id: int,
    payload: ApplicationDecision,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    app_row = must_get_application(db, application_id=application_id)
    if app_row.owner_id != p.user_id:
        raise HTTPException(status_code=403, detail="Not authorized")

    try:
        app_row, lease = decide_application(
            db,
            application=app_row,
            owner_id=p.user_id,
            status=payload.status,
            rejection_reason=payload.rejection_reason,
            security_deposit=payload.security_deposit,
            terms=payload.terms,
        )
    except (ApplicationRejected, LeaseConflict, IllegalTransition) as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ApplicationDecisionOut(
        application=ApplicationOut.model_validate(app_row),
        lease=LeaseOut.model_validate(lease) if lease is not None else None,
    )

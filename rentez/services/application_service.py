# rentez/services/application_service.py
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..domain.audit import record, snapshot
from ..models import Application, Lease, Property
from .lease_service import create_lease_from_application

log = logging.getLogger(__name__)

OPEN_STATUSES = ("pending", "approved")


class ApplicationRejected(ValueError):
    pass


def submit_application(
    db: Session,
    *,
    tenant_id: int,
    prop: Property,
    message: str,
    move_in_date,
    lease_duration: int,
) -> Application:
    if prop.status != "available":
        raise ApplicationRejected("Property is not available for rent")

    existing = db.scalar(
        select(Application).where(
            Application.property_id == prop.id,
            Application.tenant_id == tenant_id,
            Application.status.in_(OPEN_STATUSES),
        )
    )
    if existing is not None:
        raise ApplicationRejected("You have already applied for this property")

    row = Application(
        property_id=prop.id,
        tenant_id=tenant_id,
        owner_id=prop.owner_id,
        message=message,
        move_in_date=move_in_date,
        lease_duration=int(lease_duration),
        status="pending",
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    log.info("application submitted", extra={"application_id": row.id, "property_id": prop.id, "user_id": tenant_id})
    return row


def decide_application(
    db: Session,
    *,
    application: Application,
    owner_id: int,
    status: str,
    rejection_reason: Optional[str] = None,
    security_deposit: float = 0.0,
    terms: Optional[str] = None,
) -> tuple[Application, Optional[Lease]]:
    """
    Owner approves or rejects a pending application.

    Approval creates the lease and its rent schedule in the same commit; if
    that fails (e.g. an active lease already exists) the approval is rolled
    back too.
    """
    if application.status != "pending":
        raise ApplicationRejected("Application has already been processed")

    before = snapshot(application)
    application.status = status
    lease: Optional[Lease] = None

    try:
        if status == "rejected":
            if rejection_reason:
                application.rejection_reason = rejection_reason
        else:
            lease = create_lease_from_application(
                db,
                application=application,
                owner_id=owner_id,
                security_deposit=security_deposit,
                terms=terms,
                commit=False,
            )

        record(
            db,
            actor_user_id=owner_id,
            action=f"application.{status}",
            row=application,
            before=before,
            extra={"lease_id": lease.id if lease else None},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(application)
    return application, lease


def application_stats(db: Session, *, user_id: int, role: str) -> dict[str, int]:
    col = Application.owner_id if role == "owner" else Application.tenant_id
    rows = db.execute(
        select(Application.status, func.count(Application.id)).where(col == user_id).group_by(Application.status)
    ).all()

    out = {"pending": 0, "approved": 0, "rejected": 0}
    for status, count in rows:
        out[str(status)] = int(count)
    return out

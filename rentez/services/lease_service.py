# rentez/services/lease_service.py
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ..domain.audit import record, snapshot
from ..domain.rent_schedule import build_rent_schedule, lease_end_date
from ..models import Application, Lease, Property, RentPayment

log = logging.getLogger(__name__)


class LeaseConflict(ValueError):
    pass


def active_lease_for_application(db: Session, application_id: int) -> Optional[Lease]:
    return db.scalar(
        select(Lease).where(Lease.application_id == int(application_id), Lease.status == "active")
    )


def _active_lease_for_property(db: Session, property_id: int) -> Optional[Lease]:
    return db.scalar(select(Lease).where(Lease.property_id == int(property_id), Lease.status == "active"))


def create_lease_from_application(
    db: Session,
    *,
    application: Application,
    owner_id: int,
    security_deposit: float = 0.0,
    terms: Optional[str] = None,
    commit: bool = True,
) -> Lease:
    """
    Approved application -> Lease + one RentPayment per month + property rented.

    Everything is flushed into the caller's transaction; with commit=True it
    is committed here, and any failure rolls the whole unit back so a lease
    never exists without its schedule.
    """
    if application.owner_id != owner_id:
        raise LeaseConflict("Approved application not found")
    if application.status != "approved":
        raise LeaseConflict("Application must be approved before a lease can be created")

    if active_lease_for_application(db, application.id) is not None:
        raise LeaseConflict("Lease already exists for this application")

    prop = db.get(Property, application.property_id)
    if prop is None:
        raise LeaseConflict("Property no longer exists")

    other = _active_lease_for_property(db, prop.id)
    if other is not None:
        raise LeaseConflict(f"Property already has an active lease (id={other.id})")

    start = application.move_in_date
    end = lease_end_date(start, int(application.lease_duration))

    try:
        lease = Lease(
            property_id=prop.id,
            tenant_id=application.tenant_id,
            owner_id=owner_id,
            application_id=application.id,
            start_date=start,
            end_date=end,
            monthly_rent=float(prop.rent),
            security_deposit=float(security_deposit or 0.0),
            terms=terms,
            status="active",
        )
        db.add(lease)
        db.flush()

        prop.status = "rented"
        prop.current_tenant_id = application.tenant_id

        schedule = build_rent_schedule(start, end, lease.monthly_rent)
        db.add_all(
            [
                RentPayment(
                    lease_id=lease.id,
                    property_id=prop.id,
                    tenant_id=lease.tenant_id,
                    owner_id=owner_id,
                    month_number=s.month_number,
                    amount=s.amount,
                    due_date=s.due_date,
                    status=s.status,
                    verification_status=s.verification_status,
                )
                for s in schedule
            ]
        )

        record(db, actor_user_id=owner_id, action="lease.create", row=lease, extra={"payments": len(schedule)})

        if commit:
            db.commit()
        else:
            db.flush()
    except Exception:
        db.rollback()
        raise

    log.info(
        "lease created with %d scheduled payments",
        len(schedule),
        extra={"lease_id": lease.id, "property_id": prop.id, "user_id": owner_id},
    )
    return lease


def terminate_lease(db: Session, *, lease: Lease, actor_user_id: int) -> int:
    """
    Terminates an active lease, frees the property and cancels every still
    pending installment. Returns the number of cancelled payments.
    """
    if lease.status != "active":
        raise LeaseConflict(f"Lease is already {lease.status}")

    before = snapshot(lease)
    try:
        lease.status = "terminated"

        prop = db.get(Property, lease.property_id)
        if prop is not None:
            prop.status = "available"
            prop.current_tenant_id = None

        res = db.execute(
            update(RentPayment)
            .where(RentPayment.lease_id == lease.id, RentPayment.status == "pending")
            .values(status="cancelled")
            .execution_options(synchronize_session="fetch")
        )
        cancelled = int(res.rowcount or 0)

        record(
            db,
            actor_user_id=actor_user_id,
            action="lease.terminate",
            row=lease,
            before=before,
            extra={"cancelled_payments": cancelled},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    log.info("lease terminated", extra={"lease_id": lease.id, "user_id": actor_user_id})
    return cancelled

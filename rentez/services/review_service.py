# rentez/services/review_service.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..models import Lease, Property, Review, utcnow

QUALIFYING_LEASE_STATUSES = ("active", "completed")


@dataclass(frozen=True)
class ReviewEligibility:
    ok: bool
    message: Optional[str] = None


class ReviewNotAllowed(PermissionError):
    pass


def review_eligibility(db: Session, *, tenant_id: int, property_id: int, today: Optional[date] = None) -> ReviewEligibility:
    today = today or utcnow().date()

    lease = db.scalar(
        select(Lease.id).where(
            Lease.tenant_id == tenant_id,
            Lease.property_id == property_id,
            Lease.status.in_(QUALIFYING_LEASE_STATUSES),
            Lease.start_date <= today,
        )
    )
    if lease is None:
        return ReviewEligibility(False, "You must have rented this property to review it")

    existing = db.scalar(select(Review.id).where(Review.tenant_id == tenant_id, Review.property_id == property_id))
    if existing is not None:
        return ReviewEligibility(False, "You have already reviewed this property")

    return ReviewEligibility(True)


def refresh_property_rating(db: Session, prop: Property) -> None:
    avg, total = db.execute(
        select(func.avg(Review.rating), func.count(Review.id)).where(Review.property_id == prop.id)
    ).one()
    prop.average_rating = round(float(avg or 0.0), 1)
    prop.total_reviews = int(total or 0)


def create_review(db: Session, *, tenant_id: int, prop: Property, **fields) -> Review:
    check = review_eligibility(db, tenant_id=tenant_id, property_id=prop.id)
    if not check.ok:
        raise ReviewNotAllowed(check.message)

    row = Review(property_id=prop.id, tenant_id=tenant_id, verified=True, **fields)
    db.add(row)
    db.flush()
    refresh_property_rating(db, prop)
    db.commit()
    db.refresh(row)
    return row


def rating_distribution(db: Session, *, property_id: int) -> dict[int, int]:
    dist = {5: 0, 4: 0, 3: 0, 2: 0, 1: 0}
    rows = db.execute(
        select(Review.rating, func.count(Review.id)).where(Review.property_id == property_id).group_by(Review.rating)
    ).all()
    for rating, count in rows:
        dist[int(rating)] = int(count)
    return dist

# rentez/routers/reviews.py
from __future__ import annotations

import math

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from ..auth import Principal, require_tenant
from ..db import get_db
from ..models import Review
from ..schemas import CanReviewOut, Pagination, PropertyReviewsOut, ReviewCreate, ReviewOut, ReviewStatsOut
from ..services.ownership import must_get_property
from ..services.review_service import ReviewNotAllowed, create_review, rating_distribution, review_eligibility

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.post("", response_model=ReviewOut)
def post_review(payload: ReviewCreate, db: Session = Depends(get_db), p: Principal = Depends(require_tenant)):
    prop = must_get_property(db, property_id=payload.property_id)
    try:
        return create_review(db, tenant_id=p.user_id, prop=prop, **payload.model_dump(exclude={"property_id"}))
    except ReviewNotAllowed as e:
        raise HTTPException(status_code=403, detail=str(e))


@router.get("/property/{property_id}", response_model=PropertyReviewsOut)
def property_reviews(
    property_id: int,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    sort: str = Query(default="newest", pattern="^(newest|oldest|highest|lowest)$"),
    db: Session = Depends(get_db),
):
    prop = must_get_property(db, property_id=property_id)

    order = {
        "newest": (desc(Review.created_at), desc(Review.id)),
        "oldest": (Review.created_at, Review.id),
        "highest": (desc(Review.rating), desc(Review.created_at)),
        "lowest": (Review.rating, desc(Review.created_at)),
    }[sort]
    q = select(Review).where(Review.property_id == prop.id)
    total = int(db.scalar(select(func.count(Review.id)).where(Review.property_id == prop.id)) or 0)
    rows = db.scalars(q.order_by(*order).offset((page - 1) * limit).limit(limit)).all()

    return PropertyReviewsOut(
        reviews=[ReviewOut.model_validate(r) for r in rows],
        stats=ReviewStatsOut(
            average_rating=prop.average_rating,
            total_reviews=prop.total_reviews,
            distribution=rating_distribution(db, property_id=prop.id),
        ),
        pagination=Pagination(total=total, page=page, pages=math.ceil(total / limit) if total else 0),
    )


@router.get("/can-review/{property_id}", response_model=CanReviewOut)
def can_review(property_id: int, db: Session = Depends(get_db), p: Principal = Depends(require_tenant)):
    must_get_property(db, property_id=property_id)
    check = review_eligibility(db, tenant_id=p.user_id, property_id=property_id)
    return CanReviewOut(can_review=check.ok, message=check.message)

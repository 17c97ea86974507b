# rentez/routers/properties.py
from __future__ import annotations

import math
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from sqlalchemy import delete, desc, func, or_, select, update
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal, require_owner
from ..db import get_db
from ..models import ChatMessage, Property, RentPayment
from ..schemas import Pagination, PropertyCreate, PropertyOut, PropertyPage, PropertyType, PropertyStatus, PropertyUpdate
from ..services.ownership import must_get_property, must_own_property
from ..services.uploads import save_upload

router = APIRouter(prefix="/properties", tags=["properties"])

EARTH_RADIUS_KM = 6371.0
MAX_IMAGES = 10


def _haversine_km(lng1: float, lat1: float, lng2: float, lat2: float) -> float:
    p1, p2 = math.radians(lat1), math.radians(lat2)
    dp = p2 - p1
    dl = math.radians(lng2 - lng1)
    a = math.sin(dp / 2) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dl / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def _bounding_box(lng: float, lat: float, radius_km: float):
    dlat = math.degrees(radius_km / EARTH_RADIUS_KM)
    cos_lat = max(math.cos(math.radians(lat)), 1e-6)
    dlng = min(180.0, math.degrees(radius_km / (EARTH_RADIUS_KM * cos_lat)))
    return lng - dlng, lng + dlng, lat - dlat, lat + dlat


def _apply_fields(row: Property, data: dict) -> None:
    address = data.pop("address", None)
    if address:
        for k, v in address.items():
            setattr(row, k, v)
    location = data.pop("location", None)
    if location:
        row.longitude, row.latitude = location["coordinates"]
    for k, v in data.items():
        setattr(row, k, v)


@router.get("", response_model=PropertyPage)
def list_properties(
    search: Optional[str] = None,
    city: Optional[str] = None,
    min_rent: Optional[float] = Query(default=None, ge=0),
    max_rent: Optional[float] = Query(default=None, ge=0),
    bedrooms: Optional[int] = Query(default=None, ge=0),
    property_type: Optional[PropertyType] = None,
    status: PropertyStatus = "available",
    lng: Optional[float] = Query(default=None, ge=-180, le=180),
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    radius_km: float = Query(default=10.0, gt=0, le=1000),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    q = select(Property).where(Property.status == status)

    if search:
        like = f"%{search.strip()}%"
        q = q.where(or_(Property.title.ilike(like), Property.description.ilike(like), Property.city.ilike(like)))
    if city:
        q = q.where(Property.city.ilike(f"%{city.strip()}%"))
    if min_rent is not None:
        q = q.where(Property.rent >= min_rent)
    if max_rent is not None:
        q = q.where(Property.rent <= max_rent)
    if bedrooms is not None:
        q = q.where(Property.bedrooms >= bedrooms)
    if property_type:
        q = q.where(Property.property_type == property_type)

    offset = (page - 1) * limit

    if lng is not None and lat is not None:
        # coarse box in SQL, exact distance in python, nearest first
        min_lng, max_lng, min_lat, max_lat = _bounding_box(lng, lat, radius_km)
        q = q.where(Property.longitude.between(min_lng, max_lng), Property.latitude.between(min_lat, max_lat))
        near = []
        for row in db.scalars(q).all():
            d = _haversine_km(lng, lat, row.longitude, row.latitude)
            if d <= radius_km:
                near.append((d, row.id, row))
        near.sort(key=lambda t: (t[0], t[1]))
        total = len(near)
        rows = [t[2] for t in near[offset : offset + limit]]
    elif lng is not None or lat is not None:
        raise HTTPException(status_code=400, detail="lng and lat must be given together")
    else:
        total = int(db.scalar(select(func.count()).select_from(q.subquery())) or 0)
        rows = list(db.scalars(q.order_by(desc(Property.created_at), desc(Property.id)).offset(offset).limit(limit)).all())

    return PropertyPage(
        data=[PropertyOut.model_validate(r) for r in rows],
        pagination=Pagination(total=total, page=page, pages=math.ceil(total / limit) if total else 0),
    )


@router.get("/owner/my-properties", response_model=List[PropertyOut])
def my_properties(db: Session = Depends(get_db), p: Principal = Depends(require_owner)):
    q = select(Property).where(Property.owner_id == p.user_id).order_by(desc(Property.created_at), desc(Property.id))
    return [PropertyOut.model_validate(r) for r in db.scalars(q).all()]


@router.get("/{property_id}", response_model=PropertyOut)
def get_property(property_id: int, db: Session = Depends(get_db)):
    return PropertyOut.model_validate(must_get_property(db, property_id=property_id))


@router.post("", response_model=PropertyOut)
def create_property(payload: PropertyCreate, db: Session = Depends(get_db), p: Principal = Depends(require_owner)):
    row = Property(owner_id=p.user_id, status="available")
    _apply_fields(row, payload.model_dump())
    db.add(row)
    db.commit()
    db.refresh(row)
    return PropertyOut.model_validate(row)


@router.put("/{property_id}", response_model=PropertyOut)
def update_property(
    property_id: int,
    payload: PropertyUpdate,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    row = must_own_property(db, p=p, property_id=property_id)
    data = payload.model_dump(exclude_unset=True, exclude_none=True)

    if "status" in data and row.status == "rented" and data["status"] != "rented":
        raise HTTPException(status_code=400, detail="Property is rented; terminate the lease to change its status")

    _apply_fields(row, data)
    db.commit()
    db.refresh(row)
    return PropertyOut.model_validate(row)


@router.delete("/{property_id}")
def delete_property(property_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    row = must_own_property(db, p=p, property_id=property_id)
    if row.status == "rented":
        raise HTTPException(status_code=400, detail="Cannot delete a property with an active lease")

    db.execute(delete(RentPayment).where(RentPayment.property_id == row.id, RentPayment.lease_id.is_(None)))
    db.execute(update(ChatMessage).where(ChatMessage.property_id == row.id).values(property_id=None))
    db.delete(row)
    db.commit()
    return {"ok": True, "id": property_id}


@router.post("/{property_id}/images", response_model=PropertyOut)
def upload_images(
    property_id: int,
    images: List[UploadFile] = File(...),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    row = must_own_property(db, p=p, property_id=property_id)
    if not images:
        raise HTTPException(status_code=400, detail="Please upload at least one image")
    if len(row.images or []) + len(images) > MAX_IMAGES:
        raise HTTPException(status_code=400, detail=f"A property can have at most {MAX_IMAGES} images")

    paths = [save_upload(f, prefix="property") for f in images]
    # reassign so the JSON column is flagged dirty
    row.images = list(row.images or []) + paths
    db.commit()
    db.refresh(row)
    return PropertyOut.model_validate(row)

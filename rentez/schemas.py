# rentez/schemas.py
from __future__ import annotations

from datetime import date, datetime
from typing import Literal, Optional, List, Any

from pydantic import BaseModel, Field, ConfigDict, model_validator

Role = Literal["owner", "tenant"]
PropertyStatus = Literal["available", "rented", "maintenance"]
PropertyType = Literal["apartment", "house", "villa", "studio", "commercial"]
ApplicationStatus = Literal["pending", "approved", "rejected"]
LeaseStatus = Literal["active", "completed", "terminated"]
PaymentStatus = Literal["pending", "paid", "overdue", "cancelled"]
PaymentMethod = Literal["cash", "bank_transfer", "upi", "card", "other"]
VerificationStatus = Literal["not_submitted", "pending_verification", "verified", "rejected"]


# -------------------- Auth --------------------

class RegisterIn(BaseModel):
    name: str = Field(min_length=1, max_length=160)
    email: str = Field(min_length=3, max_length=200)
    password: str = Field(min_length=6)
    role: Role = "tenant"
    phone: Optional[str] = None


class LoginIn(BaseModel):
    email: str
    password: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: int
    role: Role


class UserOut(BaseModel):
    id: int
    name: str
    email: str
    role: Role
    phone: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class UserBrief(BaseModel):
    id: int
    name: str
    email: str
    model_config = ConfigDict(from_attributes=True)


# -------------------- Properties --------------------

class AddressIn(BaseModel):
    street: str
    city: str
    state: str
    zip_code: str
    country: str = "India"


class GeoPoint(BaseModel):
    # [longitude, latitude], same order as GeoJSON
    coordinates: List[float] = Field(min_length=2, max_length=2)

    @model_validator(mode="after")
    def _check_range(self):
        lng, lat = self.coordinates
        if not (-180.0 <= lng <= 180.0) or not (-90.0 <= lat <= 90.0):
            raise ValueError("coordinates must be [longitude, latitude] within range")
        return self


class PropertyCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    address: AddressIn
    location: GeoPoint
    rent: float = Field(ge=0)
    bedrooms: int = Field(ge=0)
    bathrooms: int = Field(ge=0)
    area: float = Field(gt=0)
    property_type: PropertyType = "apartment"
    amenities: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    available_from: Optional[date] = None


class PropertyUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    address: Optional[AddressIn] = None
    location: Optional[GeoPoint] = None
    rent: Optional[float] = Field(default=None, ge=0)
    bedrooms: Optional[int] = Field(default=None, ge=0)
    bathrooms: Optional[int] = Field(default=None, ge=0)
    area: Optional[float] = Field(default=None, gt=0)
    property_type: Optional[PropertyType] = None
    amenities: Optional[List[str]] = None
    available_from: Optional[date] = None
    # "rented" is reachable only through lease creation
    status: Optional[Literal["available", "maintenance"]] = None


class PropertyOut(BaseModel):
    id: int
    owner_id: int
    title: str
    description: str
    address: AddressIn
    location: GeoPoint
    rent: float
    bedrooms: int
    bathrooms: int
    area: float
    property_type: PropertyType
    amenities: List[str]
    images: List[str]
    available_from: Optional[date] = None
    status: PropertyStatus
    current_tenant_id: Optional[int] = None
    average_rating: float
    total_reviews: int
    created_at: datetime

    @model_validator(mode="before")
    @classmethod
    def _from_row(cls, v: Any) -> Any:
        # ORM rows keep address/geo flat; the API nests them
        if isinstance(v, dict):
            return v
        return {
            "id": v.id,
            "owner_id": v.owner_id,
            "title": v.title,
            "description": v.description,
            "address": {
                "street": v.street,
                "city": v.city,
                "state": v.state,
                "zip_code": v.zip_code,
                "country": v.country,
            },
            "location": {"coordinates": [v.longitude, v.latitude]},
            "rent": v.rent,
            "bedrooms": v.bedrooms,
            "bathrooms": v.bathrooms,
            "area": v.area,
            "property_type": v.property_type,
            "amenities": list(v.amenities or []),
            "images": list(v.images or []),
            "available_from": v.available_from,
            "status": v.status,
            "current_tenant_id": v.current_tenant_id,
            "average_rating": v.average_rating,
            "total_reviews": v.total_reviews,
            "created_at": v.created_at,
        }


class Pagination(BaseModel):
    total: int
    page: int
    pages: int


class PropertyPage(BaseModel):
    data: List[PropertyOut]
    pagination: Pagination


# -------------------- Applications --------------------

class ApplicationCreate(BaseModel):
    property_id: int
    message: str = Field(min_length=1, max_length=500)
    move_in_date: date
    lease_duration: int = Field(ge=1, le=60)


class ApplicationDecision(BaseModel):
    status: Literal["approved", "rejected"]
    rejection_reason: Optional[str] = Field(default=None, max_length=300)

    # used only on approval, which creates the lease
    security_deposit: float = Field(default=0.0, ge=0)
    terms: Optional[str] = Field(default=None, max_length=2000)


class ApplicationOut(BaseModel):
    id: int
    property_id: int
    tenant_id: int
    owner_id: int
    status: ApplicationStatus
    message: str
    move_in_date: date
    lease_duration: int
    rejection_reason: Optional[str] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ApplicationDecisionOut(BaseModel):
    application: ApplicationOut
    lease: Optional["LeaseOut"] = None


class ApplicationStatsOut(BaseModel):
    pending: int = 0
    approved: int = 0
    rejected: int = 0


# -------------------- Leases --------------------

class LeaseCreate(BaseModel):
    application_id: int
    security_deposit: float = Field(ge=0)
    terms: Optional[str] = Field(default=None, max_length=2000)


class LeaseOut(BaseModel):
    id: int
    property_id: int
    tenant_id: int
    owner_id: int
    application_id: int
    start_date: date
    end_date: date
    monthly_rent: float
    security_deposit: float
    status: LeaseStatus
    terms: Optional[str] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# -------------------- Rent payments --------------------

class RentPaymentCreate(BaseModel):
    property_id: int
    tenant_id: int
    amount: float = Field(ge=0)
    due_date: date


class RentPaymentUpdate(BaseModel):
    status: Optional[PaymentStatus] = None
    payment_date: Optional[datetime] = None
    payment_method: Optional[PaymentMethod] = None
    transaction_id: Optional[str] = Field(default=None, max_length=120)
    notes: Optional[str] = None


class VerifyReceiptIn(BaseModel):
    action: Literal["approve", "reject"]
    notes: Optional[str] = None


class RentPaymentOut(BaseModel):
    id: int
    lease_id: Optional[int] = None
    property_id: int
    tenant_id: int
    owner_id: int
    month_number: Optional[int] = None
    amount: float
    due_date: date
    payment_date: Optional[datetime] = None
    status: PaymentStatus
    payment_method: PaymentMethod
    transaction_id: str
    notes: str
    payment_proof: Optional[str] = None
    verification_status: VerificationStatus
    verification_notes: str
    verified_by_id: Optional[int] = None
    verified_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class PaymentStatOut(BaseModel):
    status: PaymentStatus
    count: int
    total_amount: float


# -------------------- Chat --------------------

class ChatMessageOut(BaseModel):
    id: int
    sender_id: int
    receiver_id: int
    property_id: Optional[int] = None
    message: str
    image: str = ""
    seen: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ConversationOut(BaseModel):
    user: UserBrief
    last_message: ChatMessageOut
    unread_count: int


class SendMessageIn(BaseModel):
    receiver: int
    message: str = Field(min_length=1)
    property_id: Optional[int] = None
    image: str = ""


class TypingIn(BaseModel):
    receiver: int
    is_typing: bool = True


class MarkSeenIn(BaseModel):
    sender: int


class RegisterPresenceIn(BaseModel):
    user_id: int


# -------------------- Reviews --------------------

class ReviewCreate(BaseModel):
    property_id: int
    rating: int = Field(ge=1, le=5)
    title: str = Field(min_length=5, max_length=100)
    comment: str = Field(min_length=20, max_length=1000)
    pros: List[str] = Field(default_factory=list)
    cons: List[str] = Field(default_factory=list)


class ReviewOut(BaseModel):
    id: int
    property_id: int
    tenant_id: int
    rating: int
    title: str
    comment: str
    pros: List[str]
    cons: List[str]
    verified: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ReviewStatsOut(BaseModel):
    average_rating: float
    total_reviews: int
    distribution: dict[int, int]


class PropertyReviewsOut(BaseModel):
    reviews: List[ReviewOut]
    stats: ReviewStatsOut
    pagination: Pagination


class CanReviewOut(BaseModel):
    can_review: bool
    message: Optional[str] = None


ApplicationDecisionOut.model_rebuild()

# rentez/models.py
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


def utcnow() -> datetime:
    # naive UTC, matching the DateTime columns below
    return datetime.now(timezone.utc).replace(tzinfo=None)


# -----------------------------
# Users
# -----------------------------
class AppUser(Base):
    __tablename__ = "app_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(160), nullable=False)
    email: Mapped[str] = mapped_column(String(200), nullable=False, unique=True, index=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="tenant")  # owner|tenant
    phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)


class AuditEvent(Base):
    __tablename__ = "audit_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    actor_user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=True)

    action: Mapped[str] = mapped_column(String(80), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(80), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(80), nullable=False)

    before_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    after_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)


# -----------------------------
# Listings
# -----------------------------
class Property(Base):
    __tablename__ = "properties"
    __table_args__ = (Index("ix_properties_status_rent", "status", "rent"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    owner_id: Mapped[int] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=False, index=True)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    street: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    state: Mapped[str] = mapped_column(String(120), nullable=False)
    zip_code: Mapped[str] = mapped_column(String(20), nullable=False)
    country: Mapped[str] = mapped_column(String(80), nullable=False, default="India")

    # geo point
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)

    rent: Mapped[float] = mapped_column(Float, nullable=False)
    bedrooms: Mapped[int] = mapped_column(Integer, nullable=False)
    bathrooms: Mapped[int] = mapped_column(Integer, nullable=False)
    area: Mapped[float] = mapped_column(Float, nullable=False)  # square feet
    property_type: Mapped[str] = mapped_column(String(30), nullable=False, default="apartment")

    amenities: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    images: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    available_from: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="available")  # available|rented|maintenance
    current_tenant_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=True)

    average_rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_reviews: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    owner: Mapped["AppUser"] = relationship(foreign_keys=[owner_id])
    current_tenant: Mapped[Optional["AppUser"]] = relationship(foreign_keys=[current_tenant_id])

    applications: Mapped[List["Application"]] = relationship(back_populates="property", cascade="all, delete-orphan")
    leases: Mapped[List["Lease"]] = relationship(back_populates="property", cascade="all, delete-orphan")
    reviews: Mapped[List["Review"]] = relationship(back_populates="property", cascade="all, delete-orphan")


# -----------------------------
# Applications / Leases / Rent
# -----------------------------
class Application(Base):
    __tablename__ = "applications"
    __table_args__ = (
        Index("ix_applications_property_tenant", "property_id", "tenant_id"),
        Index("ix_applications_owner_status", "owner_id", "status"),
        Index("ix_applications_tenant_status", "tenant_id", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    property_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False
    )
    tenant_id: Mapped[int] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=False)
    owner_id: Mapped[int] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=False)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")  # pending|approved|rejected
    message: Mapped[str] = mapped_column(String(500), nullable=False)
    move_in_date: Mapped[date] = mapped_column(Date, nullable=False)
    lease_duration: Mapped[int] = mapped_column(Integer, nullable=False)  # months, 1..60
    rejection_reason: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    property: Mapped["Property"] = relationship(back_populates="applications")
    tenant: Mapped["AppUser"] = relationship(foreign_keys=[tenant_id])


class Lease(Base):
    __tablename__ = "leases"
    __table_args__ = (
        Index("ix_leases_property_status", "property_id", "status"),
        Index("ix_leases_tenant_status", "tenant_id", "status"),
        Index("ix_leases_owner_status", "owner_id", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    property_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False
    )
    tenant_id: Mapped[int] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=False)
    owner_id: Mapped[int] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=False)
    application_id: Mapped[int] = mapped_column(Integer, ForeignKey("applications.id"), nullable=False, index=True)

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    monthly_rent: Mapped[float] = mapped_column(Float, nullable=False)
    security_deposit: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")  # active|completed|terminated
    terms: Mapped[Optional[str]] = mapped_column(String(2000), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    property: Mapped["Property"] = relationship(back_populates="leases")
    payments: Mapped[List["RentPayment"]] = relationship(
        back_populates="lease", cascade="all, delete-orphan", order_by="RentPayment.month_number"
    )


class RentPayment(Base):
    __tablename__ = "rent_payments"
    __table_args__ = (
        UniqueConstraint("lease_id", "month_number", name="uq_rent_payments_lease_month"),
        Index("ix_rent_payments_tenant_status", "tenant_id", "status"),
        Index("ix_rent_payments_owner_status", "owner_id", "status"),
        Index("ix_rent_payments_status_due", "status", "due_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    lease_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("leases.id", ondelete="CASCADE"), nullable=True, index=True
    )
    property_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )
    tenant_id: Mapped[int] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=False)
    owner_id: Mapped[int] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=False)

    month_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    payment_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")  # pending|paid|overdue|cancelled
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False, default="other")
    transaction_id: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    payment_proof: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    verification_status: Mapped[str] = mapped_column(String(30), nullable=False, default="not_submitted")
    verification_notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    verified_by_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=True)
    verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    last_reminder_sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    lease: Mapped[Optional["Lease"]] = relationship(back_populates="payments")
    property: Mapped["Property"] = relationship()
    tenant: Mapped["AppUser"] = relationship(foreign_keys=[tenant_id])


# -----------------------------
# Chat / Reviews
# -----------------------------
class ChatMessage(Base):
    __tablename__ = "chat_messages"
    __table_args__ = (
        Index("ix_chat_messages_pair_created", "sender_id", "receiver_id", "created_at"),
        Index("ix_chat_messages_receiver_seen", "receiver_id", "seen"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    sender_id: Mapped[int] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=False)
    receiver_id: Mapped[int] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=False)
    property_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("properties.id", ondelete="SET NULL"), nullable=True
    )

    message: Mapped[str] = mapped_column(Text, nullable=False)
    image: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    seen: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (UniqueConstraint("tenant_id", "property_id", name="uq_reviews_tenant_property"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    property_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )
    tenant_id: Mapped[int] = mapped_column(Integer, ForeignKey("app_users.id"), nullable=False)

    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    comment: Mapped[str] = mapped_column(String(1000), nullable=False)
    pros: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    cons: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    property: Mapped["Property"] = relationship(back_populates="reviews")
    tenant: Mapped["AppUser"] = relationship()

# tests/conftest.py
from __future__ import annotations

import os
import tempfile
from datetime import date

_TMP = tempfile.mkdtemp(prefix="rentez-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'rentez-test.db')}"
os.environ["UPLOADS_DIR"] = os.path.join(_TMP, "uploads")
os.environ["APP_ENV"] = "test"
os.environ["AUTH_MODE"] = "dev"
os.environ["PRESENCE_BACKEND"] = "memory"
os.environ["AUTH_PBKDF2_ITERS"] = "1000"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from rentez.db import Base, SessionLocal, engine  # noqa: E402
from rentez import models  # noqa: E402,F401
from rentez.models import AppUser, Property  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def client():
    from rentez.main import create_app

    with TestClient(create_app()) as c:
        yield c


def headers(email: str, role: str) -> dict[str, str]:
    return {"X-User-Email": email, "X-User-Role": role}


@pytest.fixture
def owner(db) -> AppUser:
    u = AppUser(name="olivia", email="olivia@owner.local", role="owner")
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


@pytest.fixture
def tenant(db) -> AppUser:
    u = AppUser(name="tom", email="tom@tenant.local", role="tenant")
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


def mk_property(db, owner_id: int, *, rent: float = 1500.0, lng: float = 77.5946, lat: float = 12.9716, **kw) -> Property:
    p = Property(
        owner_id=owner_id,
        title=kw.pop("title", "2BHK near the park"),
        description=kw.pop("description", "Bright flat, second floor"),
        street="12 MG Road",
        city=kw.pop("city", "Bengaluru"),
        state="KA",
        zip_code="560001",
        longitude=lng,
        latitude=lat,
        rent=rent,
        bedrooms=kw.pop("bedrooms", 2),
        bathrooms=1,
        area=900.0,
        status=kw.pop("status", "available"),
        **kw,
    )
    db.add(p)
    db.commit()
    db.refresh(p)
    return p


@pytest.fixture
def prop(db, owner) -> Property:
    return mk_property(db, owner.id)


@pytest.fixture
def approved_lease(db, owner, tenant, prop):
    """A 12-month lease from 2026-01-31 via the approval path."""
    from rentez.services.application_service import decide_application, submit_application

    app_row = submit_application(
        db,
        tenant_id=tenant.id,
        prop=prop,
        message="Quiet professional, no pets",
        move_in_date=date(2026, 1, 31),
        lease_duration=12,
    )
    _, lease = decide_application(db, application=app_row, owner_id=owner.id, status="approved", security_deposit=3000)
    return lease

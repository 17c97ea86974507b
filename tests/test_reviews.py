from __future__ import annotations

from datetime import date

from rentez.models import Property
from rentez.services.review_service import review_eligibility

from conftest import headers

TENANT = headers("tom@tenant.local", "tenant")


def _review(prop_id: int, rating: int = 4) -> dict:
    return {
        "property_id": prop_id,
        "rating": rating,
        "title": "Lovely place",
        "comment": "Responsive owner and a quiet neighbourhood overall.",
        "pros": ["light"],
        "cons": ["parking"],
    }


def test_review_requires_a_lease(client, tenant, prop):
    r = client.post("/api/reviews", json=_review(prop.id), headers=TENANT)
    assert r.status_code == 403

    can = client.get(f"/api/reviews/can-review/{prop.id}", headers=TENANT).json()
    assert can["can_review"] is False


def test_lease_not_started_does_not_qualify(db, approved_lease, tenant):
    check = review_eligibility(db, tenant_id=tenant.id, property_id=approved_lease.property_id, today=date(2026, 1, 1))
    assert not check.ok
    check = review_eligibility(db, tenant_id=tenant.id, property_id=approved_lease.property_id, today=date(2026, 1, 31))
    assert check.ok


def test_one_review_per_property_and_rating_refresh(client, db, approved_lease):
    pid = approved_lease.property_id

    r = client.post("/api/reviews", json=_review(pid, rating=4), headers=TENANT)
    assert r.status_code == 200, r.text
    assert r.json()["verified"] is True

    again = client.post("/api/reviews", json=_review(pid, rating=5), headers=TENANT)
    assert again.status_code == 403

    db.expire_all()
    p = db.get(Property, pid)
    assert p.total_reviews == 1
    assert p.average_rating == 4.0

    listing = client.get(f"/api/reviews/property/{pid}").json()
    assert listing["pagination"]["total"] == 1
    assert listing["stats"]["distribution"]["4"] == 1


def test_review_validation(client, approved_lease):
    bad = dict(_review(approved_lease.property_id), comment="too short")
    assert client.post("/api/reviews", json=bad, headers=TENANT).status_code == 422

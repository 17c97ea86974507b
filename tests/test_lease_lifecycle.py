from __future__ import annotations

from datetime import date

from sqlalchemy import select

from rentez.models import AuditEvent, Lease, Property, RentPayment

from conftest import headers


def _apply(client, prop_id: int, *, move_in: str = "2026-03-01", months: int = 6):
    r = client.post(
        "/api/applications",
        json={"property_id": prop_id, "message": "Looking for a long stay", "move_in_date": move_in, "lease_duration": months},
        headers=headers("tom@tenant.local", "tenant"),
    )
    assert r.status_code == 200, r.text
    return r.json()


def test_approval_creates_lease_schedule_and_rents_property(client, db, owner, tenant, prop):
    app_row = _apply(client, prop.id)

    r = client.put(
        f"/api/applications/{app_row['id']}/status",
        json={"status": "approved", "security_deposit": 3000},
        headers=headers("olivia@owner.local", "owner"),
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["application"]["status"] == "approved"

    lease = body["lease"]
    assert lease["start_date"] == "2026-03-01"
    assert lease["end_date"] == "2026-09-01"
    assert lease["monthly_rent"] == 1500.0
    assert lease["status"] == "active"

    payments = db.scalars(
        select(RentPayment).where(RentPayment.lease_id == lease["id"]).order_by(RentPayment.month_number)
    ).all()
    assert [p.month_number for p in payments] == [1, 2, 3, 4, 5, 6]
    assert payments[0].due_date == date(2026, 4, 1)
    assert payments[-1].due_date == date(2026, 9, 1)
    assert {p.status for p in payments} == {"pending"}

    db.expire_all()
    p = db.get(Property, prop.id)
    assert p.status == "rented"
    assert p.current_tenant_id == tenant.id

    actions = set(db.scalars(select(AuditEvent.action)).all())
    assert {"lease.create", "application.approved"} <= actions


def test_second_lease_for_same_application_is_rejected(client, db, approved_lease):
    r = client.post(
        "/api/leases",
        json={"application_id": approved_lease.application_id, "security_deposit": 0},
        headers=headers("olivia@owner.local", "owner"),
    )
    assert r.status_code == 400
    assert "already exists" in r.json()["detail"]

    n = db.scalars(select(Lease).where(Lease.application_id == approved_lease.application_id)).all()
    assert len(n) == 1


def test_deciding_twice_is_rejected(client, approved_lease):
    r = client.put(
        f"/api/applications/{approved_lease.application_id}/status",
        json={"status": "rejected"},
        headers=headers("olivia@owner.local", "owner"),
    )
    assert r.status_code == 400


def test_only_listing_owner_decides(client, db, tenant, prop):
    app_row = _apply(client, prop.id)
    r = client.put(
        f"/api/applications/{app_row['id']}/status",
        json={"status": "approved"},
        headers=headers("mallory@owner.local", "owner"),
    )
    assert r.status_code == 403


def test_terminate_cancels_pending_and_frees_property(client, db, approved_lease):
    first = db.scalar(
        select(RentPayment).where(RentPayment.lease_id == approved_lease.id, RentPayment.month_number == 1)
    )
    first.status = "paid"
    db.commit()

    r = client.put(f"/api/leases/{approved_lease.id}/terminate", headers=headers("olivia@owner.local", "owner"))
    assert r.status_code == 200, r.text
    assert r.json()["lease"]["status"] == "terminated"
    assert r.json()["cancelled_payments"] == 11

    db.expire_all()
    statuses = db.scalars(
        select(RentPayment.status).where(RentPayment.lease_id == approved_lease.id).order_by(RentPayment.month_number)
    ).all()
    assert statuses[0] == "paid"
    assert set(statuses[1:]) == {"cancelled"}

    p = db.get(Property, approved_lease.property_id)
    assert p.status == "available"
    assert p.current_tenant_id is None

    again = client.put(f"/api/leases/{approved_lease.id}/terminate", headers=headers("olivia@owner.local", "owner"))
    assert again.status_code == 400


def test_tenant_cannot_terminate(client, approved_lease):
    r = client.put(f"/api/leases/{approved_lease.id}/terminate", headers=headers("tom@tenant.local", "tenant"))
    assert r.status_code == 403


def test_lease_visible_only_to_parties(client, approved_lease):
    assert client.get(f"/api/leases/{approved_lease.id}", headers=headers("tom@tenant.local", "tenant")).status_code == 200
    assert client.get(f"/api/leases/{approved_lease.id}", headers=headers("eve@tenant.local", "tenant")).status_code == 403

    active = client.get("/api/leases/active", headers=headers("olivia@owner.local", "owner")).json()
    assert [l["id"] for l in active] == [approved_lease.id]


def test_rented_property_status_cannot_be_edited(client, approved_lease):
    r = client.put(
        f"/api/properties/{approved_lease.property_id}",
        json={"status": "available"},
        headers=headers("olivia@owner.local", "owner"),
    )
    assert r.status_code == 400

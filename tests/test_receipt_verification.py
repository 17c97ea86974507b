from __future__ import annotations

from sqlalchemy import select

from rentez.models import AuditEvent, RentPayment

from conftest import headers

TENANT = headers("tom@tenant.local", "tenant")
OWNER = headers("olivia@owner.local", "owner")


def _first_payment(db, lease_id: int) -> RentPayment:
    return db.scalar(select(RentPayment).where(RentPayment.lease_id == lease_id, RentPayment.month_number == 1))


def _upload(client, payment_id: int, headers_=TENANT):
    return client.post(
        f"/api/rent/{payment_id}/upload-proof",
        files={"payment_proof": ("receipt.png", b"\x89PNG fake bytes", "image/png")},
        headers=headers_,
    )


def test_upload_then_approve_marks_paid_and_verified(client, db, approved_lease):
    pay = _first_payment(db, approved_lease.id)

    r = _upload(client, pay.id)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["verification_status"] == "pending_verification"
    assert body["status"] == "pending"
    assert body["payment_proof"].startswith("/uploads/receipt-")

    r = client.put(f"/api/rent/{pay.id}/verify-receipt", json={"action": "approve", "notes": "ok"}, headers=OWNER)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["status"] == "paid"
    assert body["verification_status"] == "verified"
    assert body["payment_date"] is not None
    assert body["verification_notes"] == "ok"

    db.expire_all()
    assert db.scalar(select(AuditEvent).where(AuditEvent.action == "payment.receipt_approve")) is not None


def test_reject_keeps_status(client, db, approved_lease):
    pay = _first_payment(db, approved_lease.id)
    _upload(client, pay.id)

    r = client.put(f"/api/rent/{pay.id}/verify-receipt", json={"action": "reject", "notes": "blurry"}, headers=OWNER)
    assert r.status_code == 200
    assert r.json()["verification_status"] == "rejected"
    assert r.json()["status"] == "pending"

    # tenant may resubmit
    assert _upload(client, pay.id).json()["verification_status"] == "pending_verification"


def test_verify_without_proof_is_rejected(client, db, approved_lease):
    pay = _first_payment(db, approved_lease.id)
    r = client.put(f"/api/rent/{pay.id}/verify-receipt", json={"action": "approve"}, headers=OWNER)
    assert r.status_code == 400


def test_invalid_action_is_rejected(client, db, approved_lease):
    pay = _first_payment(db, approved_lease.id)
    _upload(client, pay.id)
    r = client.put(f"/api/rent/{pay.id}/verify-receipt", json={"action": "maybe"}, headers=OWNER)
    assert r.status_code == 422


def test_upload_requires_file_and_open_payment(client, db, approved_lease):
    pay = _first_payment(db, approved_lease.id)

    r = client.post(f"/api/rent/{pay.id}/upload-proof", headers=TENANT)
    assert r.status_code == 400

    pay.status = "paid"
    db.commit()
    assert _upload(client, pay.id).status_code == 400


def test_only_the_tenant_uploads(client, db, approved_lease):
    pay = _first_payment(db, approved_lease.id)
    assert _upload(client, pay.id, headers("eve@tenant.local", "tenant")).status_code == 403


def test_manual_status_update_goes_through_state_machine(client, db, approved_lease):
    pay = _first_payment(db, approved_lease.id)

    r = client.put(f"/api/rent/{pay.id}", json={"status": "paid", "payment_method": "upi"}, headers=OWNER)
    assert r.status_code == 200
    assert r.json()["status"] == "paid"
    assert r.json()["payment_method"] == "upi"

    r = client.put(f"/api/rent/{pay.id}", json={"status": "pending"}, headers=OWNER)
    assert r.status_code == 400


def test_tenant_cannot_cancel_or_mark_own_rent_overdue(client, db, approved_lease):
    pay = _first_payment(db, approved_lease.id)

    for target in ("cancelled", "overdue"):
        r = client.put(f"/api/rent/{pay.id}", json={"status": target}, headers=TENANT)
        assert r.status_code == 400
        r = client.put(f"/api/rent/{pay.id}", json={"status": target}, headers=OWNER)
        assert r.status_code == 400

    db.expire_all()
    assert db.get(RentPayment, pay.id).status == "pending"
    assert client.get(f"/api/leases/{approved_lease.id}", headers=TENANT).json()["status"] == "active"


def test_payment_listing_and_stats(client, approved_lease):
    mine = client.get("/api/rent/tenant", headers=TENANT).json()
    assert len(mine) == 12

    stats = client.get("/api/rent/stats", headers=OWNER).json()
    assert stats == [{"status": "pending", "count": 12, "total_amount": 18000.0}]


def test_owner_creates_adhoc_charge(client, approved_lease, tenant):
    r = client.post(
        "/api/rent",
        json={"property_id": approved_lease.property_id, "tenant_id": tenant.id, "amount": 250, "due_date": "2026-06-15"},
        headers=OWNER,
    )
    assert r.status_code == 200, r.text
    assert r.json()["lease_id"] is None
    assert r.json()["month_number"] is None

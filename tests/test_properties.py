from __future__ import annotations

from conftest import headers, mk_property

OWNER = headers("olivia@owner.local", "owner")
TENANT = headers("tom@tenant.local", "tenant")


def _payload(**kw) -> dict:
    body = {
        "title": "Sunny studio",
        "description": "Walk to the metro",
        "address": {"street": "1 Residency Rd", "city": "Bengaluru", "state": "KA", "zip_code": "560025"},
        "location": {"coordinates": [77.6033, 12.9680]},
        "rent": 18000,
        "bedrooms": 1,
        "bathrooms": 1,
        "area": 450,
        "property_type": "studio",
        "amenities": ["wifi"],
    }
    body.update(kw)
    return body


def test_owner_creates_and_updates_listing(client, owner):
    r = client.post("/api/properties", json=_payload(), headers=OWNER)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["status"] == "available"
    assert body["address"]["country"] == "India"
    assert body["location"]["coordinates"] == [77.6033, 12.968]

    pid = body["id"]
    r = client.put(f"/api/properties/{pid}", json={"rent": 19000, "status": "maintenance"}, headers=OWNER)
    assert r.status_code == 200
    assert r.json()["rent"] == 19000
    assert r.json()["status"] == "maintenance"

    # rented is only reachable through a lease
    assert client.put(f"/api/properties/{pid}", json={"status": "rented"}, headers=OWNER).status_code == 422


def test_tenant_cannot_create_listing(client, tenant):
    assert client.post("/api/properties", json=_payload(), headers=TENANT).status_code == 403


def test_invalid_coordinates_rejected(client, owner):
    r = client.post("/api/properties", json=_payload(location={"coordinates": [200, 12]}), headers=OWNER)
    assert r.status_code == 422


def test_filters_and_pagination(client, db, owner):
    mk_property(db, owner.id, rent=10000, city="Pune", bedrooms=1, title="Pune 1bhk")
    mk_property(db, owner.id, rent=25000, city="Pune", bedrooms=3, title="Pune 3bhk")
    mk_property(db, owner.id, rent=30000, city="Mumbai", bedrooms=2, title="Mumbai flat")
    mk_property(db, owner.id, rent=12000, city="Pune", status="maintenance", title="Pune closed")

    r = client.get("/api/properties", params={"city": "pune"}).json()
    assert r["pagination"]["total"] == 2

    r = client.get("/api/properties", params={"min_rent": 20000}).json()
    assert {p["title"] for p in r["data"]} == {"Pune 3bhk", "Mumbai flat"}

    r = client.get("/api/properties", params={"bedrooms": 2}).json()
    assert r["pagination"]["total"] == 2

    r = client.get("/api/properties", params={"search": "mumbai"}).json()
    assert [p["title"] for p in r["data"]] == ["Mumbai flat"]

    r = client.get("/api/properties", params={"limit": 2, "page": 2}).json()
    assert r["pagination"] == {"total": 3, "page": 2, "pages": 2}
    assert len(r["data"]) == 1


def test_near_search_orders_by_distance(client, db, owner):
    mk_property(db, owner.id, title="far", lng=77.70, lat=13.05)
    mk_property(db, owner.id, title="near", lng=77.595, lat=12.972)
    mk_property(db, owner.id, title="other city", lng=72.8777, lat=19.0760)

    r = client.get("/api/properties", params={"lng": 77.5946, "lat": 12.9716, "radius_km": 20}).json()
    assert [p["title"] for p in r["data"]] == ["near", "far"]

    assert client.get("/api/properties", params={"lng": 77.5946}).status_code == 400


def test_only_owner_edits_or_deletes(client, db, owner, prop):
    other = headers("mallory@owner.local", "owner")
    assert client.put(f"/api/properties/{prop.id}", json={"rent": 1}, headers=other).status_code == 403
    assert client.delete(f"/api/properties/{prop.id}", headers=other).status_code == 403

    assert client.delete(f"/api/properties/{prop.id}", headers=OWNER).status_code == 200
    assert client.get(f"/api/properties/{prop.id}").status_code == 404


def test_image_upload(client, owner, prop):
    r = client.post(
        f"/api/properties/{prop.id}/images",
        files=[("images", ("a.jpg", b"jpeg-bytes", "image/jpeg")), ("images", ("b.png", b"png-bytes", "image/png"))],
        headers=OWNER,
    )
    assert r.status_code == 200, r.text
    imgs = r.json()["images"]
    assert len(imgs) == 2 and all(i.startswith("/uploads/property-") for i in imgs)

    bad = client.post(
        f"/api/properties/{prop.id}/images", files=[("images", ("x.exe", b"MZ", "application/octet-stream"))], headers=OWNER
    )
    assert bad.status_code == 400


def test_my_properties(client, db, owner, prop):
    mine = client.get("/api/properties/owner/my-properties", headers=OWNER).json()
    assert [p["id"] for p in mine] == [prop.id]

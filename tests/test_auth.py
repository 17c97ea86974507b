from __future__ import annotations

from rentez.models import AppUser
from rentez.services.auth_service import verify_password


def test_register_login_me(client):
    r = client.post(
        "/api/auth/register",
        json={"name": "Asha", "email": "Asha@Example.com", "password": "s3cret!", "role": "owner"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["role"] == "owner"

    dup = client.post("/api/auth/register", json={"name": "A", "email": "asha@example.com", "password": "s3cret!"})
    assert dup.status_code == 400

    assert client.post("/api/auth/login", json={"email": "asha@example.com", "password": "wrong"}).status_code == 401

    tok = client.post("/api/auth/login", json={"email": "asha@example.com", "password": "s3cret!"}).json()["access_token"]
    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {tok}"})
    assert me.status_code == 200
    assert me.json()["email"] == "asha@example.com"


def test_bad_token_is_401(client):
    r = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


def test_anonymous_is_401(client):
    assert client.get("/api/auth/me").status_code == 401


def test_health_and_request_id(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json()["ok"] is True
    assert r.headers.get("X-Request-ID")


def test_corrupt_stored_hash_fails_login_cleanly(client, db):
    db.add(AppUser(name="Ravi", email="ravi@example.com", role="tenant", password_hash="pbkdf2_sha256$1000$%%%$not*base64"))
    db.commit()

    assert verify_password("whatever", "pbkdf2_sha256$1000$%%%$not*base64") is False
    assert verify_password("whatever", "pbkdf2_sha256$many$c2FsdA==$ZGs=") is False

    r = client.post("/api/auth/login", json={"email": "ravi@example.com", "password": "whatever"})
    assert r.status_code == 401

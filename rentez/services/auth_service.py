# rentez/services/auth_service.py
from __future__ import annotations

import base64
import hashlib
import hmac
import os
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt  # PyJWT

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..config import settings
from ..models import AppUser


def hash_password(password: str) -> str:
    salt = secrets.token_bytes(16)
    iters = int(os.getenv("AUTH_PBKDF2_ITERS", "210000"))
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iters)
    return f"pbkdf2_sha256${iters}${base64.b64encode(salt).decode()}${base64.b64encode(dk).decode()}"


def verify_password(password: str, stored: str) -> bool:
    try:
        algo, iters_s, salt_b64, dk_b64 = stored.split("$", 3)
        if algo != "pbkdf2_sha256":
            return False
        salt = base64.b64decode(salt_b64.encode(), validate=True)
        dk = base64.b64decode(dk_b64.encode(), validate=True)
        test = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, int(iters_s))
        return hmac.compare_digest(test, dk)
    except (ValueError, TypeError):
        return False


def create_access_token(*, user_id: int, role: str, minutes: int | None = None) -> str:
    now = datetime.now(timezone.utc)
    exp_minutes = int(minutes if minutes is not None else settings.jwt_exp_minutes)
    payload: dict[str, Any] = {
        "sub": str(int(user_id)),
        "role": str(role),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=exp_minutes)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")


def decode_access_token(token: str) -> dict[str, Any]:
    return jwt.decode(token, settings.jwt_secret, algorithms=["HS256"])


def register_user(db: Session, *, name: str, email: str, password: str, role: str, phone: str | None = None) -> AppUser:
    email = email.strip().lower()
    if db.scalar(select(AppUser).where(AppUser.email == email)):
        raise ValueError("email already registered")

    user = AppUser(name=name.strip(), email=email, role=role, phone=phone, password_hash=hash_password(password))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def authenticate(db: Session, *, email: str, password: str) -> AppUser | None:
    user = db.scalar(select(AppUser).where(AppUser.email == email.strip().lower()))
    if user is None or not user.password_hash:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user

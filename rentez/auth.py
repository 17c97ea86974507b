# rentez/auth.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Depends, Header, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from .config import settings
from .db import get_db
from .models import AppUser
from .services.auth_service import decode_access_token

ROLES = ("owner", "tenant")


@dataclass(frozen=True)
class Principal:
    user_id: int
    email: str
    role: str  # owner | tenant
    name: str = ""


def _principal(user: AppUser) -> Principal:
    return Principal(user_id=int(user.id), email=str(user.email), role=str(user.role), name=str(user.name or ""))


def _from_token(db: Session, token: str) -> Principal:
    try:
        claims = decode_access_token(token)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")

    sub = str(claims.get("sub") or "")
    if not sub.isdigit():
        raise HTTPException(status_code=401, detail="Token missing sub")

    user = db.get(AppUser, int(sub))
    if user is None:
        raise HTTPException(status_code=401, detail="Unknown user")
    return _principal(user)


def _from_dev_headers(db: Session, email: str, role_hint: str) -> Principal:
    email = email.strip().lower()
    user = db.scalar(select(AppUser).where(AppUser.email == email))
    if user is None and settings.dev_auto_provision:
        user = AppUser(
            name=email.split("@")[0],
            email=email,
            role=role_hint if role_hint in ROLES else "tenant",
        )
        db.add(user)
        db.commit()
        db.refresh(user)

    if user is None:
        raise HTTPException(status_code=401, detail="Dev auth could not provision user")
    return _principal(user)


def resolve_principal(
    db: Session,
    *,
    authorization: Optional[str] = None,
    dev_email: Optional[str] = None,
    dev_role: Optional[str] = None,
    token: Optional[str] = None,
) -> Principal:
    """
    Auth modes supported (in priority order):
      1) Authorization: Bearer <token> (or an explicit token, used by websockets)
      2) dev header spoofing, ONLY if settings.auth_mode == "dev"
    """
    if not token and authorization and str(authorization).lower().startswith("bearer "):
        token = str(authorization).split(" ", 1)[1].strip()

    if token:
        return _from_token(db, token)

    if settings.auth_mode == "dev" and dev_email:
        return _from_dev_headers(db, dev_email, (dev_role or "tenant").strip().lower())

    raise HTTPException(status_code=401, detail="Not authenticated")


def get_principal(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
    x_user_email: Optional[str] = Header(default=None, alias="X-User-Email"),
    x_user_role: Optional[str] = Header(default=None, alias="X-User-Role"),
) -> Principal:
    return resolve_principal(db, authorization=authorization, dev_email=x_user_email, dev_role=x_user_role)


def require_owner(p: Principal = Depends(get_principal)) -> Principal:
    if p.role != "owner":
        raise HTTPException(status_code=403, detail="Requires role owner")
    return p


def require_tenant(p: Principal = Depends(get_principal)) -> Principal:
    if p.role != "tenant":
        raise HTTPException(status_code=403, detail="Requires role tenant")
    return p

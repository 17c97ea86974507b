# rentez/routers/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal
from ..db import get_db
from ..models import AppUser
from ..schemas import LoginIn, RegisterIn, TokenOut, UserOut
from ..services.auth_service import authenticate, create_access_token, register_user

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_for(user: AppUser) -> TokenOut:
    return TokenOut(
        access_token=create_access_token(user_id=int(user.id), role=str(user.role)),
        user_id=int(user.id),
        role=user.role,
    )


@router.post("/register", response_model=TokenOut)
def register(payload: RegisterIn, db: Session = Depends(get_db)):
    try:
        user = register_user(
            db,
            name=payload.name,
            email=payload.email,
            password=payload.password,
            role=payload.role,
            phone=payload.phone,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _token_for(user)


@router.post("/login", response_model=TokenOut)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    user = authenticate(db, email=payload.email, password=payload.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return _token_for(user)


@router.get("/me", response_model=UserOut)
def me(db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    user = db.get(AppUser, p.user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user

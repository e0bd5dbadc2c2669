from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..core.errors import Unauthenticated
from ..core.security import create_access_token
from ..crud.users import authenticate, change_password, create_user
from ..db.session import get_db
from ..deps.auth import get_current_user
from ..models.user import User
from ..schemas.auth import AuthResponse, ChangePasswordRequest, LoginRequest, MeResponse, RegisterRequest
from ..schemas.common import MessageResponse
from ..services.presenters import user_out

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED, summary="Create an account")
def api_register(payload: RegisterRequest, db: Session = Depends(get_db)):
    user = create_user(db, payload.model_dump())
    return AuthResponse(
        message="User registered successfully",
        token=create_access_token(user.id),
        user=user_out(user),
    )


@router.post("/login", response_model=AuthResponse, summary="Exchange credentials for a bearer token")
def api_login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate(db, payload.email, payload.password)
    if user is None:
        raise Unauthenticated("Invalid credentials")
    return AuthResponse(
        message="Login successful",
        token=create_access_token(user.id),
        user=user_out(user),
    )


@router.get("/me", response_model=MeResponse)
def api_me(actor: User = Depends(get_current_user)):
    return MeResponse(user=user_out(actor))


@router.post("/change-password", response_model=MessageResponse)
def api_change_password(
    payload: ChangePasswordRequest,
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    change_password(db, actor, payload.current_password, payload.new_password)
    return MessageResponse(message="Password changed successfully")

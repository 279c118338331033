"""
Account endpoints: register, login, logout, profile.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, EmailStr, Field

from app.rate_limiter import get_client_ip
from auth.middleware import get_required_user, get_session_token
from auth.models import User
from auth.service import (
    InvalidCredentialsError,
    UserExistsError,
    WeakPasswordError,
    authenticate_user,
    create_session,
    invalidate_session,
    register_user,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])


# =============================================================================
# Request Schemas
# =============================================================================

class RegisterRequest(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str
    designation: Optional[str] = None
    company: Optional[str] = None
    phone: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


# =============================================================================
# Routes
# =============================================================================

@router.post("/register", status_code=201)
def register(request: RegisterRequest):
    """Create an account. The client logs in separately afterwards."""
    try:
        user = register_user(
            email=request.email,
            password=request.password,
            name=request.name,
            designation=request.designation,
            company=request.company,
            phone=request.phone,
        )
    except WeakPasswordError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UserExistsError:
        raise HTTPException(status_code=409, detail="An account with this email already exists")

    return {
        "user": user.to_dict(),
        "message": "Account created! A welcome email is on its way.",
    }


@router.post("/login")
def login(body: LoginRequest, request: Request):
    """Exchange email/password for a bearer token."""
    try:
        user = authenticate_user(body.email, body.password)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=401, detail=str(e))

    session = create_session(
        user.id,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )

    return {
        "token": session.id,
        "expiresAt": session.expires_at.isoformat(),
        "user": user.to_dict(),
    }


@router.post("/logout")
def logout(token: Optional[str] = Depends(get_session_token)):
    """Invalidate the caller's session. Anonymous calls succeed too."""
    if token:
        invalidate_session(token)
    return {"success": True}


@router.get("/me")
def me(user: User = Depends(get_required_user)):
    return user.to_dict()

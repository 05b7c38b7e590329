"""Auth API — registration, login, token refresh, current user.

- POST /auth/register → create a student or supervisor account
- POST /auth/login → email/password → JWT tokens
- POST /auth/refresh → refresh token → new token pair
- GET /auth/me → current user info
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from proposaldesk.auth.dependencies import get_principal
from proposaldesk.auth.jwt import (
    REFRESH,
    TokenError,
    create_access_token,
    create_refresh_token,
    verify_token,
)
from proposaldesk.auth.principal import Principal
from proposaldesk.db.engine import get_db
from proposaldesk.errors import InvalidCredential, PrincipalNotFound
from proposaldesk.schemas.user import UserRead
from proposaldesk.services.user_service import UserService

router = APIRouter(prefix="/auth")


# ─── Schemas ─────────────────────────────────────────────


class RegisterRequest(BaseModel):
    email: str
    name: str
    password: str
    role: Optional[str] = Field("student", description="student or supervisor")


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshRequest(BaseModel):
    refresh_token: str


def _tokens_for(user_id: uuid.UUID) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(str(user_id)),
        refresh_token=create_refresh_token(str(user_id)),
    )


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=UserRead, status_code=201)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Create a new account. Admin cannot be chosen here."""
    return await UserService(db).register(
        name=body.name,
        email=body.email,
        password=body.password,
        role=body.role or "student",
    )


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Login with email and password → JWT tokens."""
    user = await UserService(db).authenticate_password(body.email, body.password)
    return _tokens_for(user.id)


# ─── Refresh ────────────────────────────────────────────


@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, db: AsyncSession = Depends(get_db)):
    """Exchange a refresh token for a new token pair (subject must still exist)."""
    try:
        payload = verify_token(body.refresh_token, expected_type=REFRESH)
        user_id = uuid.UUID(str(payload["sub"]))
    except (TokenError, ValueError) as e:
        raise InvalidCredential(str(e))

    if await UserService(db).find(user_id) is None:
        raise PrincipalNotFound()
    return _tokens_for(user_id)


# ─── Current user ───────────────────────────────────────


@router.get("/me", response_model=UserRead)
async def get_me(
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    """Get the current authenticated user's info."""
    return await UserService(db).get(principal.id)

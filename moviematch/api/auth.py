"""
Movie Matcher — Auth API

Signup, login and the current-user profile.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from moviematch.database import get_db
from moviematch.models.user import User
from moviematch.schemas.user import (
    AuthResponse,
    LoginRequest,
    SignupRequest,
    UserResponse,
)
from moviematch.security import TokenIdentity, get_current_identity
from moviematch.services.auth_service import AuthService

logger = structlog.get_logger("moviematch.api.auth")

router = APIRouter()

_auth_service: AuthService | None = None


def _get_auth_service() -> AuthService:
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service


# ──────────────────────────────────────────────────────────────────────────────
# POST /signup — Create an account
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
async def signup(
    payload: SignupRequest,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    """Register a new account and return it with a session token."""
    user, token = await _get_auth_service().signup(
        email=payload.email,
        password=payload.password,
        display_name=payload.display_name,
        db_session=db,
    )
    return AuthResponse(user=UserResponse.model_validate(user), token=token)


# ──────────────────────────────────────────────────────────────────────────────
# POST /login — Exchange credentials for a token
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Log in with email and password",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    user, token = await _get_auth_service().login(
        email=payload.email,
        password=payload.password,
        db_session=db,
    )
    return AuthResponse(user=UserResponse.model_validate(user), token=token)


# ──────────────────────────────────────────────────────────────────────────────
# GET /me — Current user
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get the authenticated user",
)
async def me(
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> User:
    return await _get_auth_service().get_user(identity.user_id, db)

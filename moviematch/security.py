"""
Movie Matcher — Password hashing and session tokens.

Passwords are stored as bcrypt hashes.  Sessions are HS256 JWTs carrying the
user id (``sub``) and email; route handlers receive them as an explicit
``TokenIdentity`` through the ``get_current_identity`` dependency.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
import structlog
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from moviematch.config import get_settings
from moviematch.exceptions import InvalidArgumentError, UnauthenticatedError

logger = structlog.get_logger("moviematch.security")

bearer_scheme = HTTPBearer(auto_error=False)

BCRYPT_MAX_BYTES = 72


@dataclass(frozen=True)
class TokenIdentity:
    """Identity asserted by a verified session token."""

    user_id: uuid.UUID
    email: str


# ──────────────────────────────────────────────────────────────────────────────
# Passwords
# ──────────────────────────────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    encoded = password.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_BYTES:
        raise InvalidArgumentError(
            f"Password must be at most {BCRYPT_MAX_BYTES} bytes"
        )
    settings = get_settings()
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(encoded, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    encoded = password.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        logger.warning("password_hash_malformed")
        return False


# ──────────────────────────────────────────────────────────────────────────────
# Tokens
# ──────────────────────────────────────────────────────────────────────────────

def create_access_token(
    user_id: uuid.UUID,
    email: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Sign a time-limited session token for *user_id*."""
    settings = get_settings()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.JWT_EXPIRES_MINUTES)

    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> TokenIdentity:
    """Verify *token* and return the identity it carries.

    Raises
    ------
    UnauthenticatedError
        If the signature is invalid, the token has expired, or required
        claims are missing.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError as exc:
        logger.info("token_rejected", reason=str(exc))
        raise UnauthenticatedError("Invalid token") from exc

    subject = payload.get("sub")
    email = payload.get("email")
    if not subject or email is None:
        raise UnauthenticatedError("Invalid token")

    try:
        user_id = uuid.UUID(subject)
    except ValueError as exc:
        raise UnauthenticatedError("Invalid token") from exc

    return TokenIdentity(user_id=user_id, email=email)


# ──────────────────────────────────────────────────────────────────────────────
# FastAPI dependency
# ──────────────────────────────────────────────────────────────────────────────

async def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> TokenIdentity:
    """Resolve the ``Authorization: Bearer <token>`` header to an identity."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthenticatedError("No token provided")
    return decode_access_token(credentials.credentials)

"""
Movie Matcher — Credential store operations.

Signup, login and profile lookup on top of the ``users`` table.  Token
signing and password hashing live in ``moviematch.security``.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from moviematch.exceptions import (
    ConflictError,
    NotFoundError,
    UnauthenticatedError,
)
from moviematch.models.user import User
from moviematch.security import create_access_token, hash_password, verify_password

logger = structlog.get_logger("moviematch.auth_service")


class AuthService:
    """Account creation and credential verification."""

    async def signup(
        self,
        email: str,
        password: str,
        db_session: AsyncSession,
        display_name: str | None = None,
    ) -> tuple[User, str]:
        """Create an account and return it with a fresh session token.

        Raises
        ------
        ConflictError
            If the email is already registered.
        """
        log = logger.bind(email=email)

        existing = await self.get_by_email(email, db_session)
        if existing is not None:
            log.warning("signup_duplicate_email")
            raise ConflictError("Email already registered")

        user = User(
            email=email,
            password_hash=hash_password(password),
            display_name=display_name,
        )
        try:
            async with db_session.begin_nested():
                db_session.add(user)
                await db_session.flush()
        except IntegrityError as exc:
            # Lost a race with a concurrent signup for the same email
            log.warning("signup_duplicate_email_race")
            raise ConflictError("Email already registered") from exc

        token = create_access_token(user.id, user.email)
        log.info("signup_complete", user_id=str(user.id))
        return user, token

    async def login(
        self,
        email: str,
        password: str,
        db_session: AsyncSession,
    ) -> tuple[User, str]:
        """Verify credentials and return the user with a fresh token.

        Unknown email and wrong password are indistinguishable to the caller.
        """
        log = logger.bind(email=email)

        user = await self.get_by_email(email, db_session)
        if user is None or not verify_password(password, user.password_hash):
            log.info("login_rejected")
            raise UnauthenticatedError("Invalid credentials")

        token = create_access_token(user.id, user.email)
        log.info("login_complete", user_id=str(user.id))
        return user, token

    async def get_user(self, user_id: uuid.UUID, db_session: AsyncSession) -> User:
        user = await db_session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def get_by_email(self, email: str, db_session: AsyncSession) -> User | None:
        result = await db_session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

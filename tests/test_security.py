"""Unit tests for password hashing and session tokens."""
import uuid
from datetime import timedelta

import pytest
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from moviematch.exceptions import InvalidArgumentError, UnauthenticatedError
from moviematch.security import (
    create_access_token,
    decode_access_token,
    get_current_identity,
    hash_password,
    verify_password,
)


class TestPasswords:
    def test_hash_is_salted(self):
        first = hash_password("pw123456")
        second = hash_password("pw123456")
        assert first != second
        assert first != "pw123456"

    def test_verify_round_trip(self):
        hashed = hash_password("pw123456")
        assert verify_password("pw123456", hashed)
        assert not verify_password("wrong", hashed)

    def test_malformed_hash_is_rejected(self):
        assert not verify_password("pw123456", "not-a-bcrypt-hash")

    def test_hash_rejects_over_72_bytes(self):
        with pytest.raises(InvalidArgumentError):
            hash_password("é" * 37)

    def test_verify_rejects_over_72_bytes(self):
        hashed = hash_password("é" * 36)
        assert verify_password("é" * 36, hashed)
        assert not verify_password("é" * 40, hashed)


class TestTokens:
    def test_token_carries_identity(self):
        user_id = uuid.uuid4()
        token = create_access_token(user_id, "a@x.com")
        identity = decode_access_token(token)
        assert identity.user_id == user_id
        assert identity.email == "a@x.com"

    def test_expired_token_rejected(self):
        token = create_access_token(uuid.uuid4(), "a@x.com", expires_delta=timedelta(seconds=-5))
        with pytest.raises(UnauthenticatedError):
            decode_access_token(token)

    def test_foreign_signature_rejected(self):
        token = jwt.encode(
            {"sub": str(uuid.uuid4()), "email": "a@x.com"}, "someone-else", algorithm="HS256"
        )
        with pytest.raises(UnauthenticatedError):
            decode_access_token(token)

    def test_missing_subject_rejected(self):
        token = jwt.encode({"email": "a@x.com"}, "test-secret", algorithm="HS256")
        with pytest.raises(UnauthenticatedError):
            decode_access_token(token)

    def test_garbage_rejected(self):
        with pytest.raises(UnauthenticatedError):
            decode_access_token("not.a.token")


class TestBearerDependency:
    @pytest.mark.asyncio
    async def test_missing_header(self):
        with pytest.raises(UnauthenticatedError):
            await get_current_identity(None)

    @pytest.mark.asyncio
    async def test_valid_header(self):
        user_id = uuid.uuid4()
        credentials = HTTPAuthorizationCredentials(
            scheme="Bearer", credentials=create_access_token(user_id, "a@x.com")
        )
        identity = await get_current_identity(credentials)
        assert identity.user_id == user_id

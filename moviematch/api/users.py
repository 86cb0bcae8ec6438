"""
Movie Matcher — Users API

Partner linking (direct and request-based), partner lookup, and user search.
Every endpoint acts on behalf of the bearer-token identity.
"""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from moviematch.database import get_db
from moviematch.models.partner_request import PartnerRequest
from moviematch.models.user import User
from moviematch.schemas.partner import (
    PartnerRequestCreate,
    PartnerRequestRespond,
    PartnerRequestResponse,
    SetPartnerRequest,
)
from moviematch.schemas.user import UserPublic, UserResponse
from moviematch.security import TokenIdentity, get_current_identity
from moviematch.services.partner_service import PartnerService

logger = structlog.get_logger("moviematch.api.users")

router = APIRouter()

_partner_service: PartnerService | None = None


def _get_partner_service() -> PartnerService:
    global _partner_service
    if _partner_service is None:
        _partner_service = PartnerService()
    return _partner_service


# ──────────────────────────────────────────────────────────────────────────────
# /partner — Direct link, lookup, removal
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/partner",
    response_model=UserResponse,
    summary="Link a partner directly",
)
async def set_partner(
    payload: SetPartnerRequest,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Link the caller and ``partner_id`` without a request, overwriting any
    existing links on both sides."""
    return await _get_partner_service().set_partner_direct(
        identity.user_id, payload.partner_id, db
    )


@router.get(
    "/partner",
    response_model=Optional[UserPublic],
    summary="Get the caller's partner",
)
async def get_partner(
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """Return the partner's public profile, or ``null`` when unlinked."""
    return await _get_partner_service().get_partner(identity.user_id, db)


@router.delete(
    "/partner",
    response_model=UserResponse,
    summary="Remove the caller's partner",
)
async def remove_partner(
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> User:
    return await _get_partner_service().remove_partner(identity.user_id, db)


# ──────────────────────────────────────────────────────────────────────────────
# GET /search — Find a user by email
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/search",
    response_model=UserPublic,
    summary="Find a user by email",
)
async def search_user(
    email: str = Query(..., min_length=1, description="Exact email address"),
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> User:
    logger.info("search_user", user_id=str(identity.user_id))
    return await _get_partner_service().search_by_email(email, db)


# ──────────────────────────────────────────────────────────────────────────────
# /partner-requests — Consent-based linking
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/partner-requests",
    response_model=PartnerRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a partner request",
)
async def create_partner_request(
    payload: PartnerRequestCreate,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> PartnerRequest:
    return await _get_partner_service().create_request(
        identity.user_id, payload.recipient_email, db
    )


@router.get(
    "/partner-requests",
    response_model=list[PartnerRequestResponse],
    summary="List sent and received partner requests",
)
async def list_partner_requests(
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> list[PartnerRequest]:
    return await _get_partner_service().list_requests(identity.user_id, db)


@router.get(
    "/partner-requests/pending",
    response_model=list[PartnerRequestResponse],
    summary="List pending requests awaiting the caller",
)
async def list_pending_partner_requests(
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> list[PartnerRequest]:
    return await _get_partner_service().list_pending_received(identity.user_id, db)


@router.post(
    "/partner-requests/respond",
    response_model=PartnerRequestResponse,
    summary="Accept or reject a partner request",
)
async def respond_to_partner_request(
    payload: PartnerRequestRespond,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> PartnerRequest:
    return await _get_partner_service().respond(
        identity.user_id, payload.request_id, payload.status, db
    )

"""
Movie Matcher — Matches API
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from moviematch.database import get_db
from moviematch.models.match import Match
from moviematch.schemas.match import MatchResponse
from moviematch.security import TokenIdentity, get_current_identity
from moviematch.services.matching_service import MatchingService

logger = structlog.get_logger("moviematch.api.matches")

router = APIRouter()

_matching_service: MatchingService | None = None


def _get_matching_service() -> MatchingService:
    global _matching_service
    if _matching_service is None:
        _matching_service = MatchingService()
    return _matching_service


@router.get(
    "",
    response_model=list[MatchResponse],
    summary="List the caller's matches",
)
async def list_matches(
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> list[Match]:
    matches = await _get_matching_service().list_matches(identity.user_id, db)
    logger.info("list_matches", user_id=str(identity.user_id), count=len(matches))
    return matches


@router.get(
    "/{match_id}",
    response_model=MatchResponse,
    summary="Get one of the caller's matches",
)
async def get_match(
    match_id: uuid.UUID,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> Match:
    return await _get_matching_service().get_match(identity.user_id, match_id, db)

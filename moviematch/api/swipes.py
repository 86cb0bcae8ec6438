"""
Movie Matcher — Swipes API

Recording swipes (with match detection) and listing the caller's history.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from moviematch.database import get_db
from moviematch.schemas.match import SwipeCreate, SwipeListItem, SwipeResponse
from moviematch.security import TokenIdentity, get_current_identity
from moviematch.services.matching_service import MatchingService

logger = structlog.get_logger("moviematch.api.swipes")

router = APIRouter()

_matching_service: MatchingService | None = None


def _get_matching_service() -> MatchingService:
    global _matching_service
    if _matching_service is None:
        _matching_service = MatchingService()
    return _matching_service


# ──────────────────────────────────────────────────────────────────────────────
# POST / — Record a swipe
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "",
    response_model=SwipeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Like or dislike a movie",
)
async def create_swipe(
    payload: SwipeCreate,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> SwipeResponse:
    """Store the caller's swipe.  ``match`` is ``true`` when this like
    completed a mutual like with the caller's partner."""
    result = await _get_matching_service().record_swipe(
        user_id=identity.user_id,
        media_id=payload.media_id,
        liked=payload.liked,
        db_session=db,
    )
    swipe = result.swipe
    return SwipeResponse(
        id=swipe.id,
        user_id=swipe.user_id,
        media_id=swipe.media_id,
        liked=swipe.liked,
        created_at=swipe.created_at,
        created=result.created,
        match=result.match,
    )


# ──────────────────────────────────────────────────────────────────────────────
# GET / — Swipe history
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "",
    response_model=list[SwipeListItem],
    summary="List the caller's swipes",
)
async def list_swipes(
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> list[dict]:
    return await _get_matching_service().list_user_swipes(identity.user_id, db)

"""
Movie Matcher — Swipe & Match Engine

Records a user's like/dislike for a catalog item and, when the swipe is a
like, checks whether the user's partner already liked the same item:

  1. Validate input and upsert the (user, media) swipe.
  2. Dislike → done.
  3. Like → look up the partner; no partner → done.
  4. Partner liked the same media → create the Match unless one exists
     for the pair in either order.

Match creation is best-effort.  It runs inside a SAVEPOINT so a failure
rolls back only the match lookup and insert; the swipe is still returned (with
``match = False``) and the failure is logged as ``match_create_failed``.
A match notification may be lost, a swipe may not.

Match existence is monotonic: later dislikes never remove a match.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

import structlog
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from moviematch.database import utcnow
from moviematch.exceptions import InvalidArgumentError, NotFoundError
from moviematch.models.match import Match, Swipe, ordered_pair
from moviematch.models.movie import Movie
from moviematch.models.user import User

logger = structlog.get_logger("moviematch.matching_service")


@dataclass
class SwipeResult:
    """Outcome of ``MatchingService.record_swipe``."""

    swipe: Swipe
    created: bool
    match: bool = False
    match_id: uuid.UUID | None = None


class MatchingService:
    """Swipe recording and mutual-like match detection."""

    # ── Public API ────────────────────────────────────────────────────────

    async def record_swipe(
        self,
        user_id: uuid.UUID,
        media_id: int | None,
        liked: bool | None,
        db_session: AsyncSession,
    ) -> SwipeResult:
        """Record *user_id*'s preference for *media_id* and detect a match.

        Parameters
        ----------
        user_id:
            The swiping user.
        media_id:
            Catalog id of the swiped movie.
        liked:
            ``True`` for a like, ``False`` for a dislike.  Must be a real
            ``bool``.
        db_session:
            The request-scoped async session.

        Returns
        -------
        SwipeResult
            The stored swipe, whether it was newly created, and whether this
            call created a match.

        Raises
        ------
        InvalidArgumentError
            *media_id* is missing or *liked* is not a boolean.
        NotFoundError
            The movie does not exist.
        """
        if media_id is None or not isinstance(liked, bool):
            raise InvalidArgumentError("Missing required fields")

        log = logger.bind(user_id=str(user_id), media_id=media_id, liked=liked)
        log.info("record_swipe_start")

        if await db_session.get(Movie, media_id) is None:
            log.info("record_swipe_media_not_found")
            raise NotFoundError("Movie not found")

        swipe, created = await self._upsert_swipe(user_id, media_id, liked, db_session)
        result = SwipeResult(swipe=swipe, created=created)

        if not liked:
            log.info("record_swipe_complete", created=created, match=False)
            return result

        user = await db_session.get(User, user_id)
        partner_id = user.partner_id if user is not None else None
        if partner_id is None:
            log.info("record_swipe_complete", created=created, match=False, reason="no_partner")
            return result

        if not await self._partner_liked(partner_id, media_id, db_session):
            log.info("record_swipe_complete", created=created, match=False)
            return result

        try:
            match = await self._create_match_if_absent(
                user_id, partner_id, media_id, db_session
            )
        except Exception:
            log.exception("match_create_failed", partner_id=str(partner_id))
            match = None

        if match is not None:
            result.match = True
            result.match_id = match.id
            log.info("match_created", match_id=str(match.id), partner_id=str(partner_id))

        log.info("record_swipe_complete", created=created, match=result.match)
        return result

    async def list_user_swipes(
        self, user_id: uuid.UUID, db_session: AsyncSession
    ) -> list[dict]:
        """Every swipe by *user_id* with the movie title and poster, newest first."""
        stmt = (
            select(Swipe, Movie.title, Movie.poster_url)
            .join(Movie, Swipe.media_id == Movie.id)
            .where(Swipe.user_id == user_id)
            .order_by(Swipe.created_at.desc())
        )
        result = await db_session.execute(stmt)

        return [
            {
                "id": swipe.id,
                "user_id": swipe.user_id,
                "media_id": swipe.media_id,
                "liked": swipe.liked,
                "created_at": swipe.created_at,
                "title": title,
                "poster_url": poster_url,
            }
            for swipe, title, poster_url in result.all()
        ]

    async def list_matches(
        self, user_id: uuid.UUID, db_session: AsyncSession
    ) -> list[Match]:
        """Matches where *user_id* is either side, newest first."""
        stmt = (
            select(Match)
            .where(or_(Match.user1_id == user_id, Match.user2_id == user_id))
            .order_by(Match.created_at.desc())
        )
        result = await db_session.execute(stmt)
        return list(result.scalars().all())

    async def get_match(
        self,
        user_id: uuid.UUID,
        match_id: uuid.UUID,
        db_session: AsyncSession,
    ) -> Match:
        """Fetch one match, visible only to its two participants."""
        stmt = select(Match).where(
            Match.id == match_id,
            or_(Match.user1_id == user_id, Match.user2_id == user_id),
        )
        match = (await db_session.execute(stmt)).scalar_one_or_none()
        if match is None:
            raise NotFoundError("Match not found")
        return match

    # ── Internals ─────────────────────────────────────────────────────────

    async def _upsert_swipe(
        self,
        user_id: uuid.UUID,
        media_id: int,
        liked: bool,
        db_session: AsyncSession,
    ) -> tuple[Swipe, bool]:
        """Insert the swipe, or overwrite ``liked`` and refresh its timestamp."""
        existing = await self._get_swipe(user_id, media_id, db_session)
        if existing is not None:
            existing.liked = liked
            existing.created_at = utcnow()
            await db_session.flush()
            return existing, False

        swipe = Swipe(user_id=user_id, media_id=media_id, liked=liked)
        try:
            async with db_session.begin_nested():
                db_session.add(swipe)
                await db_session.flush()
        except IntegrityError:
            # A concurrent request inserted the row first; update it instead
            logger.info("swipe_insert_raced", user_id=str(user_id), media_id=media_id)
            existing = await self._get_swipe(user_id, media_id, db_session)
            if existing is None:
                raise
            existing.liked = liked
            existing.created_at = utcnow()
            await db_session.flush()
            return existing, False

        return swipe, True

    async def _get_swipe(
        self, user_id: uuid.UUID, media_id: int, db_session: AsyncSession
    ) -> Swipe | None:
        stmt = select(Swipe).where(Swipe.user_id == user_id, Swipe.media_id == media_id)
        return (await db_session.execute(stmt)).scalar_one_or_none()

    async def _partner_liked(
        self, partner_id: uuid.UUID, media_id: int, db_session: AsyncSession
    ) -> bool:
        stmt = select(Swipe.id).where(
            Swipe.user_id == partner_id,
            Swipe.media_id == media_id,
            Swipe.liked.is_(True),
        )
        return (await db_session.execute(stmt)).first() is not None

    async def _create_match_if_absent(
        self,
        user_id: uuid.UUID,
        partner_id: uuid.UUID,
        media_id: int,
        db_session: AsyncSession,
    ) -> Match | None:
        """Insert the pair's match for *media_id*; ``None`` if it already exists."""
        user1_id, user2_id = ordered_pair(user_id, partner_id)

        stmt = select(Match.id).where(
            Match.media_id == media_id,
            Match.user1_id == user1_id,
            Match.user2_id == user2_id,
        )
        # Check and insert share one SAVEPOINT; the swipe lives outside it
        async with db_session.begin_nested():
            if (await db_session.execute(stmt)).first() is not None:
                return None

            match = Match(media_id=media_id, user1_id=user1_id, user2_id=user2_id)
            db_session.add(match)
            await db_session.flush()
        return match

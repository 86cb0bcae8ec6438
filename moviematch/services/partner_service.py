"""
Movie Matcher — Partner Linking Engine

Manages the lifecycle of partner relationships:

  request  → pending
  pending  → accepted   (recipient accepts; both users are linked)
  pending  → rejected   (recipient declines)
  accepted → dissolved  (link removed or overwritten later)

Linking is symmetric: if A.partner_id is B then B.partner_id is A.  Every
operation that touches ``partner_id`` writes both rows inside the caller's
transaction, so a failure anywhere rolls back the whole link rather than
leaving one side dangling.  Users displaced by a new link have their own
back-reference cleared for the same reason.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from moviematch.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    NotFoundError,
)
from moviematch.models.partner_request import (
    ACTIVE_STATUSES,
    STATUS_ACCEPTED,
    STATUS_DISSOLVED,
    STATUS_PENDING,
    STATUS_REJECTED,
    PartnerRequest,
    make_pair_key,
)
from moviematch.models.user import User

logger = structlog.get_logger("moviematch.partner_service")

VALID_DECISIONS = frozenset({STATUS_ACCEPTED, STATUS_REJECTED})


class PartnerService:
    """Partner requests and the bidirectional partner link."""

    # ── Requests ──────────────────────────────────────────────────────────

    async def create_request(
        self,
        requester_id: uuid.UUID,
        recipient_email: str,
        db_session: AsyncSession,
    ) -> PartnerRequest:
        """Propose a partnership to the user registered under *recipient_email*.

        Raises
        ------
        NotFoundError
            No user has that email.
        InvalidArgumentError
            The requester addressed themselves.
        ConflictError
            An active request already exists between the pair (either
            direction) or the pair is already linked.
        """
        log = logger.bind(requester_id=str(requester_id))
        log.info("create_request_start")

        requester = await self._get_user(requester_id, db_session)
        recipient = await self._get_user_by_email(recipient_email, db_session)
        if recipient is None:
            log.info("create_request_recipient_not_found")
            raise NotFoundError("User not found")

        if recipient.id == requester.id:
            raise InvalidArgumentError("Cannot send partner request to yourself")

        log = log.bind(recipient_id=str(recipient.id))
        pair_key = make_pair_key(requester.id, recipient.id)

        stmt = select(PartnerRequest).where(
            PartnerRequest.pair_key == pair_key,
            PartnerRequest.status.in_(ACTIVE_STATUSES),
        )
        active = (await db_session.execute(stmt)).scalars().first()
        if active is not None:
            log.info("create_request_conflict", existing_status=active.status)
            if active.status == STATUS_PENDING:
                raise ConflictError(
                    "A pending request already exists between these users"
                )
            raise ConflictError("These users are already partners")

        if requester.partner_id == recipient.id or recipient.partner_id == requester.id:
            log.info("create_request_conflict", reason="already_linked")
            raise ConflictError("These users are already partners")

        request = PartnerRequest(
            requester_id=requester.id,
            recipient_id=recipient.id,
            status=STATUS_PENDING,
            pair_key=pair_key,
        )
        try:
            async with db_session.begin_nested():
                db_session.add(request)
                await db_session.flush()
        except IntegrityError as exc:
            log.warning("create_request_conflict", reason="unique_violation")
            raise ConflictError(
                "A pending request already exists between these users"
            ) from exc

        await db_session.refresh(request, attribute_names=["requester", "recipient"])
        log.info("create_request_complete", request_id=str(request.id))
        return request

    async def list_requests(
        self, user_id: uuid.UUID, db_session: AsyncSession
    ) -> list[PartnerRequest]:
        """All requests sent or received by *user_id*, newest first."""
        stmt = (
            select(PartnerRequest)
            .where(
                or_(
                    PartnerRequest.requester_id == user_id,
                    PartnerRequest.recipient_id == user_id,
                )
            )
            .order_by(PartnerRequest.created_at.desc())
        )
        result = await db_session.execute(stmt)
        return list(result.scalars().all())

    async def list_pending_received(
        self, user_id: uuid.UUID, db_session: AsyncSession
    ) -> list[PartnerRequest]:
        """Pending requests awaiting *user_id*'s answer, newest first."""
        stmt = (
            select(PartnerRequest)
            .where(
                PartnerRequest.recipient_id == user_id,
                PartnerRequest.status == STATUS_PENDING,
            )
            .order_by(PartnerRequest.created_at.desc())
        )
        result = await db_session.execute(stmt)
        return list(result.scalars().all())

    async def respond(
        self,
        user_id: uuid.UUID,
        request_id: uuid.UUID,
        decision: str,
        db_session: AsyncSession,
    ) -> PartnerRequest:
        """Accept or reject a request addressed to *user_id*.

        On ``accepted`` both users are linked to each other; on ``rejected``
        only the request status changes.

        Raises
        ------
        InvalidArgumentError
            *decision* is not ``accepted`` or ``rejected``.
        ForbiddenError
            No request with that id is addressed to *user_id*.
        ConflictError
            The request has already been processed.
        """
        if decision not in VALID_DECISIONS:
            raise InvalidArgumentError(
                'Status must be either "accepted" or "rejected"'
            )

        log = logger.bind(
            user_id=str(user_id), request_id=str(request_id), decision=decision
        )
        log.info("respond_start")

        stmt = select(PartnerRequest).where(
            PartnerRequest.id == request_id,
            PartnerRequest.recipient_id == user_id,
        )
        request = (await db_session.execute(stmt)).scalar_one_or_none()
        if request is None:
            log.info("respond_not_found")
            raise ForbiddenError(
                "Partner request not found or you are not authorized to respond to it"
            )

        if request.status != STATUS_PENDING:
            log.info("respond_already_processed", status=request.status)
            raise ConflictError("This request has already been processed")

        request.status = decision
        await db_session.flush()

        if decision == STATUS_ACCEPTED:
            recipient = await self._get_user(user_id, db_session)
            requester = await self._get_user(request.requester_id, db_session)
            await self._link(recipient, requester, db_session)

        await db_session.refresh(request, attribute_names=["requester", "recipient"])
        log.info("respond_complete")
        return request

    # ── Direct link ───────────────────────────────────────────────────────

    async def set_partner_direct(
        self,
        user_id: uuid.UUID,
        partner_id: uuid.UUID,
        db_session: AsyncSession,
    ) -> User:
        """Link *user_id* and *partner_id* without a request.

        Any existing links on either side are overwritten.
        """
        log = logger.bind(user_id=str(user_id), partner_id=str(partner_id))

        if partner_id == user_id:
            raise InvalidArgumentError("Cannot set yourself as your partner")

        partner = await db_session.get(User, partner_id)
        if partner is None:
            log.info("set_partner_not_found")
            raise NotFoundError("Partner not found")

        user = await self._get_user(user_id, db_session)
        await self._link(user, partner, db_session)

        log.info("set_partner_complete")
        return user

    async def get_partner(
        self, user_id: uuid.UUID, db_session: AsyncSession
    ) -> User | None:
        """Return the linked partner, or ``None`` when unlinked.

        Raises ``NotFoundError`` if the stored reference points at a user
        that no longer exists.
        """
        user = await self._get_user(user_id, db_session)
        if user.partner_id is None:
            return None

        partner = await db_session.get(User, user.partner_id)
        if partner is None:
            logger.warning(
                "partner_reference_stale",
                user_id=str(user_id),
                partner_id=str(user.partner_id),
            )
            raise NotFoundError("Partner not found")
        return partner

    async def remove_partner(
        self, user_id: uuid.UUID, db_session: AsyncSession
    ) -> User:
        """Clear the link on both sides and dissolve the accepted request.

        Pending requests are left untouched.  Unlinked users are returned
        unchanged.
        """
        log = logger.bind(user_id=str(user_id))
        user = await self._get_user(user_id, db_session)

        if user.partner_id is None:
            log.info("remove_partner_noop")
            return user

        former_id = user.partner_id
        await self._unlink(user, db_session)
        await db_session.flush()

        log.info("remove_partner_complete", former_partner_id=str(former_id))
        return user

    async def search_by_email(self, email: str, db_session: AsyncSession) -> User:
        user = await self._get_user_by_email(email, db_session)
        if user is None:
            raise NotFoundError("User not found")
        return user

    # ── Internals ─────────────────────────────────────────────────────────

    async def _link(
        self,
        user_a: User,
        user_b: User,
        db_session: AsyncSession,
    ) -> None:
        """Point *user_a* and *user_b* at each other."""
        for user, other in ((user_a, user_b), (user_b, user_a)):
            if user.partner_id is not None and user.partner_id != other.id:
                await self._unlink(user, db_session)

        user_a.partner_id = user_b.id
        user_b.partner_id = user_a.id
        await db_session.flush()

        logger.info(
            "partners_linked", user_a_id=str(user_a.id), user_b_id=str(user_b.id)
        )

    async def _unlink(self, user: User, db_session: AsyncSession) -> None:
        """Clear *user*'s link and the former partner's back-reference."""
        former_id = user.partner_id
        if former_id is None:
            return

        former = await db_session.get(User, former_id)
        if former is not None and former.partner_id == user.id:
            former.partner_id = None
        user.partner_id = None

        await self._dissolve_accepted(user.id, former_id, db_session)
        logger.info(
            "partners_unlinked", user_id=str(user.id), former_partner_id=str(former_id)
        )

    async def _dissolve_accepted(
        self,
        user_a_id: uuid.UUID,
        user_b_id: uuid.UUID,
        db_session: AsyncSession,
    ) -> None:
        stmt = select(PartnerRequest).where(
            PartnerRequest.pair_key == make_pair_key(user_a_id, user_b_id),
            PartnerRequest.status == STATUS_ACCEPTED,
        )
        result = await db_session.execute(stmt)
        for request in result.scalars().all():
            request.status = STATUS_DISSOLVED
        await db_session.flush()

    async def _get_user(self, user_id: uuid.UUID, db_session: AsyncSession) -> User:
        user = await db_session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def _get_user_by_email(
        self, email: str, db_session: AsyncSession
    ) -> User | None:
        stmt = select(User).where(User.email == email.strip().lower())
        return (await db_session.execute(stmt)).scalar_one_or_none()

"""Unit tests for PartnerService — requests and the symmetric partner link."""
import uuid

import pytest
from sqlalchemy import func, select

from moviematch.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    NotFoundError,
)
from moviematch.models.partner_request import PartnerRequest, make_pair_key
from moviematch.services.partner_service import PartnerService


@pytest.fixture
def partner_service():
    return PartnerService()


async def _link_via_request(service, session, requester, recipient):
    request = await service.create_request(requester.id, recipient.email, session)
    return await service.respond(recipient.id, request.id, "accepted", session)


class TestCreateRequest:

    @pytest.mark.asyncio
    async def test_creates_pending_request(self, partner_service, db_session, make_user):
        alice = await make_user(db_session, "alice@x.com")
        bob = await make_user(db_session, "bob@x.com")

        request = await partner_service.create_request(alice.id, "bob@x.com", db_session)

        assert request.status == "pending"
        assert request.requester_id == alice.id
        assert request.recipient_id == bob.id
        assert request.requester_email == "alice@x.com"
        assert request.recipient_email == "bob@x.com"
        assert request.pair_key == make_pair_key(bob.id, alice.id)

    @pytest.mark.asyncio
    async def test_recipient_email_is_case_insensitive(self, partner_service, db_session, make_user):
        alice = await make_user(db_session, "alice@x.com")
        await make_user(db_session, "bob@x.com")
        request = await partner_service.create_request(alice.id, " Bob@X.com ", db_session)
        assert request.recipient_email == "bob@x.com"

    @pytest.mark.asyncio
    async def test_unknown_recipient(self, partner_service, db_session, make_user):
        alice = await make_user(db_session, "alice@x.com")
        with pytest.raises(NotFoundError):
            await partner_service.create_request(alice.id, "nobody@x.com", db_session)

    @pytest.mark.asyncio
    async def test_self_request(self, partner_service, db_session, make_user):
        alice = await make_user(db_session, "alice@x.com")
        with pytest.raises(InvalidArgumentError):
            await partner_service.create_request(alice.id, "alice@x.com", db_session)

    @pytest.mark.asyncio
    async def test_duplicate_pending_either_direction(self, partner_service, db_session, make_user):
        alice = await make_user(db_session, "alice@x.com")
        bob = await make_user(db_session, "bob@x.com")
        await partner_service.create_request(alice.id, "bob@x.com", db_session)

        with pytest.raises(ConflictError, match="pending"):
            await partner_service.create_request(alice.id, "bob@x.com", db_session)
        with pytest.raises(ConflictError, match="pending"):
            await partner_service.create_request(bob.id, "alice@x.com", db_session)

    @pytest.mark.asyncio
    async def test_already_partners_via_request(self, partner_service, db_session, make_user):
        alice = await make_user(db_session, "alice@x.com")
        bob = await make_user(db_session, "bob@x.com")
        await _link_via_request(partner_service, db_session, alice, bob)

        with pytest.raises(ConflictError, match="already partners"):
            await partner_service.create_request(bob.id, "alice@x.com", db_session)

    @pytest.mark.asyncio
    async def test_already_partners_via_direct_link(self, partner_service, db_session, make_user):
        alice = await make_user(db_session, "alice@x.com")
        bob = await make_user(db_session, "bob@x.com")
        await partner_service.set_partner_direct(alice.id, bob.id, db_session)

        with pytest.raises(ConflictError, match="already partners"):
            await partner_service.create_request(alice.id, "bob@x.com", db_session)

    @pytest.mark.asyncio
    async def test_can_request_again_after_rejection(self, partner_service, db_session, make_user):
        alice = await make_user(db_session, "alice@x.com")
        bob = await make_user(db_session, "bob@x.com")
        first = await partner_service.create_request(alice.id, "bob@x.com", db_session)
        await partner_service.respond(bob.id, first.id, "rejected", db_session)

        second = await partner_service.create_request(alice.id, "bob@x.com", db_session)
        assert second.id != first.id
        assert second.status == "pending"


class TestRespond:

    @pytest.mark.asyncio
    async def test_accept_links_both_sides(self, partner_service, db_session, make_user):
        alice = await make_user(db_session, "alice@x.com")
        bob = await make_user(db_session, "bob@x.com")

        request = await _link_via_request(partner_service, db_session, alice, bob)

        assert request.status == "accepted"
        assert request.requester_email == "alice@x.com"
        assert request.recipient_email == "bob@x.com"
        assert (await partner_service.get_partner(alice.id, db_session)).id == bob.id
        assert (await partner_service.get_partner(bob.id, db_session)).id == alice.id

    @pytest.mark.asyncio
    async def test_reject_leaves_users_unlinked(self, partner_service, db_session, make_user):
        alice = await make_user(db_session, "alice@x.com")
        bob = await make_user(db_session, "bob@x.com")
        request = await partner_service.create_request(alice.id, "bob@x.com", db_session)

        result = await partner_service.respond(bob.id, request.id, "rejected", db_session)

        assert result.status == "rejected"
        assert alice.partner_id is None
        assert bob.partner_id is None

    @pytest.mark.asyncio
    async def test_requester_cannot_respond(self, partner_service, db_session, make_user):
        alice = await make_user(db_session, "alice@x.com")
        await make_user(db_session, "bob@x.com")
        request = await partner_service.create_request(alice.id, "bob@x.com", db_session)

        with pytest.raises(ForbiddenError):
            await partner_service.respond(alice.id, request.id, "accepted", db_session)

    @pytest.mark.asyncio
    async def test_unknown_request(self, partner_service, db_session, make_user):
        bob = await make_user(db_session, "bob@x.com")
        with pytest.raises(NotFoundError):
            await partner_service.respond(bob.id, uuid.uuid4(), "accepted", db_session)

    @pytest.mark.asyncio
    async def test_already_processed(self, partner_service, db_session, make_user):
        alice = await make_user(db_session, "alice@x.com")
        bob = await make_user(db_session, "bob@x.com")
        request = await partner_service.create_request(alice.id, "bob@x.com", db_session)
        await partner_service.respond(bob.id, request.id, "rejected", db_session)

        with pytest.raises(ConflictError):
            await partner_service.respond(bob.id, request.id, "accepted", db_session)

    @pytest.mark.asyncio
    async def test_invalid_decision(self, partner_service, db_session, make_user):
        bob = await make_user(db_session, "bob@x.com")
        with pytest.raises(InvalidArgumentError):
            await partner_service.respond(bob.id, uuid.uuid4(), "maybe", db_session)

    @pytest.mark.asyncio
    async def test_accept_replaces_existing_link_symmetrically(
        self, partner_service, db_session, make_user
    ):
        alice = await make_user(db_session, "alice@x.com")
        bob = await make_user(db_session, "bob@x.com")
        carol = await make_user(db_session, "carol@x.com")
        await _link_via_request(partner_service, db_session, alice, bob)

        await _link_via_request(partner_service, db_session, carol, bob)

        assert bob.partner_id == carol.id
        assert carol.partner_id == bob.id
        assert alice.partner_id is None
        statuses = (
            await db_session.execute(
                select(PartnerRequest.status).where(
                    PartnerRequest.pair_key == make_pair_key(alice.id, bob.id)
                )
            )
        ).scalars().all()
        assert statuses == ["dissolved"]


class TestListing:

    @pytest.mark.asyncio
    async def test_list_requests_sent_and_received(self, partner_service, db_session, make_user):
        alice = await make_user(db_session, "alice@x.com")
        bob = await make_user(db_session, "bob@x.com")
        carol = await make_user(db_session, "carol@x.com")
        sent = await partner_service.create_request(alice.id, "bob@x.com", db_session)
        received = await partner_service.create_request(carol.id, "alice@x.com", db_session)

        requests = await partner_service.list_requests(alice.id, db_session)

        # Newest first
        assert [r.id for r in requests] == [received.id, sent.id]
        assert requests[0].requester_email == "carol@x.com"
        assert requests[1].recipient_email == "bob@x.com"
        assert await partner_service.list_requests(bob.id, db_session) == [sent]

    @pytest.mark.asyncio
    async def test_pending_received_only(self, partner_service, db_session, make_user):
        alice = await make_user(db_session, "alice@x.com")
        bob = await make_user(db_session, "bob@x.com")
        carol = await make_user(db_session, "carol@x.com")
        await partner_service.create_request(alice.id, "bob@x.com", db_session)
        rejected = await partner_service.create_request(carol.id, "bob@x.com", db_session)
        await partner_service.respond(bob.id, rejected.id, "rejected", db_session)

        pending = await partner_service.list_pending_received(bob.id, db_session)

        assert len(pending) == 1
        assert pending[0].requester_email == "alice@x.com"
        assert await partner_service.list_pending_received(alice.id, db_session) == []


class TestDirectLink:

    @pytest.mark.asyncio
    async def test_set_partner_direct(self, partner_service, db_session, make_user):
        alice = await make_user(db_session, "alice@x.com")
        bob = await make_user(db_session, "bob@x.com")

        updated = await partner_service.set_partner_direct(alice.id, bob.id, db_session)

        assert updated.id == alice.id
        assert updated.partner_id == bob.id
        assert bob.partner_id == alice.id

    @pytest.mark.asyncio
    async def test_set_partner_unknown(self, partner_service, db_session, make_user):
        alice = await make_user(db_session, "alice@x.com")
        with pytest.raises(NotFoundError):
            await partner_service.set_partner_direct(alice.id, uuid.uuid4(), db_session)

    @pytest.mark.asyncio
    async def test_set_partner_self(self, partner_service, db_session, make_user):
        alice = await make_user(db_session, "alice@x.com")
        with pytest.raises(InvalidArgumentError):
            await partner_service.set_partner_direct(alice.id, alice.id, db_session)

    @pytest.mark.asyncio
    async def test_overwrite_clears_displaced_partners(self, partner_service, db_session, make_user):
        alice = await make_user(db_session, "alice@x.com")
        bob = await make_user(db_session, "bob@x.com")
        carol = await make_user(db_session, "carol@x.com")
        dave = await make_user(db_session, "dave@x.com")
        await partner_service.set_partner_direct(alice.id, bob.id, db_session)
        await partner_service.set_partner_direct(carol.id, dave.id, db_session)

        await partner_service.set_partner_direct(alice.id, carol.id, db_session)

        assert alice.partner_id == carol.id
        assert carol.partner_id == alice.id
        assert bob.partner_id is None
        assert dave.partner_id is None


class TestPartnerLookupAndRemoval:

    @pytest.mark.asyncio
    async def test_no_partner(self, partner_service, db_session, make_user):
        alice = await make_user(db_session, "alice@x.com")
        assert await partner_service.get_partner(alice.id, db_session) is None

    @pytest.mark.asyncio
    async def test_remove_partner_clears_both_sides(self, partner_service, db_session, make_user):
        alice = await make_user(db_session, "alice@x.com")
        bob = await make_user(db_session, "bob@x.com")
        request = await _link_via_request(partner_service, db_session, alice, bob)

        updated = await partner_service.remove_partner(bob.id, db_session)

        assert updated.partner_id is None
        assert alice.partner_id is None
        assert request.status == "dissolved"
        # The pair may start over with a new request
        again = await partner_service.create_request(alice.id, "bob@x.com", db_session)
        assert again.status == "pending"

    @pytest.mark.asyncio
    async def test_remove_partner_keeps_pending_requests(self, partner_service, db_session, make_user):
        alice = await make_user(db_session, "alice@x.com")
        bob = await make_user(db_session, "bob@x.com")
        await make_user(db_session, "carol@x.com")
        await partner_service.set_partner_direct(alice.id, bob.id, db_session)
        await partner_service.create_request(alice.id, "carol@x.com", db_session)

        await partner_service.remove_partner(alice.id, db_session)

        pending = await db_session.scalar(
            select(func.count()).select_from(PartnerRequest).where(PartnerRequest.status == "pending")
        )
        assert pending == 1

    @pytest.mark.asyncio
    async def test_remove_without_partner_is_noop(self, partner_service, db_session, make_user):
        alice = await make_user(db_session, "alice@x.com")
        updated = await partner_service.remove_partner(alice.id, db_session)
        assert updated.partner_id is None

    @pytest.mark.asyncio
    async def test_search_by_email(self, partner_service, db_session, make_user):
        bob = await make_user(db_session, "bob@x.com", display_name="Bob")
        found = await partner_service.search_by_email("bob@x.com", db_session)
        assert found.id == bob.id
        with pytest.raises(NotFoundError):
            await partner_service.search_by_email("nobody@x.com", db_session)

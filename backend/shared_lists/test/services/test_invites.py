from unittest.mock import patch

import pytest

from shared_lists.models.events import EventType
from shared_lists.models.invites import InviteStatus
from shared_lists.models.memberships import MembershipRole
from shared_lists.services.errors import (
    ForbiddenError,
    InvalidInputError,
    InvalidInviteError,
    NotFoundError,
)
from shared_lists.services.invites.service import get_join_path


class TestCreateInvite:
    def test_pending_invite_is_reused(self, invite_service, shared_list, people):
        """Asking twice hands out the same token while it is unused."""
        first = invite_service.create_invite(people["owner"], shared_list.id)
        second = invite_service.create_invite(people["admin"], shared_list.id)

        assert first.id == second.id
        assert first.token == second.token
        assert first.status == InviteStatus.PENDING

    def test_token_is_long_and_unguessable(self, invite_service, shared_list, people):
        invite = invite_service.create_invite(people["owner"], shared_list.id)
        # hex encoded, at least 16 random bytes
        assert len(invite.token) >= 32
        int(invite.token, 16)

    def test_only_one_created_event_for_reused_invite(
        self, store, invite_service, shared_list, people
    ):
        invite_service.create_invite(people["owner"], shared_list.id)
        invite_service.create_invite(people["owner"], shared_list.id)

        events = store.events.get_events_by_list_id(shared_list.id, limit=50)
        created = [e for e in events if e.type == EventType.INVITE_CREATED]
        assert len(created) == 1

    def test_member_cannot_invite(self, invite_service, shared_list, people):
        with pytest.raises(ForbiddenError):
            invite_service.create_invite(people["member"], shared_list.id)

    def test_join_path(self, invite_service, shared_list, people):
        invite = invite_service.create_invite(people["owner"], shared_list.id)
        assert get_join_path(invite) == f"/join/{invite.token}"


class TestAcceptInvite:
    def test_accept_joins_as_member(self, store, invite_service, shared_list, people):
        invite = invite_service.create_invite(people["owner"], shared_list.id)

        result = invite_service.accept_invite(people["outsider"], invite.token)

        assert result.list_id == shared_list.id
        assert result.joined is True
        membership = store.memberships.get_membership(shared_list.id, people["outsider"])
        assert membership.role == MembershipRole.MEMBER

        accepted = store.invites.get_invite_by_id(invite.id)
        assert accepted.status == InviteStatus.ACCEPTED
        assert accepted.accepted_by == people["outsider"]
        assert accepted.accepted_at is not None

    def test_token_cannot_be_used_twice(self, invite_service, shared_list, people):
        invite = invite_service.create_invite(people["owner"], shared_list.id)
        invite_service.accept_invite(people["outsider"], invite.token)

        with pytest.raises(InvalidInviteError):
            invite_service.accept_invite(people["outsider"], invite.token)

    def test_new_token_after_acceptance(self, invite_service, shared_list, people):
        first = invite_service.create_invite(people["owner"], shared_list.id)
        invite_service.accept_invite(people["outsider"], first.token)

        second = invite_service.create_invite(people["owner"], shared_list.id)
        assert second.token != first.token
        assert second.status == InviteStatus.PENDING

    def test_existing_member_does_not_rejoin(self, store, invite_service, shared_list, people):
        invite = invite_service.create_invite(people["owner"], shared_list.id)

        result = invite_service.accept_invite(people["admin"], invite.token)

        assert result.joined is False
        # The role stays as it was
        membership = store.memberships.get_membership(shared_list.id, people["admin"])
        assert membership.role == MembershipRole.ADMIN

    def test_unknown_user_is_bootstrapped(self, store, invite_service, shared_list, people):
        invite = invite_service.create_invite(people["owner"], shared_list.id)

        invite_service.accept_invite("ext-42", invite.token)

        user = store.users.get_user_by_id("ext-42")
        assert user is not None
        assert user.email == "ext-42@example.com"
        assert store.memberships.get_membership(shared_list.id, "ext-42") is not None

    @pytest.mark.parametrize("token", ["", "not-a-real-token"])
    def test_unknown_token(self, invite_service, token, people):
        with pytest.raises(InvalidInviteError):
            invite_service.accept_invite(people["outsider"], token)

    def test_accept_is_logged(self, store, invite_service, shared_list, people):
        invite = invite_service.create_invite(people["owner"], shared_list.id)
        invite_service.accept_invite(people["outsider"], invite.token)

        latest = store.events.get_events_by_list_id(shared_list.id, limit=1)[0]
        assert latest.type == EventType.INVITE_ACCEPTED
        assert latest.actor_id == people["outsider"]
        assert latest.data["user_id"] == people["outsider"]
        assert latest.data["invite_id"] == invite.id


class TestRevokeInvite:
    def test_revoked_token_is_rejected(self, invite_service, shared_list, people):
        invite = invite_service.create_invite(people["owner"], shared_list.id)

        revoked = invite_service.revoke_invite(people["admin"], invite.id)
        assert revoked.status == InviteStatus.REVOKED

        with pytest.raises(InvalidInviteError):
            invite_service.accept_invite(people["outsider"], invite.token)

    def test_revoke_twice(self, invite_service, shared_list, people):
        invite = invite_service.create_invite(people["owner"], shared_list.id)
        invite_service.revoke_invite(people["owner"], invite.id)

        with pytest.raises(InvalidInviteError):
            invite_service.revoke_invite(people["owner"], invite.id)

    def test_member_cannot_revoke(self, invite_service, shared_list, people):
        invite = invite_service.create_invite(people["owner"], shared_list.id)

        with pytest.raises(ForbiddenError):
            invite_service.revoke_invite(people["member"], invite.id)

    def test_unknown_invite(self, invite_service, people):
        with pytest.raises(NotFoundError):
            invite_service.revoke_invite(people["owner"], "missing")

    def test_get_invites(self, invite_service, shared_list, people):
        first = invite_service.create_invite(people["owner"], shared_list.id)
        invite_service.revoke_invite(people["owner"], first.id)
        second = invite_service.create_invite(people["owner"], shared_list.id)

        ids = {i.id for i in invite_service.get_invites(people["admin"], shared_list.id)}
        assert ids == {first.id, second.id}


class TestAcceptInviteFailures:
    """A failed write while joining leaves the invite usable."""

    def test_failed_membership_insert(self, store, invite_service, shared_list, people):
        invite = invite_service.create_invite(people["owner"], shared_list.id)

        with patch.object(store.memberships, "insert_new_membership", return_value=None):
            with pytest.raises(InvalidInputError):
                invite_service.accept_invite(people["outsider"], invite.token)

        assert store.memberships.get_membership(shared_list.id, people["outsider"]) is None
        assert store.invites.get_invite_by_id(invite.id).status == InviteStatus.PENDING
        latest = store.events.get_events_by_list_id(shared_list.id, limit=1)[0]
        assert latest.type != EventType.INVITE_ACCEPTED

        # The same token still works once the store recovers
        assert invite_service.accept_invite(people["outsider"], invite.token).joined

    def test_failed_user_bootstrap(self, store, invite_service, shared_list, people):
        """The bootstrap email of a new identity is already taken by another user."""
        store.users.insert_new_user(id="someone-else", email="ext-7@example.com", name="X")
        invite = invite_service.create_invite(people["owner"], shared_list.id)

        with pytest.raises(InvalidInputError):
            invite_service.accept_invite("ext-7", invite.token)

        assert store.users.get_user_by_id("ext-7") is None
        assert store.memberships.get_membership(shared_list.id, "ext-7") is None
        assert store.invites.get_invite_by_id(invite.id).status == InviteStatus.PENDING


class TestConcurrentInvites:
    def test_concurrent_creates_share_one_token(
        self, store, invite_service, shared_list, people, run_concurrently, slowed
    ):
        lookup = slowed(store.invites.get_pending_invite_by_list_id)
        with patch.object(store.invites, "get_pending_invite_by_list_id", side_effect=lookup):
            results = run_concurrently(
                [
                    lambda: invite_service.create_invite(people["owner"], shared_list.id)
                    for _ in range(8)
                ]
            )

        assert {invite.token for invite in results} == {results[0].token}
        assert len(store.invites.get_invites_by_list_id(shared_list.id)) == 1

    def test_concurrent_accepts_admit_one_user(
        self, store, invite_service, shared_list, people, run_concurrently, slowed
    ):
        invite = invite_service.create_invite(people["owner"], shared_list.id)
        guests = [f"guest-{i}" for i in range(4)]

        lookup = slowed(store.invites.get_invite_by_token)
        with patch.object(store.invites, "get_invite_by_token", side_effect=lookup):
            results = run_concurrently(
                [
                    lambda guest=guest: invite_service.accept_invite(guest, invite.token)
                    for guest in guests
                ]
            )

        accepted = [r for r in results if not isinstance(r, Exception)]
        rejected = [r for r in results if isinstance(r, Exception)]
        assert len(accepted) == 1
        assert all(isinstance(r, InvalidInviteError) for r in rejected)

        joined = [g for g in guests if store.memberships.get_membership(shared_list.id, g)]
        assert len(joined) == 1

import logging
from typing import Optional

from shared_lists.constants import ERROR_MESSAGES
from shared_lists.env import BOOTSTRAP_EMAIL_DOMAIN, INVITE_TOKEN_BYTES, SRC_LOG_LEVELS
from shared_lists.internal.store import Store, get_store
from shared_lists.models.events import EventType
from shared_lists.models.invites import AcceptInviteResult, InviteModel, InviteStatus
from shared_lists.models.memberships import MembershipRole
from shared_lists.services.errors import (
    InvalidInputError,
    InvalidInviteError,
    NotFoundError,
)
from shared_lists.services.events.service import EventLog
from shared_lists.services.permissions import Action, require

log = logging.getLogger(__name__)
log.setLevel(SRC_LOG_LEVELS["SERVICES"])


def get_join_path(invite: InviteModel) -> str:
    return f"/join/{invite.token}"


class InviteService:
    def __init__(self, store: Optional[Store] = None):
        self.store = store or get_store()
        self.events = EventLog(self.store)

    def create_invite(
        self, actor_id: str, list_id: str, email: Optional[str] = None
    ) -> InviteModel:
        """
        Return the list's share invite, minting one only when no pending invite
        exists. Repeated calls hand out the same token until it is accepted.
        """
        with self.store.list_lock(list_id):
            require(actor_id, list_id, Action.INVITE_CREATE, store=self.store)

            existing = self.store.invites.get_pending_invite_by_list_id(list_id)
            if existing:
                return existing

            invite = self.store.invites.create_invite(
                list_id=list_id,
                invited_by=actor_id,
                token_bytes=INVITE_TOKEN_BYTES,
                email=email,
            )

        log.info(f"Invite {invite.id} created for list {list_id} by {actor_id}")
        self.events.append(
            list_id,
            EventType.INVITE_CREATED,
            {"invite_id": invite.id, "email": invite.email},
            actor_id=actor_id,
        )
        return invite

    def accept_invite(self, user_id: str, token: str) -> AcceptInviteResult:
        """
        Join the invite's list as a member.

        Only pending invites can be accepted; accepting marks the invite
        accepted, so presenting the same token again fails.
        """
        invite = self.store.invites.get_invite_by_token(token) if token else None
        if not invite:
            raise InvalidInviteError()

        with self.store.list_lock(invite.list_id):
            # Re-read under the lock: a concurrent accept may have won
            invite = self.store.invites.get_invite_by_token(token)
            if not invite or invite.status != InviteStatus.PENDING:
                raise InvalidInviteError()

            if not self.store.users.get_user_by_id(user_id):
                # First contact from an external identity; bootstrap a profile
                user = self.store.users.insert_new_user(
                    id=user_id,
                    email=f"{user_id}@{BOOTSTRAP_EMAIL_DOMAIN}",
                    name=user_id,
                )
                if not user:
                    raise InvalidInputError(ERROR_MESSAGES.DEFAULT("Error creating user"))

            joined = False
            if not self.store.memberships.get_membership(invite.list_id, user_id):
                membership = self.store.memberships.insert_new_membership(
                    invite.list_id, user_id, MembershipRole.MEMBER
                )
                if not membership:
                    raise InvalidInputError(ERROR_MESSAGES.DEFAULT("Error joining list"))
                joined = True

            self.store.invites.accept_invite(token, user_id)

        log.info(
            f"User {user_id} accepted invite {invite.id} for list {invite.list_id}"
            f" (joined={joined})"
        )
        self.events.append(
            invite.list_id,
            EventType.INVITE_ACCEPTED,
            {"user_id": user_id, "actor_id": user_id, "invite_id": invite.id},
            actor_id=user_id,
        )
        return AcceptInviteResult(list_id=invite.list_id, joined=joined)

    def revoke_invite(self, actor_id: str, invite_id: str) -> InviteModel:
        invite = self.store.invites.get_invite_by_id(invite_id)
        if not invite:
            raise NotFoundError(ERROR_MESSAGES.INVITE_NOT_FOUND)

        with self.store.list_lock(invite.list_id):
            require(actor_id, invite.list_id, Action.INVITE_REVOKE, store=self.store)

            invite = self.store.invites.get_invite_by_id(invite_id)
            if not invite or invite.status != InviteStatus.PENDING:
                raise InvalidInviteError()

            revoked = self.store.invites.revoke_invite(invite_id)

        log.info(f"Invite {invite_id} on list {invite.list_id} revoked by {actor_id}")
        return revoked

    def get_invites(self, actor_id: str, list_id: str) -> list[InviteModel]:
        require(actor_id, list_id, Action.INVITE_CREATE, store=self.store)
        return self.store.invites.get_invites_by_list_id(list_id)

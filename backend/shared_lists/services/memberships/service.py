import logging
from typing import Optional

from shared_lists.constants import ERROR_MESSAGES
from shared_lists.env import SRC_LOG_LEVELS
from shared_lists.internal.store import Store, get_store
from shared_lists.models.events import EventType
from shared_lists.models.memberships import (
    MemberResponse,
    MembershipModel,
    MembershipRole,
)
from shared_lists.services.errors import (
    CannotLeaveWithoutOwnerError,
    CannotRemoveLastOwnerError,
    InvalidRoleError,
    NotFoundError,
)
from shared_lists.services.events.service import EventLog
from shared_lists.services.permissions import Action, require

log = logging.getLogger(__name__)
log.setLevel(SRC_LOG_LEVELS["SERVICES"])


class MembershipService:
    def __init__(self, store: Optional[Store] = None):
        self.store = store or get_store()
        self.events = EventLog(self.store)

    def change_role(
        self, actor_id: str, list_id: str, target_user_id: str, new_role
    ) -> MembershipModel:
        """
        Change a member's role. Owners only.

        A list always keeps at least one owner: demoting the last one fails,
        with a dedicated error when owners try to demote themselves.
        """
        with self.store.list_lock(list_id):
            require(actor_id, list_id, Action.MEMBERS_MANAGE, store=self.store)

            role = MembershipRole.parse(new_role)
            if role is None:
                raise InvalidRoleError()

            target = self.store.memberships.get_membership(list_id, target_user_id)
            if not target:
                raise NotFoundError(ERROR_MESSAGES.MEMBER_NOT_FOUND)

            if target.role == MembershipRole.OWNER and role != MembershipRole.OWNER:
                if self.store.memberships.count_owners(list_id) <= 1:
                    raise CannotRemoveLastOwnerError()

            if actor_id == target_user_id and role != MembershipRole.OWNER:
                if self.store.memberships.count_owners(list_id) <= 1:
                    raise CannotLeaveWithoutOwnerError()

            updated = self.store.memberships.update_role(list_id, target_user_id, role)
            if not updated:
                raise NotFoundError(ERROR_MESSAGES.MEMBER_NOT_FOUND)

        log.info(
            f"Role of {target_user_id} on list {list_id} changed "
            f"{target.role.value} -> {role.value} by {actor_id}"
        )
        self.events.append(
            list_id,
            EventType.MEMBER_ROLE_CHANGED,
            {
                "target_user_id": target_user_id,
                "role": role.value,
                "previous_role": target.role.value,
                "actor_id": actor_id,
            },
            actor_id=actor_id,
        )
        return updated

    def get_members(self, actor_id: str, list_id: str) -> list[MemberResponse]:
        require(actor_id, list_id, Action.MEMBERS_VIEW, store=self.store)

        memberships = self.store.memberships.get_memberships_by_list_id(list_id)
        users = {
            u.id: u
            for u in self.store.users.get_users_by_user_ids(
                [m.user_id for m in memberships]
            )
        }

        members = []
        for membership in memberships:
            user = users.get(membership.user_id)
            members.append(
                MemberResponse(
                    user_id=membership.user_id,
                    role=membership.role,
                    display_name=user.name if user else None,
                    email=user.email if user else None,
                    avatar=user.avatar if user else None,
                    created_at=membership.created_at,
                )
            )
        return members

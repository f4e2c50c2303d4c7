import logging
from typing import Optional

from shared_lists.constants import ERROR_MESSAGES
from shared_lists.env import SRC_LOG_LEVELS
from shared_lists.internal.store import Store, get_store
from shared_lists.models.events import EventType
from shared_lists.models.lists import (
    ListForm,
    ListModel,
    ListStats,
    ListUpdateForm,
    MemberStats,
)
from shared_lists.models.tasks import TaskStatus
from shared_lists.services.errors import InvalidInputError, NotFoundError
from shared_lists.services.events.service import EventLog
from shared_lists.services.permissions import Action, require

log = logging.getLogger(__name__)
log.setLevel(SRC_LOG_LEVELS["SERVICES"])


class ListService:
    def __init__(self, store: Optional[Store] = None):
        self.store = store or get_store()
        self.events = EventLog(self.store)

    def _get_list_or_404(self, list_id: str) -> ListModel:
        shared_list = self.store.lists.get_list_by_id(list_id)
        if not shared_list:
            raise NotFoundError(ERROR_MESSAGES.LIST_NOT_FOUND)
        return shared_list

    def create_list(self, actor_id: str, form_data: ListForm) -> ListModel:
        """Create a list; the creator becomes its first owner."""
        name = (form_data.name or "").strip()
        if not name:
            raise InvalidInputError(ERROR_MESSAGES.INVALID_LIST_NAME)

        shared_list = self.store.lists.insert_new_list(
            actor_id, ListForm(name=name, color=form_data.color)
        )
        if not shared_list:
            raise InvalidInputError(ERROR_MESSAGES.DEFAULT("Error creating list"))

        log.info(f"List {shared_list.id} created by {actor_id}")
        self.events.append(
            shared_list.id,
            EventType.LIST_CREATED,
            {"name": shared_list.name, "color": shared_list.color},
            actor_id=actor_id,
        )
        return shared_list

    def get_list(self, actor_id: str, list_id: str) -> ListModel:
        shared_list = self._get_list_or_404(list_id)
        require(actor_id, list_id, Action.LIST_VIEW, store=self.store)
        return shared_list

    def get_lists_for_user(self, user_id: str) -> list[ListModel]:
        list_ids = [
            m.list_id for m in self.store.memberships.get_memberships_by_user_id(user_id)
        ]
        return self.store.lists.get_lists_by_ids(list_ids)

    def update_list(
        self, actor_id: str, list_id: str, form_data: ListUpdateForm
    ) -> ListModel:
        with self.store.list_lock(list_id):
            self._get_list_or_404(list_id)
            require(actor_id, list_id, Action.LIST_UPDATE, store=self.store)

            updated = form_data.model_dump(exclude_unset=True)
            if "name" in updated:
                updated["name"] = (updated["name"] or "").strip()
                if not updated["name"]:
                    raise InvalidInputError(ERROR_MESSAGES.INVALID_LIST_NAME)

            shared_list = self.store.lists.update_list_by_id(list_id, updated)
            if not shared_list:
                raise NotFoundError(ERROR_MESSAGES.LIST_NOT_FOUND)

        if updated:
            self.events.append(
                list_id, EventType.LIST_UPDATED, updated, actor_id=actor_id
            )
        return shared_list

    def delete_list(self, actor_id: str, list_id: str) -> dict[str, int]:
        """
        Delete a list with all of its tasks, memberships and invites.

        The list's events are kept; a final list.deleted event closes the history.
        """
        with self.store.list_lock(list_id):
            shared_list = self._get_list_or_404(list_id)
            require(actor_id, list_id, Action.LIST_DELETE, store=self.store)

            report = self.store.lists.delete_list_by_id(list_id)
            if report is None:
                raise NotFoundError(ERROR_MESSAGES.LIST_NOT_FOUND)

        self.store.release_list_lock(list_id)
        log.info(f"List {list_id} deleted by {actor_id}: {report}")
        self.events.append(
            list_id,
            EventType.LIST_DELETED,
            {"name": shared_list.name, "deleted": report},
            actor_id=actor_id,
        )
        return report

    def get_list_stats(self, actor_id: str, list_id: str) -> ListStats:
        """Completion totals for the list and per member (by assignee)."""
        require(actor_id, list_id, Action.LIST_VIEW, store=self.store)

        tasks = self.store.tasks.get_tasks_by_list_id(list_id)
        memberships = self.store.memberships.get_memberships_by_list_id(list_id)
        users = {
            u.id: u
            for u in self.store.users.get_users_by_user_ids(
                [m.user_id for m in memberships]
            )
        }

        total = len(tasks)
        done = len([t for t in tasks if t.status == TaskStatus.DONE])

        members = []
        for membership in memberships:
            assigned = [t for t in tasks if t.assignee_id == membership.user_id]
            user = users.get(membership.user_id)
            members.append(
                MemberStats(
                    user_id=membership.user_id,
                    name=user.name if user else membership.user_id,
                    total=len(assigned),
                    done=len([t for t in assigned if t.status == TaskStatus.DONE]),
                )
            )

        return ListStats(
            total=total,
            done=done,
            percent=round(done / total * 100) if total else 0,
            members=members,
        )

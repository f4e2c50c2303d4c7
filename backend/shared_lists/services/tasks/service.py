import logging
from typing import Optional

from shared_lists.constants import ERROR_MESSAGES
from shared_lists.env import SRC_LOG_LEVELS
from shared_lists.internal.store import Store, get_store
from shared_lists.models.events import EventType
from shared_lists.models.tasks import TaskForm, TaskModel, TaskStatus, TaskUpdateForm
from shared_lists.services.errors import (
    InvalidInputError,
    InvalidTitleError,
    NotFoundError,
)
from shared_lists.services.events.service import EventLog
from shared_lists.services.permissions import Action, require
from shared_lists.services.tasks.due_dates import UNSET, resolve_due_at
from shared_lists.utils.misc import now_ms

log = logging.getLogger(__name__)
log.setLevel(SRC_LOG_LEVELS["SERVICES"])


def _changed_fields(patch: dict) -> list[str]:
    return sorted(key for key in patch if key != "completed_at")


def _clean_title(title: Optional[str]) -> str:
    title = (title or "").strip()
    if not title:
        raise InvalidTitleError()
    return title


class TaskService:
    def __init__(self, store: Optional[Store] = None):
        self.store = store or get_store()
        self.events = EventLog(self.store)

    def _check_assignee(self, list_id: str, assignee_id: Optional[str]) -> None:
        if assignee_id and not self.store.memberships.get_membership(
            list_id, assignee_id
        ):
            raise InvalidInputError(ERROR_MESSAGES.INVALID_ASSIGNEE)

    def _get_task_or_404(self, task_id: str) -> TaskModel:
        task = self.store.tasks.get_task_by_id(task_id)
        if not task:
            raise NotFoundError(ERROR_MESSAGES.TASK_NOT_FOUND)
        return task

    ####################
    # Reads
    ####################

    def get_task(self, actor_id: str, task_id: str) -> TaskModel:
        task = self._get_task_or_404(task_id)
        require(actor_id, task.list_id, Action.TASK_VIEW, store=self.store)
        return task

    def get_tasks_by_list(self, actor_id: str, list_id: str) -> list[TaskModel]:
        require(actor_id, list_id, Action.TASK_VIEW, store=self.store)
        return self.store.tasks.get_tasks_by_list_id(list_id)

    def get_tasks_for_user(self, user_id: str) -> list[TaskModel]:
        """All tasks across every list the user belongs to."""
        list_ids = [
            m.list_id for m in self.store.memberships.get_memberships_by_user_id(user_id)
        ]
        return self.store.tasks.get_tasks_by_list_ids(list_ids)

    ####################
    # Mutations
    ####################

    def create_task(self, actor_id: str, list_id: str, form_data: TaskForm) -> TaskModel:
        with self.store.list_lock(list_id):
            require(actor_id, list_id, Action.TASK_CREATE, store=self.store)

            title = _clean_title(form_data.title)
            due_at = resolve_due_at(
                form_data.due_at if "due_at" in form_data.model_fields_set else UNSET
            )
            self._check_assignee(list_id, form_data.assignee_id)

            task = self.store.tasks.insert_new_task(
                list_id,
                actor_id,
                {
                    "title": title,
                    "notes": form_data.notes,
                    "due_at": due_at if due_at is not UNSET else None,
                    "estimate_minutes": form_data.estimate_minutes,
                    "priority": form_data.priority,
                    "assignee_id": form_data.assignee_id,
                },
            )
            if not task:
                raise InvalidInputError(ERROR_MESSAGES.DEFAULT("Error creating task"))

        log.info(f"Task {task.id} created in list {list_id} by {actor_id}")
        self.events.append(
            list_id,
            EventType.TASK_CREATED,
            {"task_id": task.id, "title": task.title, "assignee_id": task.assignee_id},
            actor_id=actor_id,
        )
        return task

    def update_task(
        self, actor_id: str, task_id: str, form_data: TaskUpdateForm
    ) -> TaskModel:
        """
        Apply a partial update.

        Editing needs owner/admin or being the task's creator or assignee.
        Changing the status additionally needs owner/admin or being the assignee.
        Exactly one event is recorded per call: a status change wins over a
        reassignment, which wins over any other field change.
        """
        task = self._get_task_or_404(task_id)

        with self.store.list_lock(task.list_id):
            task = self._get_task_or_404(task_id)

            patch = {
                key: getattr(form_data, key) for key in form_data.model_fields_set
            }
            if "status" in patch and patch["status"] is None:
                del patch["status"]

            require(actor_id, task.list_id, Action.TASK_EDIT, task=task, store=self.store)

            status_changed = "status" in patch and patch["status"] != task.status
            if status_changed:
                require(
                    actor_id, task.list_id, Action.TASK_STATUS, task=task, store=self.store
                )

            if not patch:
                return task

            if "title" in patch:
                patch["title"] = _clean_title(patch["title"])
            if "due_at" in patch:
                patch["due_at"] = resolve_due_at(patch["due_at"])
            if "assignee_id" in patch:
                self._check_assignee(task.list_id, patch["assignee_id"])

            if "status" in patch:
                new_status = TaskStatus(patch["status"])
                patch["status"] = new_status.value
                if new_status == TaskStatus.DONE:
                    if task.status != TaskStatus.DONE or task.completed_at is None:
                        patch["completed_at"] = now_ms()
                else:
                    patch["completed_at"] = None

            updated = self.store.tasks.update_task_by_id(task_id, patch)
            if not updated:
                raise NotFoundError(ERROR_MESSAGES.TASK_NOT_FOUND)

        log.info(f"Task {task_id} updated by {actor_id}: {sorted(patch)}")
        self.events.append(
            task.list_id, *self._describe_update(task, updated, patch), actor_id=actor_id
        )
        return updated

    @staticmethod
    def _describe_update(
        before: TaskModel, after: TaskModel, patch: dict
    ) -> tuple[EventType, dict]:
        if "status" in patch and after.status != before.status:
            data = {
                "task_id": after.id,
                "title": after.title,
                "status": after.status.value,
                "previous_status": before.status.value,
            }
            if after.status == TaskStatus.DONE:
                return EventType.TASK_COMPLETED, data
            if before.status == TaskStatus.DONE:
                return EventType.TASK_REOPENED, data
            return EventType.TASK_UPDATED, {**data, "fields": _changed_fields(patch)}

        if "assignee_id" in patch and after.assignee_id != before.assignee_id:
            return EventType.TASK_REASSIGNED, {
                "task_id": after.id,
                "title": after.title,
                "assignee_id": after.assignee_id,
                "previous_assignee_id": before.assignee_id,
            }

        return EventType.TASK_UPDATED, {
            "task_id": after.id,
            "title": after.title,
            "fields": _changed_fields(patch),
        }

    def delete_task(self, actor_id: str, task_id: str) -> None:
        task = self._get_task_or_404(task_id)

        with self.store.list_lock(task.list_id):
            task = self._get_task_or_404(task_id)
            require(actor_id, task.list_id, Action.TASK_DELETE, task=task, store=self.store)
            self.store.tasks.delete_task_by_id(task_id)

        log.info(f"Task {task_id} deleted from list {task.list_id} by {actor_id}")
        self.events.append(
            task.list_id,
            EventType.TASK_DELETED,
            {"task_id": task.id, "title": task.title},
            actor_id=actor_id,
        )

"""
List and Task Authorization

Decides whether a user may perform an action on a list or one of its tasks.
Decisions are made from the caller's membership role plus, for task actions,
whether the caller created or is assigned to the task. Nothing is written.
"""

import logging
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from shared_lists.constants import ERROR_MESSAGES
from shared_lists.env import SRC_LOG_LEVELS
from shared_lists.internal.store import Store, get_store
from shared_lists.models.memberships import MembershipRole
from shared_lists.models.tasks import TaskModel
from shared_lists.services.errors import ForbiddenError

log = logging.getLogger(__name__)
log.setLevel(SRC_LOG_LEVELS["SERVICES"])


class Action(str, Enum):
    LIST_VIEW = "list.view"
    LIST_UPDATE = "list.update"
    LIST_DELETE = "list.delete"
    MEMBERS_VIEW = "members.view"
    MEMBERS_MANAGE = "members.manage"
    INVITE_CREATE = "invite.create"
    INVITE_REVOKE = "invite.revoke"
    EVENTS_VIEW = "events.view"
    TASK_VIEW = "task.view"
    TASK_CREATE = "task.create"
    TASK_EDIT = "task.edit"
    TASK_STATUS = "task.status"
    TASK_DELETE = "task.delete"


ROLE_RANK = {
    MembershipRole.MEMBER: 0,
    MembershipRole.ADMIN: 1,
    MembershipRole.OWNER: 2,
}

# Minimum role for actions decided by role alone
LIST_ACTION_ROLES = {
    Action.LIST_VIEW: MembershipRole.MEMBER,
    Action.EVENTS_VIEW: MembershipRole.MEMBER,
    Action.TASK_VIEW: MembershipRole.MEMBER,
    Action.LIST_UPDATE: MembershipRole.ADMIN,
    Action.MEMBERS_VIEW: MembershipRole.ADMIN,
    Action.INVITE_CREATE: MembershipRole.ADMIN,
    Action.INVITE_REVOKE: MembershipRole.ADMIN,
    Action.TASK_CREATE: MembershipRole.ADMIN,
    Action.LIST_DELETE: MembershipRole.OWNER,
    Action.MEMBERS_MANAGE: MembershipRole.OWNER,
}

# Actions on an existing task; owners and admins always pass
TASK_ACTIONS = {Action.TASK_EDIT, Action.TASK_STATUS, Action.TASK_DELETE}


class AccessDenialReason(BaseModel):
    """Details about why access was denied."""

    reason: str  # "forbidden", "insufficient_role", "not_participant", "not_assignee", "not_found"
    message: str


class AuthorizationResult(BaseModel):
    allowed: bool
    role: Optional[MembershipRole] = None
    denial: Optional[AccessDenialReason] = None


def has_role(role: MembershipRole, required: MembershipRole) -> bool:
    return ROLE_RANK[role] >= ROLE_RANK[required]


def _denied(
    reason: str, message: str, role: Optional[MembershipRole] = None
) -> AuthorizationResult:
    return AuthorizationResult(
        allowed=False,
        role=role,
        denial=AccessDenialReason(reason=reason, message=str(message)),
    )


def _authorize_task_action(
    user_id: str, role: MembershipRole, action: Action, task: TaskModel
) -> AuthorizationResult:
    if has_role(role, MembershipRole.ADMIN):
        return AuthorizationResult(allowed=True, role=role)

    if action == Action.TASK_STATUS:
        # Creators who are not the assignee may not complete someone else's work
        if task.assignee_id is not None and task.assignee_id == user_id:
            return AuthorizationResult(allowed=True, role=role)
        return _denied(
            "not_assignee", ERROR_MESSAGES.STATUS_CHANGE_PROHIBITED, role
        )

    if action == Action.TASK_EDIT:
        if user_id == task.created_by or (
            task.assignee_id is not None and task.assignee_id == user_id
        ):
            return AuthorizationResult(allowed=True, role=role)
        return _denied("not_participant", ERROR_MESSAGES.INSUFFICIENT_RIGHTS, role)

    if action == Action.TASK_DELETE:
        if user_id == task.created_by:
            return AuthorizationResult(allowed=True, role=role)
        return _denied("not_participant", ERROR_MESSAGES.INSUFFICIENT_RIGHTS, role)

    return _denied("forbidden", ERROR_MESSAGES.ACCESS_PROHIBITED, role)


def authorize(
    user_id: str,
    list_id: str,
    action: Action,
    task: Optional[TaskModel] = None,
    store: Optional[Store] = None,
) -> AuthorizationResult:
    """
    Check whether a user may perform an action on a list.

    Args:
        user_id: The verified caller
        list_id: The list the action is scoped to
        action: What the caller wants to do
        task: The current task row, required for task.edit/status/delete
        store: Tables to read from (defaults to the process-wide store)

    Returns:
        AuthorizationResult with the caller's role and, when denied, the reason
    """
    store = store or get_store()
    action = Action(action)

    membership = store.memberships.get_membership(list_id, user_id)
    if not membership:
        log.debug(f"Denied {action.value} on list {list_id} for {user_id}: no membership")
        return _denied("forbidden", ERROR_MESSAGES.NOT_A_MEMBER)

    role = membership.role

    if action in TASK_ACTIONS:
        if task is None or task.list_id != list_id:
            return _denied("not_found", ERROR_MESSAGES.TASK_NOT_FOUND, role)
        result = _authorize_task_action(user_id, role, action, task)
    else:
        required = LIST_ACTION_ROLES[action]
        if has_role(role, required):
            result = AuthorizationResult(allowed=True, role=role)
        else:
            message = (
                ERROR_MESSAGES.OWNER_ONLY
                if required == MembershipRole.OWNER
                else ERROR_MESSAGES.ADMIN_ONLY
            )
            result = _denied("insufficient_role", message, role)

    if not result.allowed:
        log.debug(
            f"Denied {action.value} on list {list_id} for {user_id} "
            f"(role={role.value}, reason={result.denial.reason})"
        )
    return result


def require(
    user_id: str,
    list_id: str,
    action: Action,
    task: Optional[TaskModel] = None,
    store: Optional[Store] = None,
) -> MembershipRole:
    """Like authorize(), but raises ForbiddenError on denial and returns the caller's role."""
    result = authorize(user_id, list_id, action, task=task, store=store)
    if not result.allowed:
        raise ForbiddenError(result.denial.message, reason=result.denial.reason)
    return result.role

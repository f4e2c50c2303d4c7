from enum import Enum


class ERROR_MESSAGES(str, Enum):
    def __str__(self) -> str:
        return super().__str__()

    DEFAULT = (
        lambda err="": f'{"Something went wrong :/" if err == "" else "[ERROR: " + str(err) + "]"}'
    )

    NOT_FOUND = "We could not find what you're looking for :/"
    LIST_NOT_FOUND = "List not found."
    TASK_NOT_FOUND = "Task not found."
    MEMBER_NOT_FOUND = "Member not found."
    INVITE_NOT_FOUND = "Invite not found."
    USER_NOT_FOUND = "User not found."

    ACCESS_PROHIBITED = "You do not have permission to access this resource."
    NOT_A_MEMBER = "You are not a member of this list."
    OWNER_ONLY = "Only a list owner can perform this action."
    ADMIN_ONLY = "Only a list owner or admin can perform this action."
    INSUFFICIENT_RIGHTS = "You do not have the rights to change this task."
    STATUS_CHANGE_PROHIBITED = (
        "Only the assignee or a list owner/admin can change the status of this task."
    )

    INVALID_TITLE = "A task title is required."
    INVALID_LIST_NAME = "A list name is required."
    INVALID_ROLE = "Role must be one of: owner, admin, member."
    INVALID_DUE_AT = "The due date could not be understood."
    INVALID_ASSIGNEE = "The assignee must be a member of this list."
    INVALID_EMAIL = "A valid email address is required."
    EMAIL_TAKEN = "This email is already in use."

    CANNOT_REMOVE_LAST_OWNER = "Cannot remove the last owner of a list."
    CANNOT_LEAVE_WITHOUT_OWNER = "Cannot leave the list without an owner."

    INVALID_INVITE = "This invite link is invalid or has already been used."

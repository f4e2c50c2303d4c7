from typing import Optional

from shared_lists.constants import ERROR_MESSAGES


class SharedListsError(Exception):
    """
    Base class for errors reported back to the caller.

    `status_code` is the HTTP status the transport layer should answer with and
    `detail` the user-facing message.
    """

    status_code: int = 400
    default_detail: str = ERROR_MESSAGES.DEFAULT()

    def __init__(self, detail: Optional[str] = None):
        self.detail = str(detail if detail is not None else self.default_detail)
        super().__init__(self.detail)


class ForbiddenError(SharedListsError):
    status_code = 403
    default_detail = ERROR_MESSAGES.ACCESS_PROHIBITED

    def __init__(self, detail: Optional[str] = None, reason: str = "forbidden"):
        super().__init__(detail)
        self.reason = reason


class NotFoundError(SharedListsError):
    status_code = 404
    default_detail = ERROR_MESSAGES.NOT_FOUND


class InvalidInputError(SharedListsError):
    status_code = 400


class InvalidTitleError(InvalidInputError):
    default_detail = ERROR_MESSAGES.INVALID_TITLE


class InvalidRoleError(InvalidInputError):
    default_detail = ERROR_MESSAGES.INVALID_ROLE


class InvalidDueAtError(InvalidInputError):
    default_detail = ERROR_MESSAGES.INVALID_DUE_AT


class InvariantViolationError(SharedListsError):
    status_code = 400


class CannotRemoveLastOwnerError(InvariantViolationError):
    default_detail = ERROR_MESSAGES.CANNOT_REMOVE_LAST_OWNER


class CannotLeaveWithoutOwnerError(InvariantViolationError):
    default_detail = ERROR_MESSAGES.CANNOT_LEAVE_WITHOUT_OWNER


class InvalidInviteError(SharedListsError):
    status_code = 400
    default_detail = ERROR_MESSAGES.INVALID_INVITE

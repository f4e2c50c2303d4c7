from shared_lists.services.permissions.authorization import (
    AccessDenialReason,
    Action,
    AuthorizationResult,
    authorize,
    has_role,
    require,
)

__all__ = [
    "AccessDenialReason",
    "Action",
    "AuthorizationResult",
    "authorize",
    "has_role",
    "require",
]

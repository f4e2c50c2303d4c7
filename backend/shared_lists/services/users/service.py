import logging
from typing import Optional

from shared_lists.constants import ERROR_MESSAGES
from shared_lists.env import SRC_LOG_LEVELS
from shared_lists.internal.store import Store, get_store
from shared_lists.models.users import UserModel, UserProfileForm
from shared_lists.services.errors import InvalidInputError, NotFoundError
from shared_lists.utils.misc import validate_email_format

log = logging.getLogger(__name__)
log.setLevel(SRC_LOG_LEVELS["SERVICES"])


def _normalize_email(email: Optional[str]) -> str:
    email = (email or "").strip().lower()
    if not validate_email_format(email):
        raise InvalidInputError(ERROR_MESSAGES.INVALID_EMAIL)
    return email


class UserService:
    """
    Profile records for verified identities.

    Credentials and token verification live in the session layer; this only
    keeps the user rows the rest of the core refers to.
    """

    def __init__(self, store: Optional[Store] = None):
        self.store = store or get_store()

    def get_user(self, user_id: str) -> UserModel:
        user = self.store.users.get_user_by_id(user_id)
        if not user:
            raise NotFoundError(ERROR_MESSAGES.USER_NOT_FOUND)
        return user

    def register_user(self, email: str, name: Optional[str] = None) -> UserModel:
        email = _normalize_email(email)
        if self.store.users.get_user_by_email(email):
            raise InvalidInputError(ERROR_MESSAGES.EMAIL_TAKEN)

        name = (name or "").strip() or email.split("@")[0]
        user = self.store.users.insert_new_user(email=email, name=name)
        if not user:
            raise InvalidInputError(ERROR_MESSAGES.EMAIL_TAKEN)

        log.info(f"Registered user {user.id}")
        return user

    def link_external_identity(
        self, external_auth_id: str, email: Optional[str] = None, name: Optional[str] = None
    ) -> UserModel:
        """
        Resolve a verified external identity to a user row.

        Looks up by external id first, then by email, and creates the user when
        neither matches. Existing values are never overwritten, only filled in.
        """
        email = (email or "").strip().lower()
        name = (name or "").strip() or (email.split("@")[0] if email else "") or "User"

        user = self.store.users.get_user_by_external_auth_id(external_auth_id)
        if not user and email:
            user = self.store.users.get_user_by_email(email)

        if not user:
            user = self.store.users.insert_new_user(
                email=_normalize_email(email),
                name=name,
                external_auth_id=external_auth_id,
            )
            if not user:
                raise InvalidInputError(ERROR_MESSAGES.EMAIL_TAKEN)
            log.info(f"Created user {user.id} from external identity")
            return user

        updated = {}
        if not user.name:
            updated["name"] = name
        if not user.external_auth_id:
            updated["external_auth_id"] = external_auth_id
        if updated:
            user = self.store.users.update_user_by_id(user.id, updated)
        return user

    def update_profile(self, user_id: str, form_data: UserProfileForm) -> UserModel:
        self.get_user(user_id)

        updated = form_data.model_dump(exclude_unset=True)
        if "name" in updated:
            updated["name"] = (updated["name"] or "").strip()
            if not updated["name"]:
                del updated["name"]

        user = self.store.users.update_user_by_id(user_id, updated)
        if not user:
            raise NotFoundError(ERROR_MESSAGES.USER_NOT_FOUND)
        return user

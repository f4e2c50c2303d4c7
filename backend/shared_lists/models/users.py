import logging
import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict
from sqlalchemy import BigInteger, Column, String, func

from shared_lists.env import SRC_LOG_LEVELS
from shared_lists.internal.db import Base, get_db
from shared_lists.utils.misc import now_ms

log = logging.getLogger(__name__)
log.setLevel(SRC_LOG_LEVELS["MODELS"])

####################
# User DB Schema
####################


class User(Base):
    __tablename__ = "user"

    id = Column(String, primary_key=True)
    email = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=False)
    avatar = Column(String, nullable=True)
    external_auth_id = Column(String, nullable=True, unique=True)

    created_at = Column(BigInteger, nullable=False)
    updated_at = Column(BigInteger, nullable=False)


class UserModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str
    avatar: Optional[str] = None
    external_auth_id: Optional[str] = None

    created_at: int  # timestamp in epoch milliseconds
    updated_at: int  # timestamp in epoch milliseconds


####################
# Forms
####################


class UserProfileForm(BaseModel):
    name: Optional[str] = None
    avatar: Optional[str] = None


class UsersTable:
    def insert_new_user(
        self,
        email: str,
        name: str,
        id: Optional[str] = None,
        external_auth_id: Optional[str] = None,
        avatar: Optional[str] = None,
    ) -> Optional[UserModel]:
        with get_db() as db:
            now = now_ms()
            user = User(
                id=id or str(uuid.uuid4()),
                email=email.strip().lower(),
                name=name,
                avatar=avatar,
                external_auth_id=external_auth_id,
                created_at=now,
                updated_at=now,
            )
            try:
                db.add(user)
                db.commit()
                db.refresh(user)
                return UserModel.model_validate(user)
            except Exception as e:
                log.exception(f"Error inserting user {email}: {e}")
                db.rollback()
                return None

    def get_user_by_id(self, id: str) -> Optional[UserModel]:
        with get_db() as db:
            user = db.query(User).filter_by(id=id).first()
            return UserModel.model_validate(user) if user else None

    def get_user_by_email(self, email: str) -> Optional[UserModel]:
        with get_db() as db:
            user = (
                db.query(User)
                .filter(func.lower(User.email) == email.strip().lower())
                .first()
            )
            return UserModel.model_validate(user) if user else None

    def get_user_by_external_auth_id(
        self, external_auth_id: str
    ) -> Optional[UserModel]:
        with get_db() as db:
            user = db.query(User).filter_by(external_auth_id=external_auth_id).first()
            return UserModel.model_validate(user) if user else None

    def get_users_by_user_ids(self, user_ids: list[str]) -> list[UserModel]:
        if not user_ids:
            return []
        with get_db() as db:
            users = db.query(User).filter(User.id.in_(set(user_ids))).all()
            return [UserModel.model_validate(user) for user in users]

    def update_user_by_id(self, id: str, updated: dict) -> Optional[UserModel]:
        with get_db() as db:
            user = db.query(User).filter_by(id=id).first()
            if not user:
                return None

            for key, value in updated.items():
                setattr(user, key, value)
            user.updated_at = now_ms()

            db.commit()
            db.refresh(user)
            return UserModel.model_validate(user)

    def delete_user_by_id(self, id: str) -> bool:
        with get_db() as db:
            deleted = db.query(User).filter_by(id=id).delete()
            db.commit()
            return deleted > 0


Users = UsersTable()

import logging
import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict
from sqlalchemy import BigInteger, Column, String, UniqueConstraint

from shared_lists.env import SRC_LOG_LEVELS
from shared_lists.internal.db import Base, get_db
from shared_lists.utils.misc import now_ms

log = logging.getLogger(__name__)
log.setLevel(SRC_LOG_LEVELS["MODELS"])


class MembershipRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"

    @classmethod
    def parse(cls, raw) -> Optional["MembershipRole"]:
        try:
            return cls(raw)
        except ValueError:
            return None


####################
# Membership DB Schema
####################


class Membership(Base):
    __tablename__ = "membership"

    id = Column(String, primary_key=True)
    list_id = Column(String, nullable=False, index=True)
    user_id = Column(String, nullable=False, index=True)
    role = Column(String, nullable=False, default=MembershipRole.MEMBER.value)
    created_at = Column(BigInteger, nullable=False)

    __table_args__ = (
        UniqueConstraint("list_id", "user_id", name="uq_membership_list_user"),
    )


class MembershipModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    list_id: str
    user_id: str
    role: MembershipRole
    created_at: int


class MemberResponse(BaseModel):
    """Membership enriched with the member's profile, resolved at read time."""

    user_id: str
    role: MembershipRole
    display_name: Optional[str] = None
    email: Optional[str] = None
    avatar: Optional[str] = None
    created_at: int


class MembershipsTable:
    def insert_new_membership(
        self, list_id: str, user_id: str, role: MembershipRole = MembershipRole.MEMBER
    ) -> Optional[MembershipModel]:
        with get_db() as db:
            membership = Membership(
                id=str(uuid.uuid4()),
                list_id=list_id,
                user_id=user_id,
                role=MembershipRole(role).value,
                created_at=now_ms(),
            )
            try:
                db.add(membership)
                db.commit()
                db.refresh(membership)
                return MembershipModel.model_validate(membership)
            except Exception as e:
                log.exception(
                    f"Error adding user {user_id} to list {list_id}: {e}"
                )
                db.rollback()
                return None

    def get_membership(self, list_id: str, user_id: str) -> Optional[MembershipModel]:
        with get_db() as db:
            membership = (
                db.query(Membership).filter_by(list_id=list_id, user_id=user_id).first()
            )
            return MembershipModel.model_validate(membership) if membership else None

    def get_memberships_by_list_id(self, list_id: str) -> list[MembershipModel]:
        with get_db() as db:
            memberships = (
                db.query(Membership)
                .filter_by(list_id=list_id)
                .order_by(Membership.created_at.asc())
                .all()
            )
            return [MembershipModel.model_validate(m) for m in memberships]

    def get_memberships_by_user_id(self, user_id: str) -> list[MembershipModel]:
        with get_db() as db:
            memberships = db.query(Membership).filter_by(user_id=user_id).all()
            return [MembershipModel.model_validate(m) for m in memberships]

    def count_owners(self, list_id: str) -> int:
        with get_db() as db:
            return (
                db.query(Membership)
                .filter_by(list_id=list_id, role=MembershipRole.OWNER.value)
                .count()
            )

    def update_role(
        self, list_id: str, user_id: str, role: MembershipRole
    ) -> Optional[MembershipModel]:
        with get_db() as db:
            membership = (
                db.query(Membership).filter_by(list_id=list_id, user_id=user_id).first()
            )
            if not membership:
                return None

            membership.role = MembershipRole(role).value
            db.commit()
            db.refresh(membership)
            return MembershipModel.model_validate(membership)


Memberships = MembershipsTable()

import logging
import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict
from sqlalchemy import BigInteger, Column, String

from shared_lists.env import SRC_LOG_LEVELS
from shared_lists.internal.db import Base, get_db
from shared_lists.models.invites import Invite
from shared_lists.models.memberships import Membership, MembershipRole
from shared_lists.models.tasks import Task
from shared_lists.utils.misc import now_ms

log = logging.getLogger(__name__)
log.setLevel(SRC_LOG_LEVELS["MODELS"])

####################
# List DB Schema
####################


class SharedList(Base):
    __tablename__ = "list"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    color = Column(String, nullable=True)
    owner_id = Column(String, nullable=False)
    created_at = Column(BigInteger, nullable=False)


class ListModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    color: Optional[str] = None
    owner_id: str  # the creator; current owners live in the membership table
    created_at: int


####################
# Forms
####################


class ListForm(BaseModel):
    name: str
    color: Optional[str] = None


class ListUpdateForm(BaseModel):
    name: Optional[str] = None
    color: Optional[str] = None


class MemberStats(BaseModel):
    user_id: str
    name: str
    total: int = 0
    done: int = 0


class ListStats(BaseModel):
    total: int = 0
    done: int = 0
    percent: int = 0
    members: list[MemberStats] = []


class ListsTable:
    def insert_new_list(self, user_id: str, form_data: ListForm) -> Optional[ListModel]:
        """Create the list and its creator's owner membership in one transaction."""
        with get_db() as db:
            now = now_ms()
            shared_list = SharedList(
                id=str(uuid.uuid4()),
                name=form_data.name,
                color=form_data.color,
                owner_id=user_id,
                created_at=now,
            )
            owner = Membership(
                id=str(uuid.uuid4()),
                list_id=shared_list.id,
                user_id=user_id,
                role=MembershipRole.OWNER.value,
                created_at=now,
            )
            try:
                db.add_all([shared_list, owner])
                db.commit()
                db.refresh(shared_list)
                return ListModel.model_validate(shared_list)
            except Exception as e:
                log.exception(f"Error creating list for user {user_id}: {e}")
                db.rollback()
                return None

    def get_list_by_id(self, id: str) -> Optional[ListModel]:
        with get_db() as db:
            shared_list = db.query(SharedList).filter_by(id=id).first()
            return ListModel.model_validate(shared_list) if shared_list else None

    def get_lists_by_ids(self, ids: list[str]) -> list[ListModel]:
        if not ids:
            return []
        with get_db() as db:
            lists = (
                db.query(SharedList)
                .filter(SharedList.id.in_(set(ids)))
                .order_by(SharedList.created_at.asc())
                .all()
            )
            return [ListModel.model_validate(shared_list) for shared_list in lists]

    def update_list_by_id(self, id: str, updated: dict) -> Optional[ListModel]:
        with get_db() as db:
            shared_list = db.query(SharedList).filter_by(id=id).first()
            if not shared_list:
                return None

            for key, value in updated.items():
                setattr(shared_list, key, value)

            db.commit()
            db.refresh(shared_list)
            return ListModel.model_validate(shared_list)

    def delete_list_by_id(self, id: str) -> Optional[dict[str, int]]:
        """
        Delete a list together with its tasks, memberships and invites.

        Everything is removed in a single transaction; events are kept as history.
        Returns the number of deleted rows per table, or None if the list is unknown.
        """
        with get_db() as db:
            shared_list = db.query(SharedList).filter_by(id=id).first()
            if not shared_list:
                return None

            try:
                report = {
                    "task": db.query(Task).filter_by(list_id=id).delete(),
                    "membership": db.query(Membership).filter_by(list_id=id).delete(),
                    "invite": db.query(Invite).filter_by(list_id=id).delete(),
                }
                db.delete(shared_list)
                report["list"] = 1
                db.commit()
                return report
            except Exception:
                db.rollback()
                raise


Lists = ListsTable()

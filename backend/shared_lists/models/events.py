import logging
import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict
from sqlalchemy import JSON, BigInteger, Column, Index, Integer, String

from shared_lists.env import SRC_LOG_LEVELS
from shared_lists.internal.db import Base, get_db
from shared_lists.utils.misc import now_ms

log = logging.getLogger(__name__)
log.setLevel(SRC_LOG_LEVELS["MODELS"])


class EventType(str, Enum):
    LIST_CREATED = "list.created"
    LIST_UPDATED = "list.updated"
    LIST_DELETED = "list.deleted"
    INVITE_CREATED = "invite.created"
    INVITE_ACCEPTED = "invite.accepted"
    MEMBER_ROLE_CHANGED = "member.role_changed"
    TASK_CREATED = "task.created"
    TASK_UPDATED = "task.updated"
    TASK_COMPLETED = "task.completed"
    TASK_REOPENED = "task.reopened"
    TASK_REASSIGNED = "task.reassigned"
    TASK_DELETED = "task.deleted"


####################
# Event DB Schema
####################


class Event(Base):
    __tablename__ = "event"

    # Insertion order, used to break ties between events with the same `at`
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, nullable=False, unique=True)

    list_id = Column(String, nullable=False)
    type = Column(String, nullable=False)
    at = Column(BigInteger, nullable=False)
    actor_id = Column(String, nullable=True)
    data = Column(JSON, nullable=False, default=dict)

    __table_args__ = (Index("event_list_id_at_idx", "list_id", "at"),)


class EventModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    list_id: str
    type: EventType
    at: int
    actor_id: Optional[str] = None
    data: dict = {}


class EventResponse(EventModel):
    actor_name: Optional[str] = None
    actor_email: Optional[str] = None


class EventPage(BaseModel):
    items: list[EventResponse] = []
    total: int = 0
    page: int = 1
    page_size: int = 10


class EventsTable:
    def insert_new_event(
        self,
        list_id: str,
        type: EventType,
        data: Optional[dict] = None,
        actor_id: Optional[str] = None,
    ) -> Optional[EventModel]:
        with get_db() as db:
            event = Event(
                id=str(uuid.uuid4()),
                list_id=list_id,
                type=EventType(type).value,
                at=now_ms(),
                actor_id=actor_id,
                data=data or {},
            )
            db.add(event)
            db.commit()
            db.refresh(event)
            return EventModel.model_validate(event)

    def get_events_by_list_id(
        self, list_id: str, skip: int = 0, limit: int = 10
    ) -> list[EventModel]:
        with get_db() as db:
            events = (
                db.query(Event)
                .filter_by(list_id=list_id)
                .order_by(Event.at.desc(), Event.seq.desc())
                .offset(skip)
                .limit(limit)
                .all()
            )
            return [EventModel.model_validate(event) for event in events]

    def count_events_by_list_id(self, list_id: str) -> int:
        with get_db() as db:
            return db.query(Event).filter_by(list_id=list_id).count()


Events = EventsTable()

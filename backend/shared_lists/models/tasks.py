import logging
import uuid
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import BigInteger, Column, Integer, String, Text

from shared_lists.env import SRC_LOG_LEVELS
from shared_lists.internal.db import Base, get_db
from shared_lists.utils.misc import now_ms

log = logging.getLogger(__name__)
log.setLevel(SRC_LOG_LEVELS["MODELS"])


class TaskStatus(str, Enum):
    TODO = "todo"
    DOING = "doing"
    DONE = "done"


####################
# Task DB Schema
####################


class Task(Base):
    __tablename__ = "task"

    id = Column(String, primary_key=True)
    list_id = Column(String, nullable=False, index=True)

    title = Column(Text, nullable=False)
    notes = Column(Text, nullable=True)
    due_at = Column(BigInteger, nullable=True)
    estimate_minutes = Column(Integer, nullable=True)
    priority = Column(Integer, nullable=True)  # 1-5

    status = Column(String, nullable=False, default=TaskStatus.TODO.value)
    created_at = Column(BigInteger, nullable=False)
    completed_at = Column(BigInteger, nullable=True)  # set iff status == done

    created_by = Column(String, nullable=False)
    assignee_id = Column(String, nullable=True, index=True)


class TaskModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    list_id: str

    title: str
    notes: Optional[str] = None
    due_at: Optional[int] = None
    estimate_minutes: Optional[int] = None
    priority: Optional[int] = None

    status: TaskStatus
    created_at: int
    completed_at: Optional[int] = None

    created_by: str
    assignee_id: Optional[str] = None


####################
# Forms
####################


class TaskForm(BaseModel):
    title: Optional[str] = None
    notes: Optional[str] = None
    # epoch ms, all-digit string, ISO string with offset, or local "YYYY-MM-DD HH:MM"
    due_at: Any = None
    estimate_minutes: Optional[int] = Field(default=None, ge=0)
    priority: Optional[int] = Field(default=None, ge=1, le=5)
    assignee_id: Optional[str] = None


class TaskUpdateForm(BaseModel):
    """Partial update; only fields explicitly set by the caller are applied."""

    title: Optional[str] = None
    notes: Optional[str] = None
    due_at: Any = None
    estimate_minutes: Optional[int] = Field(default=None, ge=0)
    priority: Optional[int] = Field(default=None, ge=1, le=5)
    status: Optional[TaskStatus] = None
    assignee_id: Optional[str] = None


class TasksTable:
    def insert_new_task(
        self, list_id: str, user_id: str, fields: dict
    ) -> Optional[TaskModel]:
        with get_db() as db:
            task = Task(
                id=str(uuid.uuid4()),
                list_id=list_id,
                status=TaskStatus.TODO.value,
                created_at=now_ms(),
                completed_at=None,
                created_by=user_id,
                **fields,
            )
            try:
                db.add(task)
                db.commit()
                db.refresh(task)
                return TaskModel.model_validate(task)
            except Exception as e:
                log.exception(f"Error creating task in list {list_id}: {e}")
                db.rollback()
                return None

    def get_task_by_id(self, id: str) -> Optional[TaskModel]:
        with get_db() as db:
            task = db.query(Task).filter_by(id=id).first()
            return TaskModel.model_validate(task) if task else None

    def get_tasks_by_list_id(self, list_id: str) -> list[TaskModel]:
        with get_db() as db:
            tasks = (
                db.query(Task)
                .filter_by(list_id=list_id)
                .order_by(Task.created_at.asc())
                .all()
            )
            return [TaskModel.model_validate(task) for task in tasks]

    def get_tasks_by_list_ids(self, list_ids: list[str]) -> list[TaskModel]:
        if not list_ids:
            return []
        with get_db() as db:
            tasks = (
                db.query(Task)
                .filter(Task.list_id.in_(set(list_ids)))
                .order_by(Task.created_at.asc())
                .all()
            )
            return [TaskModel.model_validate(task) for task in tasks]

    def update_task_by_id(self, id: str, updated: dict) -> Optional[TaskModel]:
        with get_db() as db:
            task = db.query(Task).filter_by(id=id).first()
            if not task:
                return None

            for key, value in updated.items():
                setattr(task, key, value)

            db.commit()
            db.refresh(task)
            return TaskModel.model_validate(task)

    def delete_task_by_id(self, id: str) -> bool:
        with get_db() as db:
            deleted = db.query(Task).filter_by(id=id).delete()
            db.commit()
            return deleted > 0


Tasks = TasksTable()

import secrets
import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict
from sqlalchemy import BigInteger, Column, String

from shared_lists.internal.db import Base, get_db
from shared_lists.utils.misc import now_ms


class InviteStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REVOKED = "revoked"


class Invite(Base):
    __tablename__ = "invite"

    id = Column(String, primary_key=True)
    list_id = Column(String, nullable=False, index=True)
    email = Column(String, nullable=True)
    invited_by = Column(String, nullable=False)
    token = Column(String, unique=True, nullable=False, index=True)
    status = Column(String, nullable=False, default=InviteStatus.PENDING.value)
    accepted_at = Column(BigInteger, nullable=True)
    accepted_by = Column(String, nullable=True)
    created_at = Column(BigInteger, nullable=False)


class InviteModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    list_id: str
    email: Optional[str] = None
    invited_by: str
    token: str
    status: InviteStatus
    accepted_at: Optional[int] = None
    accepted_by: Optional[str] = None
    created_at: int


class AcceptInviteResult(BaseModel):
    list_id: str
    joined: bool  # False when the caller was already a member


class InviteTable:
    def create_invite(
        self,
        list_id: str,
        invited_by: str,
        token_bytes: int,
        email: Optional[str] = None,
    ) -> Optional[InviteModel]:
        with get_db() as db:
            invite = Invite(
                id=str(uuid.uuid4()),
                list_id=list_id,
                email=email.strip().lower() if email else None,
                invited_by=invited_by,
                token=secrets.token_hex(token_bytes),
                status=InviteStatus.PENDING.value,
                created_at=now_ms(),
            )
            db.add(invite)
            db.commit()
            db.refresh(invite)
            return InviteModel.model_validate(invite)

    def get_invite_by_token(self, token: str) -> Optional[InviteModel]:
        with get_db() as db:
            invite = db.query(Invite).filter_by(token=token).first()
            return InviteModel.model_validate(invite) if invite else None

    def get_invite_by_id(self, id: str) -> Optional[InviteModel]:
        with get_db() as db:
            invite = db.query(Invite).filter_by(id=id).first()
            return InviteModel.model_validate(invite) if invite else None

    def get_pending_invite_by_list_id(self, list_id: str) -> Optional[InviteModel]:
        with get_db() as db:
            invite = (
                db.query(Invite)
                .filter_by(list_id=list_id, status=InviteStatus.PENDING.value)
                .order_by(Invite.created_at.desc())
                .first()
            )
            return InviteModel.model_validate(invite) if invite else None

    def get_invites_by_list_id(self, list_id: str) -> list[InviteModel]:
        with get_db() as db:
            invites = (
                db.query(Invite)
                .filter_by(list_id=list_id)
                .order_by(Invite.created_at.desc())
                .all()
            )
            return [InviteModel.model_validate(i) for i in invites]

    def accept_invite(self, token: str, user_id: str) -> Optional[InviteModel]:
        with get_db() as db:
            invite = db.query(Invite).filter_by(token=token).first()
            if invite:
                invite.status = InviteStatus.ACCEPTED.value
                invite.accepted_at = now_ms()
                invite.accepted_by = user_id
                db.commit()
                db.refresh(invite)
                return InviteModel.model_validate(invite)
            return None

    def revoke_invite(self, id: str) -> Optional[InviteModel]:
        with get_db() as db:
            invite = db.query(Invite).filter_by(id=id).first()
            if invite:
                invite.status = InviteStatus.REVOKED.value
                db.commit()
                db.refresh(invite)
                return InviteModel.model_validate(invite)
            return None


Invites = InviteTable()

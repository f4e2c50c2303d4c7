"""create shared list tables

Revision ID: 3f1c2a9d7b40
Revises:
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa

revision = "3f1c2a9d7b40"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "user",
        sa.Column("id", sa.String(), nullable=False, primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("avatar", sa.String(), nullable=True),
        sa.Column("external_auth_id", sa.String(), nullable=True, unique=True),
        sa.Column("created_at", sa.BigInteger(), nullable=False),
        sa.Column("updated_at", sa.BigInteger(), nullable=False),
    )
    op.create_index("ix_user_email", "user", ["email"], unique=True)

    op.create_table(
        "list",
        sa.Column("id", sa.String(), nullable=False, primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("color", sa.String(), nullable=True),
        sa.Column("owner_id", sa.String(), nullable=False),
        sa.Column("created_at", sa.BigInteger(), nullable=False),
    )

    op.create_table(
        "membership",
        sa.Column("id", sa.String(), nullable=False, primary_key=True),
        sa.Column("list_id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False),
        sa.Column("created_at", sa.BigInteger(), nullable=False),
        sa.UniqueConstraint("list_id", "user_id", name="uq_membership_list_user"),
    )
    op.create_index("ix_membership_list_id", "membership", ["list_id"])
    op.create_index("ix_membership_user_id", "membership", ["user_id"])

    op.create_table(
        "invite",
        sa.Column("id", sa.String(), nullable=False, primary_key=True),
        sa.Column("list_id", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("invited_by", sa.String(), nullable=False),
        sa.Column("token", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("accepted_at", sa.BigInteger(), nullable=True),
        sa.Column("accepted_by", sa.String(), nullable=True),
        sa.Column("created_at", sa.BigInteger(), nullable=False),
    )
    op.create_index("ix_invite_list_id", "invite", ["list_id"])
    op.create_index("ix_invite_token", "invite", ["token"], unique=True)

    op.create_table(
        "task",
        sa.Column("id", sa.String(), nullable=False, primary_key=True),
        sa.Column("list_id", sa.String(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("due_at", sa.BigInteger(), nullable=True),
        sa.Column("estimate_minutes", sa.Integer(), nullable=True),
        sa.Column("priority", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="todo"),
        sa.Column("created_at", sa.BigInteger(), nullable=False),
        sa.Column("completed_at", sa.BigInteger(), nullable=True),
        sa.Column("created_by", sa.String(), nullable=False),
        sa.Column("assignee_id", sa.String(), nullable=True),
    )
    op.create_index("ix_task_list_id", "task", ["list_id"])
    op.create_index("ix_task_assignee_id", "task", ["assignee_id"])

    op.create_table(
        "event",
        sa.Column("seq", sa.Integer(), nullable=False, primary_key=True, autoincrement=True),
        sa.Column("id", sa.String(), nullable=False, unique=True),
        sa.Column("list_id", sa.String(), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("at", sa.BigInteger(), nullable=False),
        sa.Column("actor_id", sa.String(), nullable=True),
        sa.Column("data", sa.JSON(), nullable=False),
    )
    op.create_index("event_list_id_at_idx", "event", ["list_id", "at"])


def downgrade():
    op.drop_index("event_list_id_at_idx", "event")
    op.drop_table("event")

    op.drop_index("ix_task_assignee_id", "task")
    op.drop_index("ix_task_list_id", "task")
    op.drop_table("task")

    op.drop_index("ix_invite_token", "invite")
    op.drop_index("ix_invite_list_id", "invite")
    op.drop_table("invite")

    op.drop_index("ix_membership_user_id", "membership")
    op.drop_index("ix_membership_list_id", "membership")
    op.drop_table("membership")

    op.drop_table("list")

    op.drop_index("ix_user_email", "user")
    op.drop_table("user")

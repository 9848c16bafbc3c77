"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates the users, events and attendance tables with their lookup indexes.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Enum members are stored by name, matching SQLAlchemy's Enum default.
user_role = sa.Enum("user", "admin", name="userrole")
visibility = sa.Enum("public", "private", name="visibility")
attendance_status = sa.Enum("going", "maybe", "declined", name="attendancestatus")


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(100), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", user_role, nullable=False, server_default="user"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"])

    # --- events ---
    op.create_table(
        "events",
        sa.Column("event_id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("host_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location", sa.String(100), nullable=False),
        sa.Column("visibility", visibility, nullable=False, server_default="public"),
        sa.Column("is_deleted", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("end_time >= start_time", name="ck_events_end_after_start"),
    )
    op.create_index("ix_events_host_id", "events", ["host_id"])
    op.create_index("ix_events_start_time", "events", ["start_time"])
    op.create_index("ix_events_location", "events", ["location"])
    op.create_index("ix_events_visibility", "events", ["visibility"])
    op.create_index("ix_events_is_deleted", "events", ["is_deleted"])

    # --- attendance ---
    op.create_table(
        "attendance",
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.event_id"), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.user_id"), primary_key=True),
        sa.Column("status", attendance_status, nullable=False, server_default="going"),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_attendance_event_id", "attendance", ["event_id"])
    op.create_index("ix_attendance_user_id", "attendance", ["user_id"])
    op.create_index("ix_attendance_status", "attendance", ["status"])


def downgrade() -> None:
    op.drop_table("attendance")
    op.drop_table("events")
    op.drop_table("users")
    attendance_status.drop(op.get_bind(), checkfirst=True)
    visibility.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)

"""Create users, device_sessions and user_attendance.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

ROLE_VALUES = ("STUDENT", "TEACHER", "PARENT", "ADMIN")
REGISTRATION_VALUES = ("PENDING", "APPROVED", "REJECTED")
ATTENDANCE_VALUES = ("PRESENT",)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("role", sa.Enum(*ROLE_VALUES, name="role"), nullable=False),
        sa.Column(
            "registration_status",
            sa.Enum(*REGISTRATION_VALUES, name="registration_status"),
            nullable=False,
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])
    op.create_index("ix_users_is_active", "users", ["is_active"])

    op.create_table(
        "device_sessions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("token_hash", sa.String(64), nullable=False),
        sa.Column("device_id", sa.String(64), nullable=False),
        sa.Column("device_name", sa.String(100), nullable=False),
        sa.Column("user_agent", sa.Text(), nullable=False),
        sa.Column("ip_address", sa.String(64), nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("last_activity", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_device_sessions_user_id_users",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_device_sessions"),
        sa.UniqueConstraint("token_hash", name="uq_device_sessions_token_hash"),
    )
    op.create_index("ix_device_sessions_id", "device_sessions", ["id"])
    op.create_index("ix_device_sessions_user_id", "device_sessions", ["user_id"])
    op.create_index("ix_device_sessions_user_active", "device_sessions", ["user_id", "is_active"])
    op.create_index("ix_device_sessions_device_user", "device_sessions", ["device_id", "user_id"])
    op.create_index("ix_device_sessions_created_at", "device_sessions", ["created_at"])

    op.create_table(
        "user_attendance",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("session_day", sa.String(10), nullable=False),
        sa.Column("session_start_time", sa.String(5), nullable=False),
        sa.Column("session_end_time", sa.String(5), nullable=False),
        sa.Column("session_type", sa.String(32), nullable=False, server_default="theory"),
        sa.Column("session_topic", sa.String(255), nullable=False, server_default="Session"),
        sa.Column("status", sa.Enum(*ATTENDANCE_VALUES, name="attendance_status"), nullable=False),
        sa.Column("marked_by_user_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_user_attendance_user_id_users",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["marked_by_user_id"],
            ["users.id"],
            name="fk_user_attendance_marked_by_user_id_users",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_user_attendance"),
        sa.UniqueConstraint(
            "user_id",
            "date",
            "session_day",
            "session_start_time",
            "session_end_time",
            name="uq_user_attendance_occurrence",
        ),
    )
    op.create_index("ix_user_attendance_id", "user_attendance", ["id"])
    op.create_index("ix_user_attendance_user_id", "user_attendance", ["user_id"])
    op.create_index("ix_user_attendance_date", "user_attendance", ["date"])


def downgrade() -> None:
    op.drop_table("user_attendance")
    op.drop_table("device_sessions")
    op.drop_table("users")
    sa.Enum(name="attendance_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="registration_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="role").drop(op.get_bind(), checkfirst=True)

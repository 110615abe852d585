"""Initial schema

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 10:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261018_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


role_enum = sa.Enum("student", "interviewer", "admin", name="role_enum", native_enum=False)
stage_enum = sa.Enum("Classes", "Interviews", "Successful", "Unsuccessful", name="stage_enum", native_enum=False)
change_action_enum = sa.Enum("created", "updated", "deleted", name="change_action_enum", native_enum=False)

# Minute offset of an "HH:MM" column, usable inside index expressions.
_START_MINUTES = "(split_part(start_time, ':', 1)::int * 60 + split_part(start_time, ':', 2)::int)"


def _id_col() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _created_col() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def _updated_col() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")

    op.create_table(
        "roles",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("name", role_enum, nullable=False),
        sa.UniqueConstraint("name", name="uq_roles_name"),
    )

    op.create_table(
        "users",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=64), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("approved", sa.Boolean(), nullable=False),
        sa.Column("role_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"], name="fk_users_role_id_roles", ondelete="RESTRICT"),
        sa.UniqueConstraint("phone", name="uq_users_phone"),
    )
    op.create_index("ix_users_phone", "users", ["phone"], unique=False)

    op.create_table(
        "interview_slots",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("interviewer_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("date", sa.Date(), nullable=True),
        sa.Column("start_time", sa.String(length=5), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("stage", stage_enum, nullable=False),
        sa.Column("company_name", sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(
            ["student_id"],
            ["users.id"],
            name="fk_interview_slots_student_id_users",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["interviewer_id"],
            ["users.id"],
            name="fk_interview_slots_interviewer_id_users",
            ondelete="SET NULL",
        ),
        sa.CheckConstraint(
            "(date IS NULL AND start_time IS NULL AND duration_minutes = 0) OR "
            "(date IS NOT NULL AND start_time IS NOT NULL AND duration_minutes > 0)",
            name="ck_interview_slots_schedule_consistent",
        ),
    )
    op.create_index("ix_interview_slots_student_id", "interview_slots", ["student_id"], unique=False)
    op.create_index("ix_interview_slots_interviewer_id", "interview_slots", ["interviewer_id"], unique=False)
    op.create_index("ix_interview_slots_date", "interview_slots", ["date"], unique=False)
    op.create_index("ix_interview_slots_stage", "interview_slots", ["stage"], unique=False)

    # Two active bookings on one day can never intersect, whatever the writer.
    op.execute(
        f"""
        ALTER TABLE interview_slots
        ADD CONSTRAINT ex_interview_slots_no_overlap
        EXCLUDE USING gist (
            date WITH =,
            int4range({_START_MINUTES}, {_START_MINUTES} + duration_minutes) WITH &&
        )
        WHERE (stage IN ('Classes', 'Interviews') AND duration_minutes > 0)
        """
    )

    op.create_table(
        "blocked_slots",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("reason", sa.String(length=255), nullable=True),
        sa.CheckConstraint("end_time > start_time", name="ck_blocked_slots_end_after_start"),
    )
    op.create_index("ix_blocked_slots_date", "blocked_slots", ["date"], unique=False)

    op.create_table(
        "notifications",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_notifications_user_id_users", ondelete="CASCADE"),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"], unique=False)

    op.create_table(
        "calendar_changes",
        sa.Column("revision", sa.BigInteger(), sa.Identity(always=True), primary_key=True, nullable=False),
        sa.Column("entity_type", sa.String(length=64), nullable=False),
        sa.Column("entity_id", sa.String(length=64), nullable=False),
        sa.Column("action", change_action_enum, nullable=False),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_calendar_changes_entity_type", "calendar_changes", ["entity_type"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_calendar_changes_entity_type", table_name="calendar_changes")
    op.drop_table("calendar_changes")

    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")

    op.drop_index("ix_blocked_slots_date", table_name="blocked_slots")
    op.drop_table("blocked_slots")

    op.execute("ALTER TABLE interview_slots DROP CONSTRAINT IF EXISTS ex_interview_slots_no_overlap")
    op.drop_index("ix_interview_slots_stage", table_name="interview_slots")
    op.drop_index("ix_interview_slots_date", table_name="interview_slots")
    op.drop_index("ix_interview_slots_interviewer_id", table_name="interview_slots")
    op.drop_index("ix_interview_slots_student_id", table_name="interview_slots")
    op.drop_table("interview_slots")

    op.drop_index("ix_users_phone", table_name="users")
    op.drop_table("users")

    op.drop_table("roles")

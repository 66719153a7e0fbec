"""Init events, stakeholder groups, form fields and registrations

Revision ID: 5b2e9d4c7a10
Revises:
Create Date: 2026-10-19 15:20:41.318207

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5b2e9d4c7a10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

field_type_enum = sa.Enum("text", "number", "select", "file", name="form_field_type")
field_role_enum = sa.Enum("generic", "name", "email", name="form_field_role")


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "events",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("manager_id", sa.VARCHAR(), nullable=False),
        sa.Column("title", sa.VARCHAR(), nullable=False),
        sa.Column("slug", sa.VARCHAR(), nullable=False),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column("location", sa.VARCHAR(), nullable=True),
        sa.Column("description", sa.VARCHAR(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_events_manager_id", "events", ["manager_id"])
    op.create_index("ix_events_slug", "events", ["slug"], unique=True)
    op.create_index("ix_events_event_date", "events", ["event_date"])

    op.create_table(
        "stakeholder_groups",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("event_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.VARCHAR(), nullable=False),
        sa.Column("capacity", sa.INTEGER(), nullable=False),
        sa.Column(
            "is_open", sa.BOOLEAN(), server_default=sa.true(), nullable=False
        ),
        sa.Column("position", sa.INTEGER(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "event_id", "name", name="uq_stakeholder_groups_event_name"
        ),
        sa.CheckConstraint(
            "capacity >= 1", name="ck_stakeholder_groups_capacity_ge_1"
        ),
    )
    op.create_index(
        "ix_stakeholder_groups_event_id", "stakeholder_groups", ["event_id"]
    )

    op.create_table(
        "form_fields",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("group_id", sa.Uuid(), nullable=False),
        sa.Column("label", sa.VARCHAR(), nullable=False),
        sa.Column("field_type", field_type_enum, nullable=False),
        sa.Column(
            "role", field_role_enum, server_default="generic", nullable=False
        ),
        sa.Column("is_required", sa.BOOLEAN(), nullable=False),
        sa.Column("options", sa.JSON(), nullable=True),
        sa.Column("field_order", sa.INTEGER(), nullable=False),
        sa.ForeignKeyConstraint(
            ["group_id"], ["stakeholder_groups.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_form_fields_group_id", "form_fields", ["group_id"])

    op.create_table(
        "registrations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("event_id", sa.Uuid(), nullable=False),
        sa.Column("group_id", sa.Uuid(), nullable=False),
        sa.Column("form_data", sa.JSON(), nullable=True),
        sa.Column("token", sa.VARCHAR(), nullable=False),
        sa.Column("email", sa.VARCHAR(), nullable=True),
        sa.Column("language", sa.VARCHAR(length=5), nullable=False),
        sa.Column(
            "checked_in", sa.BOOLEAN(), server_default=sa.false(), nullable=False
        ),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["group_id"], ["stakeholder_groups.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "(checked_in AND checked_in_at IS NOT NULL)"
            " OR (NOT checked_in AND checked_in_at IS NULL)",
            name="ck_registrations_checked_in_at_consistent",
        ),
    )
    op.create_index("ix_registrations_token", "registrations", ["token"], unique=True)
    op.create_index("ix_registrations_event_id", "registrations", ["event_id"])
    op.create_index("ix_registrations_group_id", "registrations", ["group_id"])
    op.create_index("ix_registrations_email", "registrations", ["email"])
    op.create_index(
        "idx_registrations_group_checked_in",
        "registrations",
        ["group_id", "checked_in"],
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("registrations")
    op.drop_table("form_fields")
    op.drop_table("stakeholder_groups")
    op.drop_table("events")

    # Enum types outlive their tables on PostgreSQL
    field_role_enum.drop(op.get_bind(), checkfirst=True)
    field_type_enum.drop(op.get_bind(), checkfirst=True)

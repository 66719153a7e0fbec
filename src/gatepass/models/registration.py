"""SQLModel Registration model"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Index,
    false,
)
from sqlmodel import Field, SQLModel


class Registration(SQLModel, table=True):
    """Admitted attendee submission, looked up at check-in by its token"""

    __tablename__ = "registrations"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    event_id: uuid.UUID = Field(
        foreign_key="events.id", ondelete="CASCADE", index=True
    )
    group_id: uuid.UUID = Field(
        foreign_key="stakeholder_groups.id", ondelete="CASCADE", index=True
    )
    form_data: dict = Field(default_factory=dict, sa_column=Column(JSON))
    token: str = Field(unique=True, index=True)
    email: Optional[str] = Field(default=None, index=True)
    language: str = Field(default="en", max_length=5)
    checked_in: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, server_default=false()),
    )
    checked_in_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        CheckConstraint(
            "(checked_in AND checked_in_at IS NOT NULL)"
            " OR (NOT checked_in AND checked_in_at IS NULL)",
            name="ck_registrations_checked_in_at_consistent",
        ),
        Index("idx_registrations_group_checked_in", "group_id", "checked_in"),
    )

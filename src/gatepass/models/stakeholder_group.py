"""SQLModel StakeholderGroup model"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Integer,
    UniqueConstraint,
    true,
)
from sqlmodel import Field, SQLModel


class StakeholderGroup(SQLModel, table=True):
    """Registration category within an event (e.g. Attendee, Speaker).

    Registrations reference the group by its id, so the display name can be
    changed without orphaning them.
    """

    __tablename__ = "stakeholder_groups"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    event_id: uuid.UUID = Field(
        foreign_key="events.id", ondelete="CASCADE", index=True
    )
    name: str
    capacity: int = Field(sa_column=Column(Integer, nullable=False))
    is_open: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, server_default=true()),
    )
    position: int = Field(default=0)  # Display order within the event
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        UniqueConstraint("event_id", "name", name="uq_stakeholder_groups_event_name"),
        CheckConstraint("capacity >= 1", name="ck_stakeholder_groups_capacity_ge_1"),
    )

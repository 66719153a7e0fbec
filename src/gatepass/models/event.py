"""SQLModel Event model"""

import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


class Event(SQLModel, table=True):
    """Registration campaign owned by a manager"""

    __tablename__ = "events"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    manager_id: str = Field(index=True)  # Auth0 subject of the owning manager
    title: str
    slug: str = Field(unique=True, index=True)
    event_date: date = Field(index=True)
    location: Optional[str] = Field(default="")
    description: Optional[str] = Field(default="")
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

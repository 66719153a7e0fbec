"""SQLModel FormField model for per-group registration form fields"""

import uuid
from typing import List, Optional

from sqlalchemy import JSON, Column
from sqlalchemy import Enum as SQLEnum
from sqlmodel import Field, SQLModel

from gatepass.models.field_type import FieldRole, FieldType


class FormField(SQLModel, table=True):
    """One control of a stakeholder group's registration form"""

    __tablename__ = "form_fields"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    group_id: uuid.UUID = Field(
        foreign_key="stakeholder_groups.id", ondelete="CASCADE", index=True
    )
    label: str  # Also the key of the submitted value in form_data
    field_type: FieldType = Field(
        sa_column=Column(
            SQLEnum(
                FieldType,
                name="form_field_type",
                values_callable=lambda x: [e.value for e in x],
            ),
            nullable=False,
        )
    )
    role: FieldRole = Field(
        default=FieldRole.GENERIC,
        sa_column=Column(
            SQLEnum(
                FieldRole,
                name="form_field_role",
                values_callable=lambda x: [e.value for e in x],
            ),
            nullable=False,
            server_default=FieldRole.GENERIC.value,
        ),
    )
    is_required: bool = Field(default=False)
    options: Optional[List[str]] = Field(
        default=None, sa_column=Column(JSON)
    )  # For select fields
    field_order: int = Field(default=0)  # Display order

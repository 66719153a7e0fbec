"""Database models for Gatepass"""

from gatepass.models.event import Event
from gatepass.models.field_type import FieldRole, FieldType
from gatepass.models.form_field import FormField
from gatepass.models.registration import Registration
from gatepass.models.stakeholder_group import StakeholderGroup

__all__ = [
    "Event",
    "StakeholderGroup",
    "FormField",
    "Registration",
    "FieldType",
    "FieldRole",
]

"""Enums for the application"""

from enum import Enum


class FieldType(str, Enum):
    """Enum for form field types"""

    TEXT = "text"
    NUMBER = "number"
    SELECT = "select"
    FILE = "file"


class FieldRole(str, Enum):
    """Semantic role of a form field.

    NAME and EMAIL fields are locked: every group must carry them and they are
    always required on submission.
    """

    GENERIC = "generic"
    NAME = "name"
    EMAIL = "email"

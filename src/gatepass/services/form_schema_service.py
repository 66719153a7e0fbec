"""Form schema service: authoring rules and submission validation.

Two kinds of checks live here:
- Authoring: a group's field list must always carry a required Name field and
  a required Email field. Group creation repairs a list that lacks them, group
  updates reject it.
- Submission: a registrant's form data is checked against the group's fields
  and normalized before admission.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from pydantic import BaseModel, Field, field_validator

from gatepass.errors import MissingEmailError, StructuralSchemaError, ValidationError
from gatepass.models.field_type import FieldRole, FieldType
from gatepass.models.form_field import FormField

logger = logging.getLogger(__name__)

# Label fragments used to tag roles on fields submitted without one
NAME_LABEL_HINTS = ("name", "اسم")
EMAIL_LABEL_HINTS = ("email", "بريد")

DEFAULT_NAME_LABEL = "Full Name"
DEFAULT_EMAIL_LABEL = "Email"

MAX_TEXT_LENGTH = 250


class FieldSpec(BaseModel):
    """Field definition as authored by a manager"""

    label: str
    type: FieldType = FieldType.TEXT
    options: List[str] = Field(default_factory=list)
    required: bool = False
    role: Optional[FieldRole] = None

    @field_validator("label")
    @classmethod
    def _strip_label(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field label must not be empty")
        return v

    @field_validator("options")
    @classmethod
    def _strip_options(cls, v: Iterable[str]) -> List[str]:
        return [o.strip() for o in v if o and o.strip()]

    @classmethod
    def from_form_field(cls, field: FormField) -> "FieldSpec":
        return cls(
            label=field.label,
            type=field.field_type,
            options=list(field.options or []),
            required=field.is_required,
            role=field.role,
        )


def infer_role(label: str) -> FieldRole:
    """Guess a field's role from its label (English or Arabic)"""
    lowered = label.lower()
    if any(hint in lowered for hint in EMAIL_LABEL_HINTS):
        return FieldRole.EMAIL
    if any(hint in lowered for hint in NAME_LABEL_HINTS):
        return FieldRole.NAME
    return FieldRole.GENERIC


class FormSchemaService:
    """Stateless rules for group field lists and registrant submissions"""

    # Authoring

    def prepare_fields_for_create(self, fields: Sequence[FieldSpec]) -> List[FieldSpec]:
        """Resolve roles and inject missing Name/Email fields.

        - Name is inserted at index 0 when absent.
        - Email is inserted at index 1 (right after Name) when absent.
        - Every Name/Email field ends up required, whatever the author asked for,
          and so does any field whose label looks like one.
        - A label-matching field that cannot carry the role (not text, or
          tagged generic) stays generic; the injected default gets a label
          that does not collide with it.
        - An explicit Name/Email role on a non-text field is dropped.
        """
        prepared = []
        for f in self._resolve_roles(fields):
            if f.role != FieldRole.GENERIC and f.type != FieldType.TEXT:
                logger.info(
                    f"Field '{f.label}' is not a text field, dropping its "
                    f"{f.role.value} role"
                )
                f = f.model_copy(update={"role": FieldRole.GENERIC})
            if f.role != FieldRole.GENERIC or infer_role(f.label) != FieldRole.GENERIC:
                f = f.model_copy(update={"required": True})
            prepared.append(f)

        taken = {f.label.casefold() for f in prepared}

        if not any(f.role == FieldRole.NAME for f in prepared):
            prepared.insert(
                0,
                FieldSpec(
                    label=self._free_label(DEFAULT_NAME_LABEL, taken),
                    type=FieldType.TEXT,
                    required=True,
                    role=FieldRole.NAME,
                ),
            )
            logger.info("Injected default Name field into group schema")

        if not any(f.role == FieldRole.EMAIL for f in prepared):
            prepared.insert(
                1,
                FieldSpec(
                    label=self._free_label(DEFAULT_EMAIL_LABEL, taken),
                    type=FieldType.TEXT,
                    required=True,
                    role=FieldRole.EMAIL,
                ),
            )
            logger.info("Injected default Email field into group schema")

        self._check_shape(prepared)
        return prepared

    def validate_fields_for_update(
        self, fields: Sequence[FieldSpec]
    ) -> List[FieldSpec]:
        """Reject a replacement field list that lacks required Name/Email fields.

        Nothing is injected here; the caller must leave the stored fields
        untouched when this raises.
        """
        resolved = self._resolve_roles(fields)

        names = [f for f in resolved if f.role == FieldRole.NAME]
        emails = [f for f in resolved if f.role == FieldRole.EMAIL]

        if not any(f.required for f in names) or not any(f.required for f in emails):
            raise StructuralSchemaError(
                "Stakeholder form must include required Name and Email fields"
            )
        if len(emails) > 1:
            raise StructuralSchemaError(
                "Stakeholder form must include exactly one Email field"
            )

        resolved = [
            f.model_copy(update={"required": True}) if f.role != FieldRole.GENERIC else f
            for f in resolved
        ]
        self._check_shape(resolved)
        return resolved

    @staticmethod
    def _free_label(label: str, taken: Set[str]) -> str:
        """First of "label", "label (2)", ... not already in use"""
        candidate = label
        n = 2
        while candidate.casefold() in taken:
            candidate = f"{label} ({n})"
            n += 1
        taken.add(candidate.casefold())
        return candidate

    def _resolve_roles(self, fields: Sequence[FieldSpec]) -> List[FieldSpec]:
        """Copy fields, tagging untagged ones from their labels.

        Only one Email-like label becomes the Email field, the first required
        one if there is any, so labels such as "Confirm email" stay generic.
        """
        email_index = None
        if not any(f.role == FieldRole.EMAIL for f in fields):
            candidates = [
                i
                for i, f in enumerate(fields)
                if f.role is None
                and f.type == FieldType.TEXT
                and infer_role(f.label) == FieldRole.EMAIL
            ]
            required = [i for i in candidates if fields[i].required]
            if candidates:
                email_index = (required or candidates)[0]

        resolved: List[FieldSpec] = []
        for i, f in enumerate(fields):
            role = f.role
            if role is None:
                role = (
                    infer_role(f.label)
                    if f.type == FieldType.TEXT
                    else FieldRole.GENERIC
                )
                if role == FieldRole.EMAIL and i != email_index:
                    role = FieldRole.GENERIC
            resolved.append(f.model_copy(update={"role": role}))
        return resolved

    def _check_shape(self, fields: Sequence[FieldSpec]) -> None:
        seen = set()
        for f in fields:
            key = f.label.casefold()
            if key in seen:
                raise StructuralSchemaError(f"Duplicate field label '{f.label}'")
            seen.add(key)

            if f.type == FieldType.SELECT and not f.options:
                raise StructuralSchemaError(
                    f"Select field '{f.label}' must define at least one option"
                )
            if f.role != FieldRole.GENERIC and f.type != FieldType.TEXT:
                raise StructuralSchemaError(
                    f"{f.role.value.title()} field '{f.label}' must be a text field"
                )

    # Submission

    def extract_email(
        self, fields: Sequence[FormField], form_data: Dict[str, object]
    ) -> str:
        """Find the registrant's email in submitted data.

        Any key spelled "email" in any case is accepted, then the label of the
        group's Email field.
        """
        candidates = [k for k in form_data if k.strip().lower() == "email"]
        candidates += [f.label for f in fields if f.role == FieldRole.EMAIL]

        for key in candidates:
            value = form_data.get(key)
            if value is None:
                continue
            value = str(value).strip().lower()
            if value:
                return value

        raise MissingEmailError()

    def validate_submission(
        self, fields: Sequence[FormField], form_data: Dict[str, object]
    ) -> Tuple[Dict[str, str], str]:
        """
        Validate submitted form data against a group's fields.

        Args:
            fields: The group's fields, in display order
            form_data: Raw label -> value mapping from the registrant

        Returns:
            Tuple of (normalized form data keyed by field label, email)

        Raises:
            MissingEmailError: If no email can be found
            ValidationError: If a required field is empty or a value is invalid
        """
        email = self.extract_email(fields, form_data)

        normalized: Dict[str, str] = {}
        for field in fields:
            raw = form_data.get(field.label)
            value = "" if raw is None else str(raw).strip()

            if field.role == FieldRole.EMAIL and not value:
                value = email

            required = field.is_required or field.role != FieldRole.GENERIC
            if not value:
                if required:
                    raise ValidationError(field.label)
                continue

            self._check_value(field, value)
            normalized[field.label] = value

        dropped = set(form_data) - set(normalized)
        if dropped:
            logger.debug(f"Dropped undeclared form keys: {sorted(dropped)}")

        return normalized, email

    def _check_value(self, field: FormField, value: str) -> None:
        if field.field_type == FieldType.NUMBER:
            try:
                number = float(value)
            except ValueError:
                raise ValidationError(
                    field.label, f"{field.label} must be a valid number"
                )
            if not math.isfinite(number):
                raise ValidationError(
                    field.label, f"{field.label} must be a valid number"
                )
        elif field.field_type == FieldType.SELECT and field.options:
            if value not in field.options:
                raise ValidationError(field.label, f"Invalid option for {field.label}")
        elif field.field_type == FieldType.TEXT:
            if len(value) > MAX_TEXT_LENGTH:
                raise ValidationError(
                    field.label,
                    f"{field.label} must be fewer than {MAX_TEXT_LENGTH} characters",
                )

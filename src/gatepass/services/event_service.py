"""Event Service - Handles event and stakeholder group database operations"""

import logging
import re
import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from gatepass.errors import (
    DuplicateGroupError,
    EventNotFoundError,
    GroupNotFoundError,
    ValidationError,
)
from gatepass.models.event import Event
from gatepass.models.field_type import FieldType
from gatepass.models.form_field import FormField
from gatepass.models.registration import Registration
from gatepass.models.stakeholder_group import StakeholderGroup
from gatepass.services.form_schema_service import FieldSpec, FormSchemaService

logger = logging.getLogger(__name__)

SLUG_MAX_LENGTH = 50
SLUG_ATTEMPTS = 5


def slugify(title: str) -> str:
    """Lowercase ASCII slug: keep [a-z0-9], spaces become dashes"""
    base = re.sub(r"[^a-z0-9\s-]", "", title.lower())
    base = re.sub(r"\s+", "-", base.strip())[:SLUG_MAX_LENGTH]
    return base or "event"


class EventService:
    """Service for handling events and their stakeholder groups"""

    def __init__(self, db_session: Session):
        self.db = db_session
        self.schema = FormSchemaService()

    # Events

    def create_event(
        self,
        manager_id: str,
        title: str,
        event_date: date,
        location: str = "",
        description: str = "",
    ) -> Event:
        """
        Create a new event with a unique slug derived from its title

        Args:
            manager_id: Subject of the owning manager
            title: Human title
            event_date: Date of the event
            location: Free text location
            description: Free text description

        Returns:
            The created Event
        """
        for attempt in range(SLUG_ATTEMPTS):
            event = Event(
                manager_id=manager_id,
                title=title,
                slug=self._unique_slug(title),
                event_date=event_date,
                location=location,
                description=description,
            )
            try:
                self.db.add(event)
                self.db.commit()
            except IntegrityError:
                # Another request claimed the same slug between check and insert
                self.db.rollback()
                logger.warning(f"Slug race on '{event.slug}', retrying")
                continue

            self.db.refresh(event)
            logger.info(f"Event created successfully: {event.id} ({event.slug})")
            return event

        raise RuntimeError(f"Could not allocate a unique slug for '{title}'")

    def update_event(
        self, event_id: uuid.UUID, manager_id: str, updated_data: Dict[str, Any]
    ) -> Event:
        """Update event metadata; a new title re-derives the slug"""
        event = self.get_event_for_manager(event_id, manager_id)

        title = updated_data.get("title")
        if title and title != event.title:
            event.slug = self._unique_slug(title, exclude_id=event.id)
            event.title = title
        if updated_data.get("event_date"):
            event.event_date = updated_data["event_date"]
        if updated_data.get("location") is not None:
            event.location = updated_data["location"]
        if updated_data.get("description") is not None:
            event.description = updated_data["description"]

        event.updated_at = datetime.now(timezone.utc)

        try:
            self.db.add(event)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(event)

        logger.info(f"Event updated successfully: {event.id}")
        return event

    def delete_event(self, event_id: uuid.UUID, manager_id: str) -> None:
        """Delete an event together with its groups, fields and registrations"""
        event = self.get_event_for_manager(event_id, manager_id)

        group_ids = select(StakeholderGroup.id).where(
            StakeholderGroup.event_id == event.id
        )
        try:
            self.db.execute(delete(Registration).where(Registration.event_id == event.id))
            self.db.execute(delete(FormField).where(FormField.group_id.in_(group_ids)))
            self.db.execute(
                delete(StakeholderGroup).where(StakeholderGroup.event_id == event.id)
            )
            self.db.delete(event)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Event deleted with its registrations: {event_id}")

    def get_event_for_manager(self, event_id: uuid.UUID, manager_id: str) -> Event:
        """Get an event owned by the manager, or raise EventNotFoundError"""
        event = self.db.get(Event, event_id)
        if not event or event.manager_id != manager_id:
            raise EventNotFoundError()
        return event

    def get_event_by_slug(self, slug: str) -> Event:
        event = self.db.exec(select(Event).where(Event.slug == slug)).first()
        if not event:
            raise EventNotFoundError()
        return event

    def list_events_for_manager(self, manager_id: str) -> List[Event]:
        stmt = (
            select(Event)
            .where(Event.manager_id == manager_id)
            .order_by(Event.created_at.desc())
        )
        return list(self.db.exec(stmt).all())

    def _unique_slug(self, title: str, exclude_id: Optional[uuid.UUID] = None) -> str:
        base = slugify(title)
        slug = base
        counter = 1
        while self._slug_taken(slug, exclude_id):
            slug = f"{base}-{counter}"
            counter += 1
        return slug

    def _slug_taken(self, slug: str, exclude_id: Optional[uuid.UUID]) -> bool:
        stmt = select(Event.id).where(Event.slug == slug)
        if exclude_id is not None:
            stmt = stmt.where(Event.id != exclude_id)
        return self.db.exec(stmt).first() is not None

    # Stakeholder groups

    def get_groups(self, event_id: uuid.UUID) -> List[StakeholderGroup]:
        stmt = (
            select(StakeholderGroup)
            .where(StakeholderGroup.event_id == event_id)
            .order_by(StakeholderGroup.position)
        )
        return list(self.db.exec(stmt).all())

    def get_fields(self, group_id: uuid.UUID) -> List[FormField]:
        """Get a group's form fields ordered by field_order"""
        stmt = (
            select(FormField)
            .where(FormField.group_id == group_id)
            .order_by(FormField.field_order)
        )
        return list(self.db.exec(stmt).all())

    def get_groups_with_fields(
        self, event_id: uuid.UUID
    ) -> List[Tuple[StakeholderGroup, List[FormField]]]:
        return [(g, self.get_fields(g.id)) for g in self.get_groups(event_id)]

    def add_group(
        self,
        event_id: uuid.UUID,
        manager_id: str,
        name: str,
        capacity: int,
        fields: Optional[Sequence[FieldSpec]] = None,
        is_open: bool = True,
    ) -> StakeholderGroup:
        """
        Add a stakeholder group to an event.

        Missing Name/Email fields are injected rather than rejected.
        """
        event = self.get_event_for_manager(event_id, manager_id)
        name = self._clean_group_name(name)
        self._check_capacity(capacity)
        self._ensure_name_free(event.id, name)

        prepared = self.schema.prepare_fields_for_create(fields or [])

        max_position = self.db.exec(
            select(func.max(StakeholderGroup.position)).where(
                StakeholderGroup.event_id == event.id
            )
        ).one()

        group = StakeholderGroup(
            event_id=event.id,
            name=name,
            capacity=capacity,
            is_open=is_open,
            position=0 if max_position is None else max_position + 1,
        )
        try:
            self.db.add(group)
            self.db.flush()
            self._add_fields(group.id, prepared)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateGroupError(f"Group '{name}' already exists for this event")
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(group)

        logger.info(
            f"Added group {group.id} '{name}' to event {event.id} "
            f"with {len(prepared)} fields"
        )
        return group

    def update_group(
        self,
        event_id: uuid.UUID,
        group_id: uuid.UUID,
        manager_id: str,
        name: Optional[str] = None,
        capacity: Optional[int] = None,
        is_open: Optional[bool] = None,
        fields: Optional[Sequence[FieldSpec]] = None,
    ) -> StakeholderGroup:
        """
        Update a group. Either every change applies or none does.

        A replacement field list must already contain required Name and Email
        fields; nothing is injected on update.
        """
        event = self.get_event_for_manager(event_id, manager_id)
        group = self._get_group(event.id, group_id)

        validated = None
        if fields is not None:
            validated = self.schema.validate_fields_for_update(fields)
        if name is not None:
            name = self._clean_group_name(name)
            if name != group.name:
                self._ensure_name_free(event.id, name)
        if capacity is not None:
            self._check_capacity(capacity)

        try:
            if validated is not None:
                self.db.execute(delete(FormField).where(FormField.group_id == group.id))
                self._add_fields(group.id, validated)
            if name is not None:
                group.name = name
            if capacity is not None:
                group.capacity = capacity
            if is_open is not None:
                group.is_open = is_open
            group.updated_at = datetime.now(timezone.utc)

            self.db.add(group)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateGroupError(f"Group '{name}' already exists for this event")
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(group)

        logger.info(f"Updated group {group.id} of event {event.id}")
        return group

    def toggle_group(
        self, event_id: uuid.UUID, group_id: uuid.UUID, manager_id: str
    ) -> StakeholderGroup:
        """Open a closed group or close an open one"""
        event = self.get_event_for_manager(event_id, manager_id)
        group = self._get_group(event.id, group_id)

        group.is_open = not group.is_open
        group.updated_at = datetime.now(timezone.utc)
        self.db.add(group)
        self.db.commit()
        self.db.refresh(group)

        logger.info(
            f"Registration for group {group.id} {'opened' if group.is_open else 'closed'}"
        )
        return group

    def delete_group(
        self, event_id: uuid.UUID, group_id: uuid.UUID, manager_id: str
    ) -> None:
        """Delete a group together with its fields and registrations"""
        event = self.get_event_for_manager(event_id, manager_id)
        group = self._get_group(event.id, group_id)

        try:
            self.db.execute(delete(Registration).where(Registration.group_id == group.id))
            self.db.execute(delete(FormField).where(FormField.group_id == group.id))
            self.db.delete(group)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Deleted group {group_id} from event {event_id}")

    def _get_group(self, event_id: uuid.UUID, group_id: uuid.UUID) -> StakeholderGroup:
        group = self.db.get(StakeholderGroup, group_id)
        if not group or group.event_id != event_id:
            raise GroupNotFoundError("Stakeholder group not found")
        return group

    def _add_fields(self, group_id: uuid.UUID, fields: Sequence[FieldSpec]) -> None:
        """Stage form field rows. Note: does NOT commit."""
        for i, spec in enumerate(fields):
            self.db.add(
                FormField(
                    group_id=group_id,
                    label=spec.label,
                    field_type=spec.type,
                    role=spec.role,
                    is_required=spec.required,
                    options=spec.options if spec.type == FieldType.SELECT else None,
                    field_order=i,
                )
            )

    def _ensure_name_free(self, event_id: uuid.UUID, name: str) -> None:
        existing = self.db.exec(
            select(StakeholderGroup.id).where(
                StakeholderGroup.event_id == event_id,
                StakeholderGroup.name == name,
            )
        ).first()
        if existing is not None:
            raise DuplicateGroupError(f"Group '{name}' already exists for this event")

    @staticmethod
    def _clean_group_name(name: str) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("name", "Group name is required")
        return name

    @staticmethod
    def _check_capacity(capacity: int) -> None:
        if capacity is None or capacity < 1:
            raise ValidationError("capacity", "Capacity must be at least 1")

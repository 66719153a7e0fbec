"""Event and stakeholder group management endpoints"""

import logging
import uuid
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlmodel import Session

from gatepass.auth.dependencies import get_current_user
from gatepass.auth.models import User
from gatepass.models.database import get_db
from gatepass.models.event import Event
from gatepass.models.field_type import FieldRole, FieldType
from gatepass.models.form_field import FormField
from gatepass.models.stakeholder_group import StakeholderGroup
from gatepass.services.event_service import EventService
from gatepass.services.form_schema_service import FieldSpec

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["Events"])


class EventCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, description="Event title")
    event_date: date = Field(..., description="Date of the event")
    location: str = Field(default="", description="Where the event takes place")
    description: str = Field(default="", description="Free text description")


class EventUpdateRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    event_date: Optional[date] = None
    location: Optional[str] = None
    description: Optional[str] = None


class GroupCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Stakeholder group name")
    capacity: int = Field(..., ge=1, description="Maximum registrations")
    is_open: bool = Field(default=True)
    fields: List[FieldSpec] = Field(
        default_factory=list,
        description="Custom form fields; Name and Email are added when missing",
    )


class GroupUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    capacity: Optional[int] = Field(default=None, ge=1)
    is_open: Optional[bool] = None
    fields: Optional[List[FieldSpec]] = Field(
        default=None,
        description="Full replacement field list; must include required Name and Email",
    )


class FieldResponse(BaseModel):
    label: str
    type: FieldType
    role: FieldRole
    required: bool
    options: List[str] = Field(default_factory=list)


class GroupResponse(BaseModel):
    id: uuid.UUID
    name: str
    capacity: int
    is_open: bool
    position: int
    fields: List[FieldResponse]


class EventResponse(BaseModel):
    id: uuid.UUID
    title: str
    slug: str
    event_date: date
    location: str
    description: str
    created_at: Optional[datetime] = None


class EventDetailResponse(EventResponse):
    groups: List[GroupResponse]


class PublicGroupResponse(BaseModel):
    name: str
    is_open: bool
    fields: List[FieldResponse]


class PublicEventResponse(BaseModel):
    title: str
    slug: str
    event_date: date
    location: str
    description: str
    groups: List[PublicGroupResponse]


def _field_response(field: FormField) -> FieldResponse:
    return FieldResponse(
        label=field.label,
        type=field.field_type,
        role=field.role,
        required=field.is_required,
        options=field.options or [],
    )


def _group_response(group: StakeholderGroup, fields: List[FormField]) -> GroupResponse:
    return GroupResponse(
        id=group.id,
        name=group.name,
        capacity=group.capacity,
        is_open=group.is_open,
        position=group.position,
        fields=[_field_response(f) for f in fields],
    )


def _event_response(event: Event) -> EventResponse:
    return EventResponse(
        id=event.id,
        title=event.title,
        slug=event.slug,
        event_date=event.event_date,
        location=event.location,
        description=event.description,
        created_at=event.created_at,
    )


def _event_detail(service: EventService, event: Event) -> EventDetailResponse:
    groups = [
        _group_response(group, fields)
        for group, fields in service.get_groups_with_fields(event.id)
    ]
    return EventDetailResponse(**_event_response(event).model_dump(), groups=groups)


@router.get("/public/{slug}", response_model=PublicEventResponse)
async def get_public_event(slug: str, db: Session = Depends(get_db)):
    """Public event page data: groups and their form definitions, no counts"""
    service = EventService(db)
    event = service.get_event_by_slug(slug)

    groups = [
        PublicGroupResponse(
            name=group.name,
            is_open=group.is_open,
            fields=[_field_response(f) for f in fields],
        )
        for group, fields in service.get_groups_with_fields(event.id)
    ]
    return PublicEventResponse(
        title=event.title,
        slug=event.slug,
        event_date=event.event_date,
        location=event.location,
        description=event.description,
        groups=groups,
    )


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    request: EventCreateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    event = EventService(db).create_event(
        manager_id=user.user_id,
        title=request.title,
        event_date=request.event_date,
        location=request.location,
        description=request.description,
    )
    return _event_response(event)


@router.get("", response_model=List[EventResponse])
async def list_events(
    user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    """List the caller's events, newest first"""
    events = EventService(db).list_events_for_manager(user.user_id)
    return [_event_response(e) for e in events]


@router.get("/{event_id}", response_model=EventDetailResponse)
async def get_event(
    event_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    service = EventService(db)
    event = service.get_event_for_manager(event_id, user.user_id)
    return _event_detail(service, event)


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: uuid.UUID,
    request: EventUpdateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    event = EventService(db).update_event(
        event_id, user.user_id, request.model_dump(exclude_unset=True)
    )
    return _event_response(event)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    EventService(db).delete_event(event_id, user.user_id)


@router.post(
    "/{event_id}/groups",
    response_model=GroupResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_group(
    event_id: uuid.UUID,
    request: GroupCreateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    service = EventService(db)
    group = service.add_group(
        event_id,
        user.user_id,
        name=request.name,
        capacity=request.capacity,
        fields=request.fields,
        is_open=request.is_open,
    )
    return _group_response(group, service.get_fields(group.id))


@router.put("/{event_id}/groups/{group_id}", response_model=GroupResponse)
async def update_group(
    event_id: uuid.UUID,
    group_id: uuid.UUID,
    request: GroupUpdateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    service = EventService(db)
    group = service.update_group(
        event_id,
        group_id,
        user.user_id,
        name=request.name,
        capacity=request.capacity,
        is_open=request.is_open,
        fields=request.fields,
    )
    return _group_response(group, service.get_fields(group.id))


@router.patch("/{event_id}/groups/{group_id}/toggle", response_model=GroupResponse)
async def toggle_group(
    event_id: uuid.UUID,
    group_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Open or close registration for a group"""
    service = EventService(db)
    group = service.toggle_group(event_id, group_id, user.user_id)
    return _group_response(group, service.get_fields(group.id))


@router.delete(
    "/{event_id}/groups/{group_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def delete_group(
    event_id: uuid.UUID,
    group_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    EventService(db).delete_group(event_id, group_id, user.user_id)

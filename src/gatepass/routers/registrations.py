"""Public registration, check-in and analytics endpoints"""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlmodel import Session

from gatepass.auth.dependencies import get_current_user
from gatepass.auth.models import User
from gatepass.config import config
from gatepass.errors import GatepassError
from gatepass.models.database import get_db
from gatepass.models.registration import Registration
from gatepass.services.analytics_service import AnalyticsService, GroupAnalytics
from gatepass.services.checkin_service import CheckinService
from gatepass.services.email_service import EmailService
from gatepass.services.event_service import EventService
from gatepass.services.registration_service import RegistrationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/registrations", tags=["Registrations"])


def get_email_service() -> Optional[EmailService]:
    """EmailService when Mailgun is configured, otherwise None (no delivery)"""
    if not config.get("mailgun_api_key") or not config.get("mailgun_domain"):
        return None
    return EmailService(config)


class RegisterRequest(BaseModel):
    event_slug: str = Field(..., description="Public slug of the event")
    group_name: str = Field(..., description="Stakeholder group to register in")
    form_data: Dict[str, Any] = Field(
        default_factory=dict, description="Field label -> submitted value"
    )
    language: Optional[str] = Field(
        default=None, description="Language of the confirmation email (en or ar)"
    )


class RegisterResponse(BaseModel):
    token: str
    qr_code: Optional[str] = Field(
        None, description="QR code of the token payload as a PNG data URL"
    )
    registration_id: uuid.UUID
    email_sent: bool


class CheckinRequest(BaseModel):
    scanned_value: str = Field(
        ..., description="Scanner output: bare token or JSON payload"
    )


class RegistrationResponse(BaseModel):
    id: uuid.UUID
    event_id: uuid.UUID
    group_id: uuid.UUID
    group_name: Optional[str] = None
    form_data: Dict[str, Any]
    email: Optional[str] = None
    language: str
    checked_in: bool
    checked_in_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class CheckinResponse(BaseModel):
    registration: RegistrationResponse


def _registration_response(
    registration: Registration, group_name: Optional[str] = None
) -> RegistrationResponse:
    return RegistrationResponse(
        id=registration.id,
        event_id=registration.event_id,
        group_id=registration.group_id,
        group_name=group_name,
        form_data=registration.form_data or {},
        email=registration.email,
        language=registration.language,
        checked_in=registration.checked_in,
        checked_in_at=registration.checked_in_at,
        created_at=registration.created_at,
    )


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    request: RegisterRequest,
    db: Session = Depends(get_db),
    email_service: Optional[EmailService] = Depends(get_email_service),
):
    """Public self-registration; returns the token and its QR code"""
    try:
        outcome = await RegistrationService(db, email_service=email_service).submit(
            event_slug=request.event_slug,
            group_name=request.group_name,
            form_data=request.form_data,
            language=request.language,
        )
    except GatepassError:
        raise
    except Exception as e:
        logger.error(f"Error registering for '{request.event_slug}': {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    return RegisterResponse(
        token=outcome.token,
        qr_code=outcome.qr_image,
        registration_id=outcome.registration.id,
        email_sent=outcome.email_sent,
    )


@router.post("/checkin", response_model=CheckinResponse)
async def checkin(
    request: CheckinRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Check a registrant in by the scanned or typed code"""
    try:
        registration = CheckinService(db).check_in(
            request.scanned_value, manager_id=user.user_id
        )
    except GatepassError:
        raise
    except Exception as e:
        logger.error(f"Error checking in scanned value: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    groups = {g.id: g.name for g in EventService(db).get_groups(registration.event_id)}
    return CheckinResponse(
        registration=_registration_response(
            registration, groups.get(registration.group_id)
        )
    )


@router.get("/{event_id}", response_model=List[RegistrationResponse])
async def list_registrations(
    event_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """All registrations of an owned event, newest first"""
    event_service = EventService(db)
    event = event_service.get_event_for_manager(event_id, user.user_id)

    # Group names are resolved at read time; registrations keep the group id
    groups = {g.id: g.name for g in event_service.get_groups(event.id)}
    registrations = RegistrationService(db).get_registrations_for_event(event.id)
    return [_registration_response(r, groups.get(r.group_id)) for r in registrations]


@router.delete(
    "/{event_id}/{registration_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def delete_registration(
    event_id: uuid.UUID,
    registration_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    event = EventService(db).get_event_for_manager(event_id, user.user_id)
    RegistrationService(db).delete_registration(event.id, registration_id)


@router.get("/{event_id}/analytics", response_model=List[GroupAnalytics])
async def event_analytics(
    event_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Per-group capacity, registrations and check-ins for an owned event"""
    event = EventService(db).get_event_for_manager(event_id, user.user_id)
    return AnalyticsService(db).event_analytics(event.id)

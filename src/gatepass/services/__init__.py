"""Service layer for Gatepass"""

from gatepass.services.analytics_service import AnalyticsService, GroupAnalytics
from gatepass.services.checkin_service import CheckinService
from gatepass.services.email_service import EmailService
from gatepass.services.event_service import EventService
from gatepass.services.form_schema_service import FieldSpec, FormSchemaService
from gatepass.services.registration_service import (
    RegistrationOutcome,
    RegistrationService,
)

__all__ = [
    "AnalyticsService",
    "CheckinService",
    "EmailService",
    "EventService",
    "FieldSpec",
    "FormSchemaService",
    "GroupAnalytics",
    "RegistrationOutcome",
    "RegistrationService",
]

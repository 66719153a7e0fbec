"""Registration service: capacity admission and the public register flow"""

import logging
import threading
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from gatepass.backends.qr_renderer import QRRenderer
from gatepass.config import config
from gatepass.errors import (
    CapacityExceededError,
    DuplicateTokenError,
    EventNotFoundError,
    GatepassError,
    GroupClosedError,
    GroupNotFoundError,
    RegistrationNotFoundError,
)
from gatepass.models.event import Event
from gatepass.models.form_field import FormField
from gatepass.models.registration import Registration
from gatepass.models.stakeholder_group import StakeholderGroup
from gatepass.services.email_service import EmailService, normalize_language
from gatepass.services.form_schema_service import FormSchemaService
from gatepass.services.token_service import encode_payload, generate_token

logger = logging.getLogger(__name__)


class _GroupLocks:
    """One lock per stakeholder group id.

    Serializes count-then-insert between threads of this process. Across
    processes the group row lock (SELECT ... FOR UPDATE) does the same job.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[uuid.UUID, threading.Lock] = {}

    def get(self, group_id: uuid.UUID) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(group_id, threading.Lock())


admission_locks = _GroupLocks()


def registration_count_statement(group_id: uuid.UUID):
    """The one count query used by both admission and analytics"""
    return select(func.count(Registration.id)).where(Registration.group_id == group_id)


@dataclass
class RegistrationOutcome:
    registration: Registration
    group_name: str
    qr_image: Optional[str]
    email_sent: bool

    @property
    def token(self) -> str:
        return self.registration.token


class RegistrationService:
    """Service for admitting and managing registrations"""

    def __init__(
        self,
        db_session: Session,
        email_service: Optional[EmailService] = None,
        renderer: Optional[QRRenderer] = None,
        token_factory: Callable[[], str] = generate_token,
        max_token_attempts: Optional[int] = None,
    ):
        self.db = db_session
        self.email_service = email_service
        self.renderer = renderer or QRRenderer()
        self.token_factory = token_factory
        self.max_token_attempts = max_token_attempts or config["max_token_attempts"]
        self.schema = FormSchemaService()

    def register(
        self,
        event_slug: str,
        group_name: str,
        form_data: Dict[str, object],
        language: str = "en",
    ) -> Registration:
        """
        Validate a submission and admit it to a group if capacity allows.

        Args:
            event_slug: Public slug of the event
            group_name: Display name of the stakeholder group
            form_data: Raw label -> value mapping from the registrant
            language: Registrant's language, kept for later notifications

        Returns:
            Registration: The persisted registration with its token

        Raises:
            EventNotFoundError, GroupNotFoundError, GroupClosedError,
            MissingEmailError, ValidationError, CapacityExceededError,
            DuplicateTokenError
        """
        event = self.db.exec(select(Event).where(Event.slug == event_slug)).first()
        if not event:
            raise EventNotFoundError()

        group = self.db.exec(
            select(StakeholderGroup).where(
                StakeholderGroup.event_id == event.id,
                StakeholderGroup.name == group_name,
            )
        ).first()
        if not group:
            raise GroupNotFoundError()

        if not group.is_open:
            raise GroupClosedError()

        fields = self._get_fields(group.id)
        normalized, email = self.schema.validate_submission(fields, form_data)

        return self._admit(event.id, group.id, normalized, email, language)

    def _admit(
        self,
        event_id: uuid.UUID,
        group_id: uuid.UUID,
        form_data: Dict[str, str],
        email: str,
        language: str,
    ) -> Registration:
        """Count and insert as one decision, retrying on token collisions"""
        lock = admission_locks.get(group_id)

        for attempt in range(1, self.max_token_attempts + 1):
            token = self.token_factory()
            with lock:
                try:
                    # Row lock on the group; populate_existing re-reads flags
                    # that may have changed since the group was first loaded
                    group = self.db.exec(
                        select(StakeholderGroup)
                        .where(StakeholderGroup.id == group_id)
                        .with_for_update()
                        .execution_options(populate_existing=True)
                    ).first()
                    if group is None:
                        raise GroupNotFoundError()
                    if not group.is_open:
                        raise GroupClosedError()

                    count = self.count_for_group(group_id)
                    if count >= group.capacity:
                        logger.info(
                            f"Group {group_id} is full ({count}/{group.capacity})"
                        )
                        raise CapacityExceededError()

                    registration = Registration(
                        event_id=event_id,
                        group_id=group_id,
                        form_data=form_data,
                        token=token,
                        email=email,
                        language=language,
                    )
                    self.db.add(registration)
                    self.db.commit()
                except IntegrityError:
                    self.db.rollback()
                    logger.warning(
                        f"Token collision on attempt {attempt} for group {group_id}"
                    )
                    continue
                except GatepassError:
                    # Release the row lock before reporting the rejection
                    self.db.rollback()
                    raise

            self.db.refresh(registration)
            logger.info(
                f"Created registration {registration.id} for group {group_id} "
                f"({count + 1}/{group.capacity})"
            )
            return registration

        logger.error(
            f"Exhausted {self.max_token_attempts} token attempts for group {group_id}"
        )
        raise DuplicateTokenError(self.max_token_attempts)

    async def submit(
        self,
        event_slug: str,
        group_name: str,
        form_data: Dict[str, object],
        language: Optional[str] = None,
    ) -> RegistrationOutcome:
        """Register, render the QR code and attempt delivery by email.

        Rendering and delivery happen after the registration is committed, so
        a failure in either never undoes the admission.
        """
        language = normalize_language(language)
        registration = self.register(event_slug, group_name, form_data, language)

        event = self.db.get(Event, registration.event_id)
        group = self.db.get(StakeholderGroup, registration.group_id)

        try:
            qr_image = self.renderer.render(encode_payload(registration.token))
        except Exception:
            logger.exception(f"Failed to render QR code for {registration.id}")
            qr_image = None

        email_sent = False
        if qr_image and self.email_service:
            email_sent = await self.email_service.send_registration_qr(
                email=registration.email,
                qr_image=qr_image,
                event_title=event.title,
                language=language,
            )
            if not email_sent:
                logger.warning(
                    f"Registration {registration.id} admitted but QR email unconfirmed"
                )

        return RegistrationOutcome(
            registration=registration,
            group_name=group.name,
            qr_image=qr_image,
            email_sent=email_sent,
        )

    def count_for_group(self, group_id: uuid.UUID) -> int:
        """Get the number of registrations admitted to a group"""
        return self.db.exec(registration_count_statement(group_id)).one()

    def get_registration_by_token(self, token: str) -> Optional[Registration]:
        stmt = select(Registration).where(Registration.token == token)
        return self.db.exec(stmt).first()

    def get_registrations_for_event(self, event_id: uuid.UUID) -> List[Registration]:
        """Get all registrations for an event, newest first"""
        stmt = (
            select(Registration)
            .where(Registration.event_id == event_id)
            .order_by(Registration.created_at.desc())
        )
        return list(self.db.exec(stmt).all())

    def delete_registration(
        self, event_id: uuid.UUID, registration_id: uuid.UUID
    ) -> None:
        """Delete a registration, freeing its capacity slot"""
        registration = self.db.get(Registration, registration_id)
        if not registration or registration.event_id != event_id:
            raise RegistrationNotFoundError()

        self.db.delete(registration)
        self.db.commit()
        logger.info(f"Deleted registration {registration_id} from event {event_id}")

    def _get_fields(self, group_id: uuid.UUID) -> List[FormField]:
        stmt = (
            select(FormField)
            .where(FormField.group_id == group_id)
            .order_by(FormField.field_order)
        )
        return list(self.db.exec(stmt).all())

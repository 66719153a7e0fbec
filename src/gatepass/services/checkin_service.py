"""Check-in service: one-way NotCheckedIn -> CheckedIn transition"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import update
from sqlmodel import Session, select

from gatepass.errors import AlreadyCheckedInError, RegistrationNotFoundError
from gatepass.models.event import Event
from gatepass.models.registration import Registration
from gatepass.services.token_service import parse_scanned_value

logger = logging.getLogger(__name__)


class CheckinService:
    """Service for checking registrants in by their scanned token"""

    def __init__(self, db_session: Session):
        self.db = db_session

    def check_in(
        self,
        scanned_value: str,
        manager_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Registration:
        """
        Check a registration in, exactly once.

        The transition is a conditional UPDATE guarded on checked_in = false,
        so of several concurrent scans of the same code only one matches a
        row; the rest see the stored timestamp.

        Args:
            scanned_value: Raw scanner output (bare token or JSON payload)
            manager_id: When given, registrations of events this manager does
                not own are treated as unknown
            now: Check-in time, defaults to the current UTC time

        Returns:
            Registration: The registration after check-in

        Raises:
            RegistrationNotFoundError: If no registration matches the code
            AlreadyCheckedInError: If the registration was already checked in
        """
        token = parse_scanned_value(scanned_value)

        registration = self.db.exec(
            select(Registration).where(Registration.token == token)
        ).first()
        if not registration:
            raise RegistrationNotFoundError()

        if manager_id is not None:
            event = self.db.get(Event, registration.event_id)
            if not event or event.manager_id != manager_id:
                raise RegistrationNotFoundError()

        registration_id = registration.id
        checked_in_at = now or datetime.now(timezone.utc)
        result = self.db.execute(
            update(Registration)
            .where(
                Registration.id == registration_id,
                Registration.checked_in == False,  # noqa: E712
            )
            .values(checked_in=True, checked_in_at=checked_in_at)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()

        if result.rowcount != 1:
            # Either checked in by another scan or deleted since the lookup
            current = self.db.exec(
                select(Registration)
                .where(Registration.id == registration_id)
                .execution_options(populate_existing=True)
            ).first()
            if current is None:
                logger.info(f"Registration {registration_id} deleted before check-in")
                raise RegistrationNotFoundError()

            logger.info(
                f"Registration {registration_id} already checked in at "
                f"{current.checked_in_at}"
            )
            raise AlreadyCheckedInError(current.checked_in_at)

        self.db.refresh(registration)
        logger.info(f"Checked in registration {registration_id}")
        return registration

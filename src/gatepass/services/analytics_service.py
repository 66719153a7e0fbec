"""Per-group registration and check-in counts for an event"""

import uuid
from typing import List

from pydantic import BaseModel
from sqlalchemy import func
from sqlmodel import Session, select

from gatepass.errors import EventNotFoundError
from gatepass.models.event import Event
from gatepass.models.registration import Registration
from gatepass.models.stakeholder_group import StakeholderGroup
from gatepass.services.registration_service import registration_count_statement


class GroupAnalytics(BaseModel):
    group_id: uuid.UUID
    group_name: str
    capacity: int
    is_open: bool
    registrations: int
    checked_in: int
    available: int


class AnalyticsService:
    """Read-only aggregation over persisted registrations"""

    def __init__(self, db_session: Session):
        self.db = db_session

    def event_analytics(self, event_id: uuid.UUID) -> List[GroupAnalytics]:
        event = self.db.get(Event, event_id)
        if not event:
            raise EventNotFoundError()

        groups = self.db.exec(
            select(StakeholderGroup)
            .where(StakeholderGroup.event_id == event_id)
            .order_by(StakeholderGroup.position)
        ).all()

        analytics = []
        for group in groups:
            registrations = self.db.exec(registration_count_statement(group.id)).one()
            checked_in = self.db.exec(
                select(func.count(Registration.id)).where(
                    Registration.group_id == group.id,
                    Registration.checked_in == True,  # noqa: E712
                )
            ).one()
            analytics.append(
                GroupAnalytics(
                    group_id=group.id,
                    group_name=group.name,
                    capacity=group.capacity,
                    is_open=group.is_open,
                    registrations=registrations,
                    checked_in=checked_in,
                    available=group.capacity - registrations,
                )
            )
        return analytics

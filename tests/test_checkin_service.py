"""Tests for the one-way check-in transition"""

import json
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import pytest
from sqlalchemy import delete
from sqlmodel import Session

from gatepass.errors import AlreadyCheckedInError, RegistrationNotFoundError
from gatepass.models.registration import Registration
from gatepass.services.checkin_service import CheckinService
from gatepass.services.registration_service import RegistrationService
from gatepass.services.token_service import encode_payload


def _naive(dt: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo
    return dt.replace(tzinfo=None)


@pytest.fixture
def abc123(_db_session, conference):
    """A registration whose token is known in advance"""
    return RegistrationService(_db_session, token_factory=lambda: "abc123").register(
        conference.slug,
        "Attendee",
        {"Full Name": "Sara Ali", "Email": "sara@example.com"},
    )


def test_check_in_with_legacy_payload_then_bare_token(checkin_service, abc123):
    """Scanning the old JSON shape checks in; scanning the bare token again
    reports the first check-in time"""
    first = checkin_service.check_in(json.dumps({"registrationId": "abc123"}))

    assert first.id == abc123.id
    assert first.checked_in is True
    assert first.checked_in_at is not None
    first_at = first.checked_in_at

    with pytest.raises(AlreadyCheckedInError) as exc_info:
        checkin_service.check_in("abc123")

    assert _naive(exc_info.value.checked_in_at) == _naive(first_at)
    assert exc_info.value.to_dict()["checked_in_at"] == (
        exc_info.value.checked_in_at.isoformat()
    )


def test_check_in_with_canonical_payload(checkin_service, abc123):
    now = datetime(2026, 11, 20, 9, 30, tzinfo=timezone.utc)

    registration = checkin_service.check_in(encode_payload("abc123"), now=now)

    assert _naive(registration.checked_in_at) == _naive(now)


def test_check_in_unknown_token(checkin_service, abc123):
    with pytest.raises(RegistrationNotFoundError):
        checkin_service.check_in("does-not-exist")


def test_check_in_empty_scan(checkin_service):
    with pytest.raises(RegistrationNotFoundError):
        checkin_service.check_in("   ")


def test_check_in_requires_event_ownership(checkin_service, abc123, manager_id):
    with pytest.raises(RegistrationNotFoundError):
        checkin_service.check_in("abc123", manager_id="auth0|someone-else")

    registration = checkin_service.check_in("abc123", manager_id=manager_id)
    assert registration.checked_in is True


def test_rejected_check_in_keeps_first_timestamp(checkin_service, abc123):
    first_at = datetime(2026, 11, 20, 9, 0, tzinfo=timezone.utc)
    later = datetime(2026, 11, 20, 11, 0, tzinfo=timezone.utc)

    checkin_service.check_in("abc123", now=first_at)
    with pytest.raises(AlreadyCheckedInError) as exc_info:
        checkin_service.check_in("abc123", now=later)

    assert _naive(exc_info.value.checked_in_at) == _naive(first_at)
    assert _naive(abc123.checked_in_at) == _naive(first_at)


def test_concurrent_check_ins_succeed_once(db_engine, abc123):
    def scan(_):
        with Session(db_engine) as session:
            try:
                CheckinService(session).check_in("abc123")
                return "ok"
            except AlreadyCheckedInError:
                return "duplicate"

    with ThreadPoolExecutor(max_workers=6) as pool:
        results = list(pool.map(scan, range(12)))

    assert results.count("ok") == 1
    assert results.count("duplicate") == 11


def test_registration_deleted_before_update_is_not_found(
    checkin_service, db_engine, abc123, monkeypatch
):
    """A registration removed between the token lookup and the guarded UPDATE
    reports not found instead of failing on the refresh"""
    session = checkin_service.db
    execute = session.execute

    def delete_then_execute(statement, *args, **kwargs):
        with Session(db_engine) as other:
            other.execute(delete(Registration).where(Registration.token == "abc123"))
            other.commit()
        return execute(statement, *args, **kwargs)

    monkeypatch.setattr(session, "execute", delete_then_execute)

    with pytest.raises(RegistrationNotFoundError):
        checkin_service.check_in("abc123")

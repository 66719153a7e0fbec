"""Tests for event and stakeholder group management"""

import uuid
from datetime import date

import pytest

from gatepass.errors import (
    DuplicateGroupError,
    EventNotFoundError,
    GroupNotFoundError,
    StructuralSchemaError,
    ValidationError,
)
from gatepass.models.field_type import FieldRole, FieldType
from gatepass.services.event_service import slugify
from gatepass.services.form_schema_service import FieldSpec


@pytest.mark.parametrize(
    "title,expected",
    [
        ("Tech Summit 2026", "tech-summit-2026"),
        ("  Hello,   World!  ", "hello-world"),
        ("Already-dashed title", "already-dashed-title"),
        ("مؤتمر التقنية", "event"),
        ("x" * 80, "x" * 50),
    ],
)
def test_slugify(title, expected):
    assert slugify(title) == expected


def test_create_event_uniquifies_slug(event_service, manager_id):
    first = event_service.create_event(manager_id, "Open Day", date(2026, 5, 1))
    second = event_service.create_event(manager_id, "Open Day", date(2026, 6, 1))
    third = event_service.create_event("auth0|other", "Open Day!", date(2026, 7, 1))

    assert first.slug == "open-day"
    assert second.slug == "open-day-1"
    assert third.slug == "open-day-2"
    assert event_service.get_event_by_slug("open-day-1").id == second.id


def test_update_event_rederives_slug_only_on_title_change(event_service, manager_id):
    event = event_service.create_event(manager_id, "Open Day", date(2026, 5, 1))

    event = event_service.update_event(
        event.id, manager_id, {"location": "Main Campus"}
    )
    assert event.slug == "open-day"
    assert event.location == "Main Campus"

    event = event_service.update_event(event.id, manager_id, {"title": "Open Day"})
    assert event.slug == "open-day"

    event = event_service.update_event(event.id, manager_id, {"title": "Graduation"})
    assert event.slug == "graduation"
    assert event.title == "Graduation"


def test_events_are_scoped_to_their_manager(event_service, manager_id, conference):
    assert [e.id for e in event_service.list_events_for_manager(manager_id)] == [
        conference.id
    ]
    assert event_service.list_events_for_manager("auth0|other") == []

    with pytest.raises(EventNotFoundError):
        event_service.get_event_for_manager(conference.id, "auth0|other")
    with pytest.raises(EventNotFoundError):
        event_service.update_event(conference.id, "auth0|other", {"title": "Hijack"})
    with pytest.raises(EventNotFoundError):
        event_service.delete_event(conference.id, "auth0|other")
    with pytest.raises(EventNotFoundError):
        event_service.add_group(conference.id, "auth0|other", name="VIP", capacity=1)


def test_get_event_by_unknown_slug(event_service):
    with pytest.raises(EventNotFoundError):
        event_service.get_event_by_slug("missing")


def test_add_group_injects_locked_fields(event_service, conference):
    attendee = event_service.get_groups(conference.id)[0]
    fields = event_service.get_fields(attendee.id)

    assert [f.label for f in fields] == ["Full Name", "Email", "Company"]
    assert [f.role for f in fields] == [
        FieldRole.NAME,
        FieldRole.EMAIL,
        FieldRole.GENERIC,
    ]
    assert fields[0].is_required and fields[1].is_required
    assert not fields[2].is_required


def test_add_group_positions_and_duplicates(event_service, conference, manager_id):
    group = event_service.add_group(conference.id, manager_id, name="VIP", capacity=1)

    assert group.position == 2
    assert [g.name for g in event_service.get_groups(conference.id)] == [
        "Attendee",
        "Speaker",
        "VIP",
    ]

    with pytest.raises(DuplicateGroupError):
        event_service.add_group(conference.id, manager_id, name="VIP", capacity=3)


@pytest.mark.parametrize("capacity", [0, -1])
def test_add_group_rejects_bad_capacity(event_service, conference, manager_id, capacity):
    with pytest.raises(ValidationError):
        event_service.add_group(
            conference.id, manager_id, name="Staff", capacity=capacity
        )


def test_add_group_stores_select_options(event_service, conference, manager_id):
    group = event_service.add_group(
        conference.id,
        manager_id,
        name="Volunteer",
        capacity=10,
        fields=[
            FieldSpec(label="Shift", type=FieldType.SELECT, options=[" AM ", "PM", ""])
        ],
    )

    shift = next(f for f in event_service.get_fields(group.id) if f.label == "Shift")
    assert shift.options == ["AM", "PM"]
    assert shift.field_type == FieldType.SELECT


def test_update_group_replaces_fields(event_service, conference, manager_id):
    group = event_service.get_groups(conference.id)[0]

    updated = event_service.update_group(
        conference.id,
        group.id,
        manager_id,
        capacity=10,
        fields=[
            FieldSpec(label="Name", required=True),
            FieldSpec(label="E-mail", required=True, role=FieldRole.EMAIL),
            FieldSpec(label="Dietary needs"),
        ],
    )

    assert updated.capacity == 10
    assert [f.label for f in event_service.get_fields(group.id)] == [
        "Name",
        "E-mail",
        "Dietary needs",
    ]


def test_rejected_update_changes_nothing(event_service, conference, manager_id):
    group = event_service.get_groups(conference.id)[0]

    with pytest.raises(StructuralSchemaError):
        event_service.update_group(
            conference.id,
            group.id,
            manager_id,
            name="Guests",
            capacity=50,
            fields=[FieldSpec(label="Full Name", required=True)],
        )

    group = event_service.get_groups(conference.id)[0]
    assert group.name == "Attendee"
    assert group.capacity == 2
    assert [f.label for f in event_service.get_fields(group.id)] == [
        "Full Name",
        "Email",
        "Company",
    ]


def test_update_group_name_collision(event_service, conference, manager_id):
    group = event_service.get_groups(conference.id)[0]

    with pytest.raises(DuplicateGroupError):
        event_service.update_group(conference.id, group.id, manager_id, name="Speaker")


def test_update_group_from_another_event(event_service, conference, manager_id):
    other = event_service.create_event(manager_id, "Other", date(2026, 1, 1))
    group = event_service.get_groups(conference.id)[0]

    with pytest.raises(GroupNotFoundError):
        event_service.update_group(other.id, group.id, manager_id, capacity=3)


def test_toggle_group(event_service, conference, manager_id):
    group = event_service.get_groups(conference.id)[0]

    assert event_service.toggle_group(conference.id, group.id, manager_id).is_open is False
    assert event_service.toggle_group(conference.id, group.id, manager_id).is_open is True


def test_delete_group_cascades(
    event_service, registration_service, conference, manager_id
):
    registration = registration_service.register(
        conference.slug,
        "Attendee",
        {"Full Name": "Sara", "Email": "sara@example.com"},
    )
    token = registration.token
    group_id = event_service.get_groups(conference.id)[0].id

    event_service.delete_group(conference.id, group_id, manager_id)

    assert [g.name for g in event_service.get_groups(conference.id)] == ["Speaker"]
    assert event_service.get_fields(group_id) == []
    assert registration_service.get_registration_by_token(token) is None


def test_delete_event_cascades(
    event_service, registration_service, conference, manager_id
):
    registration = registration_service.register(
        conference.slug,
        "Attendee",
        {"Full Name": "Sara", "Email": "sara@example.com"},
    )
    token = registration.token
    event_id = conference.id
    group_ids = [g.id for g in event_service.get_groups(event_id)]

    event_service.delete_event(event_id, manager_id)

    with pytest.raises(EventNotFoundError):
        event_service.get_event_for_manager(event_id, manager_id)
    assert event_service.get_groups(event_id) == []
    assert all(event_service.get_fields(gid) == [] for gid in group_ids)
    assert registration_service.get_registration_by_token(token) is None


def test_delete_unknown_group(event_service, conference, manager_id):
    with pytest.raises(GroupNotFoundError):
        event_service.delete_group(conference.id, uuid.uuid4(), manager_id)

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from eventhub.auth.identity import Identity
from eventhub.auth.policy import (
    Action,
    DenyReason,
    RsvpTarget,
    authorize,
    enforce,
    has_role,
    owns_event,
    sees_unapproved_events,
)
from eventhub.models import Event, Rsvp
from eventhub.models.user import UserRole
from eventhub.services.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    UnauthenticatedError,
)


def _identity(role: UserRole) -> Identity:
    now = datetime.now(timezone.utc)
    return Identity(id=uuid.uuid4(), role=role, issued_at=now, expires_at=now + timedelta(hours=1))


def _event(organizer: Identity, approved: bool = False) -> Event:
    return Event(
        id=uuid.uuid4(),
        title="Meetup",
        date=datetime(2030, 1, 1, tzinfo=timezone.utc),
        organizer_id=organizer.id,
        approved=approved,
    )


@pytest.fixture
def attendee():
    return _identity(UserRole.ATTENDEE)


@pytest.fixture
def organizer():
    return _identity(UserRole.ORGANIZER)


@pytest.fixture
def admin():
    return _identity(UserRole.ADMIN)


def test_role_gate_admin_satisfies_everything(attendee, organizer, admin):
    assert has_role(admin, UserRole.ORGANIZER)
    assert has_role(organizer, UserRole.ORGANIZER)
    assert not has_role(attendee, UserRole.ORGANIZER)
    assert not has_role(organizer, UserRole.ADMIN)


def test_ownership_predicate(attendee, organizer, admin):
    event = _event(organizer)
    assert owns_event(organizer, event)
    assert owns_event(admin, event)
    assert not owns_event(attendee, event)
    assert not owns_event(_identity(UserRole.ORGANIZER), event)


def test_create_event_requires_organizer_or_admin(attendee, organizer, admin):
    assert authorize(organizer, Action.CREATE_EVENT)
    assert authorize(admin, Action.CREATE_EVENT)
    decision = authorize(attendee, Action.CREATE_EVENT)
    assert not decision
    assert decision.reason == DenyReason.FORBIDDEN


def test_anonymous_actor_is_unauthenticated():
    for action in Action:
        decision = authorize(None, action)
        assert decision.reason == DenyReason.UNAUTHENTICATED


def test_only_admins_see_unapproved(attendee, organizer, admin):
    assert sees_unapproved_events(admin)
    assert not sees_unapproved_events(organizer)
    assert not sees_unapproved_events(attendee)
    assert authorize(attendee, Action.LIST_EVENTS)


@pytest.mark.parametrize("action", [Action.UPDATE_EVENT, Action.DELETE_EVENT])
def test_update_delete_ownership(action, attendee, organizer, admin):
    event = _event(organizer)
    assert authorize(organizer, action, event)
    assert authorize(admin, action, event)

    other_organizer = _identity(UserRole.ORGANIZER)
    for actor in (attendee, other_organizer):
        decision = authorize(actor, action, event)
        assert decision.reason == DenyReason.FORBIDDEN


@pytest.mark.parametrize("action", [Action.UPDATE_EVENT, Action.DELETE_EVENT, Action.APPROVE_EVENT])
def test_missing_event_is_not_found_before_ownership(action, attendee):
    decision = authorize(attendee, action, None)
    assert decision.reason == DenyReason.NOT_FOUND


def test_approve_requires_admin(organizer, admin):
    event = _event(organizer)
    assert authorize(admin, Action.APPROVE_EVENT, event)
    # Owning the event is not enough.
    assert authorize(organizer, Action.APPROVE_EVENT, event).reason == DenyReason.FORBIDDEN


def test_rsvp_rules(attendee, organizer):
    pending = _event(organizer)
    approved = _event(organizer, approved=True)

    assert authorize(attendee, Action.RSVP, RsvpTarget(event=None)).reason == DenyReason.NOT_FOUND
    assert authorize(attendee, Action.RSVP, RsvpTarget(event=pending)).reason == DenyReason.NOT_FOUND
    assert authorize(attendee, Action.RSVP, RsvpTarget(event=approved))

    existing = Rsvp(user_id=attendee.id, event_id=approved.id)
    decision = authorize(attendee, Action.RSVP, RsvpTarget(event=approved, existing=existing))
    assert decision.reason == DenyReason.CONFLICT


def test_enforce_maps_reasons_to_errors(attendee, organizer):
    enforce(authorize(organizer, Action.CREATE_EVENT))

    with pytest.raises(UnauthenticatedError):
        enforce(authorize(None, Action.LIST_EVENTS))
    with pytest.raises(PermissionDeniedError):
        enforce(authorize(attendee, Action.CREATE_EVENT))
    with pytest.raises(NotFoundError):
        enforce(authorize(attendee, Action.UPDATE_EVENT, None))

    approved = _event(organizer, approved=True)
    existing = Rsvp(user_id=attendee.id, event_id=approved.id)
    with pytest.raises(ConflictError) as exc_info:
        enforce(authorize(attendee, Action.RSVP, RsvpTarget(event=approved, existing=existing)))
    assert exc_info.value.code == "RSVP_ALREADY_EXISTS"

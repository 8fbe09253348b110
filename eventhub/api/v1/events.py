import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Response

from eventhub.api.errors import http_error_from_service
from eventhub.api.v1.schemas.events import (
    ApproveOut,
    EventCreate,
    EventDetailOut,
    EventOut,
    EventUpdate,
    RsvpCreatedOut,
    RsvpDetailOut,
)
from eventhub.auth.deps import CurrentIdentity, DBSession, EventsBroadcaster, require_role
from eventhub.auth.identity import Identity
from eventhub.models.user import UserRole
from eventhub.services import events_service, rsvp_service
from eventhub.services.exceptions import ServiceError

router = APIRouter(prefix="/events", tags=["events"])

OrganizerIdentity = Annotated[Identity, Depends(require_role(UserRole.ORGANIZER))]
AdminIdentity = Annotated[Identity, Depends(require_role(UserRole.ADMIN))]


@router.get("", response_model=list[EventDetailOut], summary="List events")
def list_events(identity: CurrentIdentity, db: DBSession):
    try:
        events = events_service.list_events(db, identity)
    except ServiceError as err:
        raise http_error_from_service(err) from None
    return [EventDetailOut.model_validate(e) for e in events]


@router.post("", response_model=EventOut, status_code=201, summary="Create Event")
def create_event(
    payload: EventCreate,
    identity: OrganizerIdentity,
    db: DBSession,
    broadcaster: EventsBroadcaster,
):
    try:
        event = events_service.create_event(db, broadcaster, identity, payload)
    except ServiceError as err:
        raise http_error_from_service(err) from None
    return EventOut.model_validate(event)


@router.put("/{event_id}", response_model=EventOut, summary="Update Event")
def update_event(
    event_id: uuid.UUID,
    patch: EventUpdate,
    identity: CurrentIdentity,
    db: DBSession,
    broadcaster: EventsBroadcaster,
):
    try:
        event = events_service.update_event(db, broadcaster, identity, event_id, patch)
    except ServiceError as err:
        raise http_error_from_service(err) from None
    return EventOut.model_validate(event)


@router.delete("/{event_id}", status_code=204, summary="Delete Event")
def delete_event(
    event_id: uuid.UUID,
    identity: CurrentIdentity,
    db: DBSession,
    broadcaster: EventsBroadcaster,
):
    try:
        events_service.delete_event(db, broadcaster, identity, event_id)
    except ServiceError as err:
        raise http_error_from_service(err) from None
    return Response(status_code=204)


@router.put("/{event_id}/approve", response_model=ApproveOut, summary="Approve Event (Admin)")
def approve_event(
    event_id: uuid.UUID,
    identity: AdminIdentity,
    db: DBSession,
    broadcaster: EventsBroadcaster,
):
    try:
        event = events_service.approve_event(db, broadcaster, identity, event_id)
    except ServiceError as err:
        raise http_error_from_service(err) from None
    return ApproveOut(event=EventOut.model_validate(event))


@router.post(
    "/{event_id}/rsvp",
    response_model=RsvpCreatedOut,
    status_code=201,
    summary="RSVP to Event",
    tags=["rsvp"],
)
def rsvp(
    event_id: uuid.UUID,
    identity: CurrentIdentity,
    db: DBSession,
    broadcaster: EventsBroadcaster,
):
    try:
        record = rsvp_service.rsvp(db, broadcaster, identity, event_id)
    except ServiceError as err:
        raise http_error_from_service(err) from None
    return RsvpCreatedOut(rsvp=RsvpDetailOut.model_validate(record))

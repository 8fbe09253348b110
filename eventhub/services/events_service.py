"""Event lifecycle: Pending -> Approved, and Deleted from either state.

Each transition commits before it publishes, so observers never hear about
a change that was rolled back.
"""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import StaleDataError

from eventhub.api.v1.schemas.events import EventCreate, EventOut, EventUpdate
from eventhub.auth.identity import Identity
from eventhub.auth.policy import Action, authorize, enforce, sees_unapproved_events
from eventhub.models import Event, Rsvp
from eventhub.realtime.broadcaster import Broadcaster, MessageType, make_message
from eventhub.services.error_codes import ErrorCode
from eventhub.services.exceptions import NotFoundError

logger = structlog.get_logger(__name__)

MUTABLE_FIELDS = ("title", "description", "date", "location")


def event_payload(event: Event) -> dict[str, Any]:
    return EventOut.model_validate(event).model_dump(mode="json")


def _get_event(db: Session, event_id: Any, *, for_update: bool = False) -> Event | None:
    stmt = select(Event).where(Event.id == event_id)
    if for_update:
        stmt = stmt.with_for_update()
    return db.scalar(stmt)


def _commit_event_change(db: Session, event_id: Any) -> None:
    try:
        db.commit()
    except StaleDataError as exc:
        # The row went away between load and flush (a concurrent delete).
        db.rollback()
        logger.info("event_gone_before_commit", event_id=str(event_id))
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "event not found") from exc
    except SQLAlchemyError:
        db.rollback()
        raise


def create_event(
    db: Session,
    broadcaster: Broadcaster,
    actor: Identity,
    payload: EventCreate,
) -> Event:
    enforce(authorize(actor, Action.CREATE_EVENT))

    event = Event(
        title=payload.title,
        description=payload.description,
        date=payload.date,
        location=payload.location,
        organizer_id=actor.id,
        approved=False,
    )
    db.add(event)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(event)

    logger.info("event_created", event_id=str(event.id), organizer_id=str(actor.id))
    broadcaster.publish(make_message(MessageType.NEW_EVENT, event_payload(event)))
    return event


def list_events(db: Session, actor: Identity) -> list[Event]:
    enforce(authorize(actor, Action.LIST_EVENTS))

    stmt = (
        select(Event)
        .options(selectinload(Event.rsvps))
        .order_by(Event.created_at.desc())
    )
    if not sees_unapproved_events(actor):
        stmt = stmt.where(Event.approved.is_(True))
    return list(db.scalars(stmt).unique().all())


def update_event(
    db: Session,
    broadcaster: Broadcaster,
    actor: Identity,
    event_id: Any,
    patch: EventUpdate,
) -> Event:
    event = _get_event(db, event_id, for_update=True)
    enforce(authorize(actor, Action.UPDATE_EVENT, event))

    patch_data = patch.model_dump(exclude_unset=True)
    for key in MUTABLE_FIELDS:
        if key in patch_data and patch_data[key] is not None:
            setattr(event, key, patch_data[key])

    db.add(event)
    _commit_event_change(db, event.id)
    db.refresh(event)

    logger.info("event_updated", event_id=str(event.id), actor_id=str(actor.id))
    broadcaster.publish(make_message(MessageType.UPDATE_EVENT, event_payload(event)))
    return event


def approve_event(
    db: Session,
    broadcaster: Broadcaster,
    actor: Identity,
    event_id: Any,
) -> Event:
    event = _get_event(db, event_id, for_update=True)
    enforce(authorize(actor, Action.APPROVE_EVENT, event))

    was_approved = event.approved
    # One-way gate: only ever set to True.
    event.approved = True
    db.add(event)
    _commit_event_change(db, event.id)
    db.refresh(event)

    logger.info(
        "event_approved",
        event_id=str(event.id),
        actor_id=str(actor.id),
        already_approved=was_approved,
    )
    # Re-approving still notifies observers.
    broadcaster.publish(make_message(MessageType.APPROVE_EVENT, event_payload(event)))
    return event


def delete_event(
    db: Session,
    broadcaster: Broadcaster,
    actor: Identity,
    event_id: Any,
) -> None:
    event = _get_event(db, event_id, for_update=True)
    enforce(authorize(actor, Action.DELETE_EVENT, event))

    deleted_id = str(event.id)
    try:
        # RSVPs go first so no row ever references a missing event.
        result = db.execute(delete(Rsvp).where(Rsvp.event_id == event.id))
        db.delete(event)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info(
        "event_deleted",
        event_id=deleted_id,
        actor_id=str(actor.id),
        rsvps_removed=result.rowcount or 0,
    )
    broadcaster.publish(make_message(MessageType.DELETE_EVENT, {"id": deleted_id}))

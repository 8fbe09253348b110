from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from eventhub.api.v1.schemas.events import RsvpDetailOut
from eventhub.auth.identity import Identity
from eventhub.auth.policy import Action, RsvpTarget, authorize, enforce
from eventhub.models import Event, Rsvp, User
from eventhub.realtime.broadcaster import Broadcaster, MessageType, make_message
from eventhub.services.error_codes import ErrorCode
from eventhub.services.exceptions import ConflictError, NotFoundError, UnauthenticatedError

logger = structlog.get_logger(__name__)


def rsvp_payload(record: Rsvp) -> dict[str, Any]:
    return RsvpDetailOut.model_validate(record).model_dump(mode="json")


def _find_rsvp(db: Session, actor: Identity, event_id: Any) -> Rsvp | None:
    return db.scalar(select(Rsvp).where(Rsvp.event_id == event_id, Rsvp.user_id == actor.id))


def _classify_integrity_error(db: Session, actor: Identity, event_id: Any, exc: IntegrityError):
    """Name the constraint an RSVP insert tripped over, after the rollback.

    Only the (user, event) uniqueness becomes a conflict. A missing user or
    event means a foreign key failed; anything else is re-raised as is.
    """
    if _find_rsvp(db, actor, event_id) is not None:
        logger.info("rsvp_conflict", event_id=str(event_id), user_id=str(actor.id))
        return ConflictError(
            ErrorCode.RSVP_ALREADY_EXISTS.value, "you have already RSVP'd to this event"
        )
    if db.get(User, actor.id) is None:
        logger.warning("rsvp_for_unknown_user", event_id=str(event_id), user_id=str(actor.id))
        return UnauthenticatedError(
            ErrorCode.UNAUTHENTICATED.value, "account for this token no longer exists"
        )
    if db.get(Event, event_id) is None:
        logger.info("rsvp_event_gone", event_id=str(event_id), user_id=str(actor.id))
        return NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "event not found or not approved")
    return exc


def rsvp(db: Session, broadcaster: Broadcaster, actor: Identity, event_id: Any) -> Rsvp:
    """Record that ``actor`` attends ``event_id``. Append-only; there is no cancel."""
    try:
        # Row lock serialises concurrent RSVPs for the same event where the
        # backend supports it; the unique constraint catches the rest.
        event = db.scalar(select(Event).where(Event.id == event_id).with_for_update())
        existing = _find_rsvp(db, actor, event.id) if event is not None else None
        enforce(authorize(actor, Action.RSVP, RsvpTarget(event=event, existing=existing)))

        record = Rsvp(user_id=actor.id, event_id=event.id)
        db.add(record)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        error = _classify_integrity_error(db, actor, event_id, exc)
        if error is exc:
            raise
        raise error from exc
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(record)
    logger.info("rsvp_created", event_id=str(record.event_id), user_id=str(actor.id))
    broadcaster.publish(make_message(MessageType.NEW_RSVP, rsvp_payload(record)))
    return record

"""Authorization decisions over (actor, action, resource).

Everything here is pure: no database access, no logging. Callers load the
resource, ask for a :class:`Decision` and turn a denial into a service error
with :func:`enforce`.

Two layers compose:

* :func:`has_role` is the coarse gate applied at the route (see
  ``eventhub.auth.deps.require_role``).
* :func:`owns_event` is the fine-grained ownership check applied by the
  services once the event has been loaded.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from eventhub.auth.identity import Identity
from eventhub.models import Event, Rsvp
from eventhub.models.user import UserRole
from eventhub.services.error_codes import ErrorCode
from eventhub.services.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    UnauthenticatedError,
)


class Action(str, enum.Enum):
    CREATE_EVENT = "create_event"
    LIST_EVENTS = "list_events"
    UPDATE_EVENT = "update_event"
    DELETE_EVENT = "delete_event"
    APPROVE_EVENT = "approve_event"
    RSVP = "rsvp"


class DenyReason(str, enum.Enum):
    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: DenyReason | None = None
    code: str | None = None
    message: str | None = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(allowed=True)


def deny(reason: DenyReason, code: ErrorCode, message: str) -> Decision:
    return Decision(allowed=False, reason=reason, code=code.value, message=message)


@dataclass(frozen=True)
class RsvpTarget:
    """What an RSVP decision needs: the event (if any) and the actor's existing RSVP."""

    event: Event | None
    existing: Rsvp | None = None


def has_role(actor: Identity, *roles: UserRole) -> bool:
    # ADMIN passes every role gate.
    return actor.role == UserRole.ADMIN or actor.role in roles


def owns_event(actor: Identity, event: Event) -> bool:
    return actor.is_admin or event.organizer_id == actor.id


def sees_unapproved_events(actor: Identity) -> bool:
    """Query-shaping rule for listing: only admins see pending events, owners included."""
    return actor.is_admin


def _event_exists(event: Event | None) -> Decision:
    if event is None:
        return deny(DenyReason.NOT_FOUND, ErrorCode.EVENT_NOT_FOUND, "event not found")
    return ALLOW


def authorize(actor: Identity | None, action: Action, resource: Any = None) -> Decision:
    if actor is None:
        return deny(DenyReason.UNAUTHENTICATED, ErrorCode.UNAUTHENTICATED, "authentication required")

    if action == Action.LIST_EVENTS:
        return ALLOW

    if action == Action.CREATE_EVENT:
        if has_role(actor, UserRole.ORGANIZER):
            return ALLOW
        return deny(
            DenyReason.FORBIDDEN,
            ErrorCode.ROLE_REQUIRED,
            "only organizers or admins can create events",
        )

    if action in (Action.UPDATE_EVENT, Action.DELETE_EVENT):
        found = _event_exists(resource)
        if not found:
            return found
        if owns_event(actor, resource):
            return ALLOW
        verb = "update" if action == Action.UPDATE_EVENT else "delete"
        return deny(
            DenyReason.FORBIDDEN,
            ErrorCode.NOT_EVENT_OWNER,
            f"you are not authorized to {verb} this event",
        )

    if action == Action.APPROVE_EVENT:
        found = _event_exists(resource)
        if not found:
            return found
        if actor.role == UserRole.ADMIN:
            return ALLOW
        return deny(DenyReason.FORBIDDEN, ErrorCode.ROLE_REQUIRED, "only admins can approve events")

    if action == Action.RSVP:
        target: RsvpTarget = resource
        if target.event is None or not target.event.approved:
            return deny(
                DenyReason.NOT_FOUND,
                ErrorCode.EVENT_NOT_FOUND,
                "event not found or not approved",
            )
        if target.existing is not None:
            return deny(
                DenyReason.CONFLICT,
                ErrorCode.RSVP_ALREADY_EXISTS,
                "you have already RSVP'd to this event",
            )
        return ALLOW

    raise ValueError(f"unknown action: {action!r}")


_ERRORS = {
    DenyReason.UNAUTHENTICATED: UnauthenticatedError,
    DenyReason.FORBIDDEN: PermissionDeniedError,
    DenyReason.NOT_FOUND: NotFoundError,
    DenyReason.CONFLICT: ConflictError,
}


def enforce(decision: Decision) -> None:
    if decision.allowed:
        return
    raise _ERRORS[decision.reason](decision.code, decision.message)

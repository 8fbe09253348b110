from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from eventhub.models.event import EventState


class SchemaBase(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="ignore")


def _strip_required(value: str | None) -> str | None:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


class EventCreate(SchemaBase):
    title: str = Field(max_length=200)
    description: str | None = None
    date: datetime
    location: str | None = Field(default=None, max_length=300)

    @field_validator("title", mode="after")
    @classmethod
    def _validate_title(cls, value: str) -> str:
        return _strip_required(value)


class EventUpdate(SchemaBase):
    """Only these fields are mutable; ``approved`` and ``organizer_id`` in a body are ignored."""

    title: str | None = Field(default=None, max_length=200)
    description: str | None = None
    date: datetime | None = None
    location: str | None = Field(default=None, max_length=300)

    @field_validator("title", mode="after")
    @classmethod
    def _validate_title(cls, value: str | None) -> str | None:
        return _strip_required(value)


class UserRef(SchemaBase):
    id: UUID
    email: str


class EventRef(SchemaBase):
    id: UUID
    title: str


class EventOut(SchemaBase):
    id: UUID
    title: str
    description: str | None = None
    date: datetime
    location: str | None = None
    organizer_id: UUID
    approved: bool
    state: EventState
    created_at: datetime
    updated_at: datetime


class RsvpOut(SchemaBase):
    id: UUID
    user_id: UUID
    event_id: UUID
    created_at: datetime


class EventDetailOut(EventOut):
    organizer: UserRef | None = None
    rsvps: list[RsvpOut] = Field(default_factory=list)


class ApproveOut(SchemaBase):
    message: str = "Event approved"
    event: EventOut


class RsvpDetailOut(RsvpOut):
    user: UserRef
    event: EventRef


class RsvpCreatedOut(SchemaBase):
    message: str = "RSVP successful"
    rsvp: RsvpDetailOut

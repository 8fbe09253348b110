from eventhub.api.v1.schemas.auth import LoginIn, LoginOut, MeOut, SignupIn, SignupOut
from eventhub.api.v1.schemas.events import (
    ApproveOut,
    EventCreate,
    EventDetailOut,
    EventOut,
    EventUpdate,
    RsvpCreatedOut,
    RsvpDetailOut,
    RsvpOut,
)

__all__ = [
    "SignupIn",
    "SignupOut",
    "LoginIn",
    "LoginOut",
    "MeOut",
    "EventCreate",
    "EventUpdate",
    "EventOut",
    "EventDetailOut",
    "ApproveOut",
    "RsvpOut",
    "RsvpCreatedOut",
    "RsvpDetailOut",
]

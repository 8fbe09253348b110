from enum import Enum


class ErrorCode(str, Enum):
    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    INVALID_INPUT = "INVALID_INPUT"
    INTERNAL = "INTERNAL"

    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    EMAIL_ALREADY_REGISTERED = "EMAIL_ALREADY_REGISTERED"
    USER_NOT_FOUND = "USER_NOT_FOUND"

    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    NOT_EVENT_OWNER = "NOT_EVENT_OWNER"
    ROLE_REQUIRED = "ROLE_REQUIRED"

    RSVP_ALREADY_EXISTS = "RSVP_ALREADY_EXISTS"

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from eventhub.models.user import UserRole

SELF_ASSIGNABLE_ROLES = {UserRole.ATTENDEE, UserRole.ORGANIZER}


class SignupIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
    role: str | None = None

    @field_validator("email", mode="after")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    def requested_role(self, admin_emails: list[str] | tuple[str, ...] = ()) -> UserRole:
        # Bootstrap admins come from configuration, never from the request body.
        if self.email in admin_emails:
            return UserRole.ADMIN
        # Unknown or privileged roles quietly fall back to ATTENDEE.
        try:
            role = UserRole((self.role or "").upper())
        except ValueError:
            return UserRole.ATTENDEE
        return role if role in SELF_ASSIGNABLE_ROLES else UserRole.ATTENDEE


class SignupOut(BaseModel):
    message: str = "User created successfully. Check your (mock) email!"
    user_id: UUID
    email: str
    role: UserRole


class LoginIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email", mode="after")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class LoginOut(BaseModel):
    message: str = "Login successful!"
    token: str
    token_type: str = "bearer"
    expires_in: int
    user_id: UUID
    role: UserRole


class MeOut(BaseModel):
    user_id: UUID
    role: UserRole
    issued_at: datetime
    expires_at: datetime

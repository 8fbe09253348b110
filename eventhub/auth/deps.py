from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from eventhub.auth.identity import Identity
from eventhub.auth.jwt import InvalidTokenError, verify_access_token
from eventhub.auth.policy import has_role
from eventhub.db import get_db
from eventhub.models.user import UserRole
from eventhub.realtime.broadcaster import Broadcaster
from eventhub.services.error_codes import ErrorCode
from eventhub.services.mailer import Mailer

DBSession = Annotated[Session, Depends(get_db)]


def _unauthorized(detail: str = "unauthorized") -> HTTPException:
    return HTTPException(
        status_code=401,
        detail={"code": ErrorCode.UNAUTHENTICATED.value, "message": detail},
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_identity(request: Request) -> Identity:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        raise _unauthorized("authorization header missing or invalid")

    token = auth.removeprefix("Bearer ").strip()
    try:
        return verify_access_token(token, settings=request.app.state.settings)
    except InvalidTokenError:
        raise _unauthorized("invalid or expired token") from None


CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]


def require_role(*roles: UserRole):
    """Route-level role gate. ADMIN always passes."""

    def _guard(identity: CurrentIdentity) -> Identity:
        if not has_role(identity, *roles):
            required = ", ".join(r.value for r in roles)
            raise HTTPException(
                status_code=403,
                detail={
                    "code": ErrorCode.FORBIDDEN.value,
                    "message": f"access denied, requires {required} role",
                },
            )
        return identity

    return _guard


def get_broadcaster(request: Request) -> Broadcaster:
    return request.app.state.broadcaster


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


EventsBroadcaster = Annotated[Broadcaster, Depends(get_broadcaster)]
AppMailer = Annotated[Mailer, Depends(get_mailer)]

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import jwt
from jwt import PyJWTError

from eventhub.auth.identity import Identity
from eventhub.core.config import Settings, settings as default_settings
from eventhub.models.user import UserRole


class InvalidTokenError(ValueError):
    pass


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(
    user_id: uuid.UUID,
    role: UserRole | str,
    ttl_seconds: int | None = None,
    settings: Settings = default_settings,
) -> str:
    now = _now()
    exp = now + timedelta(seconds=ttl_seconds or settings.access_token_ttl_seconds)
    payload = {
        "sub": str(user_id),
        "role": UserRole(role).value,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_access_token(token: str, settings: Settings = default_settings) -> Identity:
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            options={"require": ["sub", "role", "iat", "exp"]},
        )
    except PyJWTError as exc:
        raise InvalidTokenError("invalid access token") from exc

    try:
        return Identity(
            id=uuid.UUID(claims["sub"]),
            role=UserRole(claims["role"]),
            issued_at=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
        )
    except (TypeError, ValueError) as exc:
        raise InvalidTokenError("malformed access token claims") from exc

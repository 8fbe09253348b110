from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime

from eventhub.models.user import UserRole


@dataclass(frozen=True)
class Identity:
    """The authenticated actor, as asserted by a verified access token.

    Built only from token claims; the users table is not consulted per request,
    so a role change takes effect once a new token is issued.
    """

    id: uuid.UUID
    role: UserRole
    issued_at: datetime
    expires_at: datetime

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

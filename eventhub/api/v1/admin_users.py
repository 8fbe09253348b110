from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from eventhub.auth.deps import require_role
from eventhub.auth.identity import Identity
from eventhub.db import get_db
from eventhub.models import User
from eventhub.models.user import UserRole
from eventhub.services.error_codes import ErrorCode

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/admin/users",
    tags=["admin"],
    dependencies=[Depends(require_role(UserRole.ADMIN))],
)

DBSession = Annotated[Session, Depends(get_db)]
AdminIdentity = Annotated[Identity, Depends(require_role(UserRole.ADMIN))]


class UserOut(BaseModel):
    user_id: uuid.UUID
    email: str
    role: UserRole
    created_at: datetime


def _user_out(u: User) -> UserOut:
    return UserOut(user_id=u.id, email=u.email, role=u.role, created_at=u.created_at)


@router.get("", response_model=list[UserOut])
def list_users(
    db: DBSession,
    query: str | None = Query(default=None, min_length=1),
    limit: int = Query(default=50, ge=1, le=200),
):
    stmt = select(User).order_by(User.created_at.desc()).limit(limit)
    if query:
        stmt = stmt.where(User.email.ilike(f"%{query.strip().lower()}%"))
    return [_user_out(u) for u in db.scalars(stmt).all()]


class UpdateUserIn(BaseModel):
    role: UserRole


@router.patch("/{user_id}", response_model=UserOut)
def update_user(user_id: uuid.UUID, payload: UpdateUserIn, db: DBSession, admin: AdminIdentity):
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(
            status_code=404,
            detail={"code": ErrorCode.USER_NOT_FOUND.value, "message": "user not found"},
        )

    if user.id == admin.id:
        raise HTTPException(
            status_code=400,
            detail={"code": ErrorCode.INVALID_INPUT.value, "message": "cannot change own role"},
        )

    previous = user.role
    user.role = payload.role
    db.add(user)
    db.commit()
    db.refresh(user)

    # Takes effect when the user next logs in; issued tokens keep the old role.
    logger.info(
        "user_role_changed",
        user_id=str(user.id),
        admin_id=str(admin.id),
        previous=previous.value,
        role=user.role.value,
    )
    return _user_out(user)

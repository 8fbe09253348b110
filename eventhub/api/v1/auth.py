from __future__ import annotations

import structlog
from fastapi import APIRouter, BackgroundTasks, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from eventhub.api.v1.schemas.auth import LoginIn, LoginOut, MeOut, SignupIn, SignupOut
from eventhub.auth.deps import AppMailer, CurrentIdentity, DBSession
from eventhub.auth.jwt import create_access_token
from eventhub.auth.password import hash_password, needs_rehash, verify_password
from eventhub.models import User
from eventhub.services.error_codes import ErrorCode

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _conflict() -> HTTPException:
    return HTTPException(
        status_code=409,
        detail={
            "code": ErrorCode.EMAIL_ALREADY_REGISTERED.value,
            "message": "user with this email already exists",
        },
    )


def _invalid_credentials() -> HTTPException:
    return HTTPException(
        status_code=401,
        detail={"code": ErrorCode.INVALID_CREDENTIALS.value, "message": "invalid credentials"},
        headers={"WWW-Authenticate": "Bearer"},
    )


@router.post("/signup", response_model=SignupOut, status_code=201, summary="User Signup")
def signup(
    payload: SignupIn,
    request: Request,
    db: DBSession,
    mailer: AppMailer,
    background_tasks: BackgroundTasks,
):
    existing = db.scalar(select(User).where(User.email == payload.email))
    if existing:
        raise _conflict()

    user = User(
        email=payload.email,
        password_hash=hash_password(payload.password),
        role=payload.requested_role(request.app.state.settings.admin_emails),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise _conflict() from None

    logger.info("user_signed_up", user_id=str(user.id), role=user.role.value)
    # Runs after the response is sent; Mailer.notify swallows and logs its own failures.
    background_tasks.add_task(mailer.notify, user.email)

    return SignupOut(user_id=user.id, email=user.email, role=user.role)


@router.post("/login", response_model=LoginOut, summary="User Login")
def login(payload: LoginIn, request: Request, db: DBSession):
    user = db.scalar(select(User).where(User.email == payload.email))
    if not user or not verify_password(payload.password, user.password_hash):
        raise _invalid_credentials()

    if needs_rehash(user.password_hash):
        user.password_hash = hash_password(payload.password)
        db.commit()
        logger.info("password_rehashed", user_id=str(user.id))

    settings = request.app.state.settings
    token = create_access_token(user.id, user.role, settings=settings)
    logger.info("user_logged_in", user_id=str(user.id))
    return LoginOut(
        token=token,
        expires_in=settings.access_token_ttl_seconds,
        user_id=user.id,
        role=user.role,
    )


@router.get("/me", response_model=MeOut)
def me(identity: CurrentIdentity):
    return MeOut(
        user_id=identity.id,
        role=identity.role,
        issued_at=identity.issued_at,
        expires_at=identity.expires_at,
    )

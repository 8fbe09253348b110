import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from eventhub.services.error_codes import ErrorCode
from eventhub.services.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
    UnauthenticatedError,
    ValidationError,
)

logger = structlog.get_logger(__name__)


def http_error_from_service(err: ServiceError) -> HTTPException:
    headers = None
    if isinstance(err, UnauthenticatedError):
        status = 401
        headers = {"WWW-Authenticate": "Bearer"}
    elif isinstance(err, NotFoundError):
        status = 404
    elif isinstance(err, PermissionDeniedError):
        status = 403
    elif isinstance(err, ConflictError):
        status = 409
    elif isinstance(err, ValidationError):
        status = 400
    else:
        status = 500

    return HTTPException(
        status_code=status,
        detail={"code": err.code, "message": err.message},
        headers=headers,
    )


def _internal_error() -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"detail": {"code": ErrorCode.INTERNAL.value, "message": "internal server error"}},
    )


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [".".join(str(p) for p in err.get("loc", ()) if p != "body") for err in exc.errors()]
    return JSONResponse(
        status_code=400,
        content={
            "detail": {
                "code": ErrorCode.INVALID_INPUT.value,
                "message": "invalid or missing fields",
                "fields": [f for f in fields if f],
            }
        },
    )


async def _service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    http_exc = http_error_from_service(exc)
    return JSONResponse(
        status_code=http_exc.status_code,
        content={"detail": http_exc.detail},
        headers=http_exc.headers,
    )


async def _database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    # Driver detail is logged, never returned.
    logger.error(
        "database_error",
        method=request.method,
        path=request.url.path,
        error=repr(exc),
    )
    return _internal_error()


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_error",
        method=request.method,
        path=request.url.path,
        error=repr(exc),
    )
    return _internal_error()


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(ServiceError, _service_error_handler)
    app.add_exception_handler(SQLAlchemyError, _database_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

"""Single translation boundary from exceptions to the JSON error envelope.

Domain code raises ``AppError`` subclasses; infrastructure exceptions
(SQLAlchemy, jose, slowapi, request validation) are mapped onto the same
taxonomy here so clients never see raw library errors.
"""

import logging
import traceback
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from jose import ExpiredSignatureError, JWTError
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from photohub.core.config import get_settings
from photohub.core.errors import AppError, ErrorContext

logger = logging.getLogger(__name__)


def error_response(
    request: Request,
    status_code: int,
    message: str,
    context: dict | None = None,
    exc: BaseException | None = None,
    timestamp: datetime | None = None,
) -> JSONResponse:
    settings = get_settings()
    error: dict = {
        "message": message,
        "status": status_code,
        "timestamp": (timestamp or datetime.now(timezone.utc)).isoformat(),
        "path": request.url.path,
        "method": request.method,
    }
    if context:
        error["context"] = context
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        error["requestId"] = request_id
    if exc is not None and settings.is_development and settings.include_error_stack:
        error["stack"] = traceback.format_exception(exc)
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


# ── Handlers ─────────────────────────────────────────────────

async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return error_response(request, exc.status, exc.message, exc.context, exc, exc.timestamp)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
            "code": err.get("type", ""),
        }
        for err in exc.errors()
    ]
    context = ErrorContext(
        field="validation", value=details, suggestion="Check your input data format",
    )
    return error_response(request, status.HTTP_400_BAD_REQUEST, "Validation failed", context, exc)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(request, exc.status_code, str(exc.detail), exc=exc)


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    detail = str(exc.orig).lower()
    if "unique" in detail or "duplicate" in detail:
        return error_response(
            request,
            status.HTTP_409_CONFLICT,
            "Resource already exists",
            ErrorContext(constraint="unique", suggestion="Use a different value"),
            exc,
        )
    if "foreign key" in detail:
        return error_response(
            request,
            status.HTTP_400_BAD_REQUEST,
            "Referenced resource does not exist",
            ErrorContext(constraint="foreign_key"),
            exc,
        )
    return error_response(request, status.HTTP_400_BAD_REQUEST, "Invalid data", exc=exc)


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    if isinstance(exc, (OperationalError, InterfaceError)):
        logger.error("Database unavailable: %s", exc)
        return error_response(
            request, status.HTTP_503_SERVICE_UNAVAILABLE, "Database connection failed", exc=exc,
        )
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Database error", exc=exc)


async def jwt_error_handler(request: Request, exc: JWTError) -> JSONResponse:
    message = "Token expired" if isinstance(exc, ExpiredSignatureError) else "Invalid token"
    return error_response(request, status.HTTP_401_UNAUTHORIZED, message, exc=exc)


def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    # SlowAPIMiddleware calls this handler without awaiting it.
    return error_response(
        request,
        status.HTTP_429_TOO_MANY_REQUESTS,
        "Too many requests, please try again later",
        ErrorContext(constraint=str(exc.detail)),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    settings = get_settings()
    logger.error(
        "Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc,
    )
    message = str(exc) if settings.is_development and str(exc) else "Internal server error"
    return error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, message, exc=exc)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(JWTError, jwt_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

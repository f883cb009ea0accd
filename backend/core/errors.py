"""Typed failures raised by the services and their HTTP mapping."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from backend.core.responses import error_body

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base class for failures surfaced directly to the caller."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "Request failed"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.message
        super().__init__(self.detail)


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Validation failed"


class DuplicateEmail(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    message = "user with this email already exists"


class InvalidCredentials(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "invalid credentials"


class InvalidRefreshToken(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "invalid refresh token"


class UserNotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "user not found"


class IncorrectPassword(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "current password is incorrect"


class InvalidToken(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "invalid token"


class Forbidden(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "insufficient permissions"


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "resource not found"


class Conflict(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    message = "resource already exists"


class UpstreamServiceError(ServiceError):
    status_code = status.HTTP_502_BAD_GATEWAY
    message = "upstream service unavailable"


# Envelope messages per error kind; the specific reason goes in "error".
_ERROR_MESSAGES: dict[type[ServiceError], str] = {
    ValidationError: "Validation failed",
    DuplicateEmail: "Registration failed",
    InvalidCredentials: "Login failed",
    InvalidRefreshToken: "Token refresh failed",
    InvalidToken: "Invalid token",
    IncorrectPassword: "Password change failed",
    Forbidden: "Forbidden",
    UpstreamServiceError: "Upstream service error",
}


def _message_for(exc: ServiceError) -> str:
    for error_type in type(exc).__mro__:
        if error_type in _ERROR_MESSAGES:
            return _ERROR_MESSAGES[error_type]
    return exc.message[:1].upper() + exc.message[1:]


async def handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error('%s %s failed: %s', request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=error_body(_message_for(exc), exc.detail))


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    reasons = []
    for error in exc.errors():
        location = '.'.join(str(part) for part in error.get('loc', ()) if part != 'body')
        reasons.append(f"{location}: {error.get('msg')}" if location else str(error.get('msg')))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body('Validation failed', '; '.join(reasons)),
    )


async def handle_database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error('Database error on %s %s', request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=error_body('Database unavailable', 'Verify DATABASE_URL and database credentials.'),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, handle_service_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(SQLAlchemyError, handle_database_error)

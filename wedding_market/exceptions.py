"""
Domain exceptions and the handlers that render them

Every error leaves the API as {"error": <code>, "message": <text>}.
"""
import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class MarketplaceError(Exception):
    """Base class for errors surfaced to API clients"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "InternalError"
    default_message = "Something went wrong"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(MarketplaceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "ValidationError"
    default_message = "Invalid request"


class AuthenticationError(MarketplaceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "Unauthenticated"
    default_message = "Could not validate credentials"


class TokenExpired(AuthenticationError):
    code = "Expired"
    default_message = "Session expired, please log in again"


class Unauthorized(MarketplaceError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "Unauthorized"
    default_message = "You are not allowed to perform this action"


class NotFound(MarketplaceError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NotFound"
    default_message = "Resource not found"


class Conflict(MarketplaceError):
    status_code = status.HTTP_409_CONFLICT
    code = "Conflict"
    default_message = "Resource already exists"


class InvalidStateTransition(MarketplaceError):
    status_code = status.HTTP_409_CONFLICT
    code = "InvalidStateTransition"
    default_message = "Booking cannot move to the requested state"


class TooEarly(MarketplaceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "TooEarly"
    default_message = "Booking cannot be completed before the event date"


class InvalidOrExpiredToken(MarketplaceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "InvalidOrExpiredToken"
    default_message = "Invalid or expired token"


class TooManyRequests(MarketplaceError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "TooManyRequests"
    default_message = "Too many requests, try again later"


class PaymentsNotImplemented(MarketplaceError):
    status_code = status.HTTP_501_NOT_IMPLEMENTED
    code = "PaymentsNotImplemented"
    default_message = "Online payment is coming soon"


class InternalError(MarketplaceError):
    pass


def _error_response(status_code: int, code: str, message: str, **extra) -> JSONResponse:
    content = {"error": code, "message": message}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.warning(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    response = _error_response(exc.status_code, exc.code, exc.message)
    if headers:
        response.headers.update(headers)
    return response


async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        details.append({"field": location, "message": error.get("msg", "invalid value")})
    message = details[0]["message"] if details else "Invalid request"
    if details and details[0]["field"]:
        message = f"{details[0]['field']}: {message}"
    return _error_response(status.HTTP_400_BAD_REQUEST, ValidationError.code, message, details=details)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    code = "NotFound" if exc.status_code == status.HTTP_404_NOT_FOUND else "HTTPError"
    return _error_response(exc.status_code, code, str(exc.detail))


async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Database error on {request.method} {request.url.path}")
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        InternalError.code,
        InternalError.default_message
    )

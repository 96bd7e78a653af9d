"""
Application error taxonomy and the handlers that render it.

Every error leaves the API as {"success": false, "message": "..."} so
clients only need to understand one shape.
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

SERVICE_UNAVAILABLE_MESSAGE = "Service temporarily unavailable"


class AppError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Bad request"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None,
                 headers: Optional[dict] = None):
        self.message = message or self.message
        if status_code is not None:
            self.status_code = status_code
        self.headers = headers
        super().__init__(self.message)


class ValidationError(AppError):
    """Missing or malformed input"""
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid input"


class AuthenticationError(AppError):
    """Bad credentials; the message is deliberately generic"""
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Email or password is incorrect"


class AuthorizationError(AppError):
    """Missing, invalid or expired token"""
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Could not validate credentials"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Resource not found"


class RateLimitError(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    message = "Too many requests, please try again later"


class ServiceUnavailableError(AppError):
    """Persistence layer unreachable"""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    message = SERVICE_UNAVAILABLE_MESSAGE


def error_response(message: str, status_code: int, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
        headers=headers,
    )


def _first_validation_message(err: RequestValidationError) -> str:
    errors = err.errors()
    if not errors:
        return "Invalid input"
    first = errors[0]
    # Skip the "body" prefix so the field name reads naturally
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid input")
    return f"{location}: {message}" if location else message


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, err: AppError):
        return error_response(err.message, err.status_code, err.headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, err: RequestValidationError):
        return error_response(_first_validation_message(err), status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, err: StarletteHTTPException):
        return error_response(str(err.detail), err.status_code, getattr(err, "headers", None))

    @app.exception_handler(OperationalError)
    async def handle_database_unavailable(request: Request, err: OperationalError):
        logger.error(f"Database unavailable on {request.method} {request.url.path}: {err.orig}")
        return error_response(SERVICE_UNAVAILABLE_MESSAGE, status.HTTP_503_SERVICE_UNAVAILABLE)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, err: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}", exc_info=err)
        return error_response(SERVICE_UNAVAILABLE_MESSAGE, status.HTTP_503_SERVICE_UNAVAILABLE)

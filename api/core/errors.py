"""
Error taxonomy shared by every feature package.

Lower layers raise these unchanged. `register_exception_handlers` is the one
place that turns an error kind into an HTTP status and a JSON body.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AuthError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidCredentialsError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class SerializationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT


class PersistenceError(ServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class TokenIssueError(ServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_response(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map service errors (and malformed request bodies) to HTTP responses.
    """

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "request_failed method=%s path=%s kind=%s error=%s",
                request.method,
                request.url.path,
                type(exc).__name__,
                exc.message,
                exc_info=exc.__cause__ or exc,
            )
        else:
            logger.info(
                "request_rejected method=%s path=%s kind=%s status=%s error=%s",
                request.method,
                request.url.path,
                type(exc).__name__,
                exc.status_code,
                exc.message,
            )

        headers = None
        if isinstance(exc, AuthError):
            headers = {"WWW-Authenticate": "Bearer"}
        return _error_response(exc.status_code, exc.message, headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Malformed JSON, wrong types and bad path params are client errors.
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = str(first.get("msg") or "Invalid request body.")
        if location:
            message = f"{location}: {message}"
        logger.info(
            "request_malformed method=%s path=%s error=%s",
            request.method,
            request.url.path,
            message,
        )
        return _error_response(status.HTTP_400_BAD_REQUEST, message)

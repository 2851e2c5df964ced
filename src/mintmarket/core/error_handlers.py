"""Unified error handling for the MintMarket API."""

import traceback
from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .exceptions import (
    AuthenticationError,
    ConflictError,
    MintMarketError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
    ValidationError,
)
from .logging import ContextLogger
from .settings import settings

logger = ContextLogger(__name__)


class ErrorResponse:
    """Standardized error response structure."""

    @staticmethod
    def create_response(
        status_code: int,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
        errors: list[dict[str, Any]] | None = None,
        correlation_id: str | None = None,
        include_traceback: bool = False,
        exception: Exception | None = None,
    ) -> JSONResponse:
        """Create standardized error response."""
        content: dict[str, Any] = {
            "error": True,
            "message": message,
            "error_code": error_code or "UNKNOWN_ERROR",
            "status_code": status_code,
        }

        if errors:
            content["errors"] = errors

        if details:
            content["details"] = details

        if correlation_id:
            content["correlation_id"] = correlation_id

        if include_traceback and exception:
            content["traceback"] = traceback.format_exception(
                type(exception), exception, exception.__traceback__
            )

        return JSONResponse(status_code=status_code, content=content)


def status_for(exc: MintMarketError) -> int:
    """Map an exception from the taxonomy onto its HTTP status code."""
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, AuthenticationError):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, PermissionDeniedError):
        return status.HTTP_403_FORBIDDEN
    if isinstance(exc, ServiceError):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    if isinstance(exc, (ValidationError, ConflictError)):
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_400_BAD_REQUEST


async def mintmarket_error_handler(
    request: Request, exc: MintMarketError
) -> JSONResponse:
    """Handle all MintMarket-specific errors in a unified way."""
    correlation_id = getattr(request.state, "correlation_id", None)
    status_code = status_for(exc)

    log_message = f"{exc.__class__.__name__}: {exc.message}"
    extra = {
        "error_code": exc.error_code,
        "correlation_id": correlation_id,
        "exception_type": exc.__class__.__name__,
        "path": request.url.path,
    }

    if status_code >= 500:
        logger.error(log_message, extra=extra, exc_info=True)
        # Persistence failures surface without internal detail
        message = "Internal server error occurred"
        details = None
    else:
        logger.warning(log_message, extra=extra)
        message = exc.message
        details = exc.details

    return ErrorResponse.create_response(
        status_code=status_code,
        message=message,
        error_code=exc.error_code,
        details=details,
        errors=getattr(exc, "errors", None),
        correlation_id=correlation_id,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render FastAPI request validation failures as 400 responses."""
    correlation_id = getattr(request.state, "correlation_id", None)
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())[1:])
            or ".".join(str(part) for part in error.get("loc", ())),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]

    logger.warning(
        "Request validation failed",
        extra={"correlation_id": correlation_id, "path": request.url.path},
    )

    return ErrorResponse.create_response(
        status_code=status.HTTP_400_BAD_REQUEST,
        message="Validation failed",
        error_code="ValidationError",
        errors=errors,
        correlation_id=correlation_id,
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Render framework HTTP errors (404 routes, 405 methods) in the same envelope."""
    correlation_id = getattr(request.state, "correlation_id", None)
    response = ErrorResponse.create_response(
        status_code=exc.status_code,
        message=str(exc.detail),
        error_code="HTTPException",
        correlation_id=correlation_id,
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    correlation_id = getattr(request.state, "correlation_id", None)

    logger.error(
        f"Unexpected error: {exc}",
        extra={
            "correlation_id": correlation_id,
            "exception_type": exc.__class__.__name__,
            "path": request.url.path,
            "method": request.method,
        },
        exc_info=True,
    )

    include_traceback = settings.debug

    return ErrorResponse.create_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message="Internal server error occurred",
        error_code="INTERNAL_SERVER_ERROR",
        correlation_id=correlation_id,
        include_traceback=include_traceback,
        exception=exc if include_traceback else None,
    )


def register_error_handlers(app) -> None:
    """Register all error handlers with the FastAPI app."""

    # Handle all MintMarketError subclasses with one handler
    app.add_exception_handler(MintMarketError, mintmarket_error_handler)

    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    # Handle unexpected exceptions
    app.add_exception_handler(Exception, generic_exception_handler)

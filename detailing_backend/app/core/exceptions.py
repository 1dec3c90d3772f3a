"""
Custom exceptions and error handlers for consistent error responses.

Every API error body has the shape {"error": <message>}. Typed application
errors keep their status code; anything else collapses to a generic 500.
"""

import logging
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict, Tuple

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Internal server error"


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class AuthenticationError(AppException):
    """Raised when no valid session is present."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            message=message,
            error_code="ERR_AUTH_001",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class InsufficientPermissionsError(AppException):
    """Raised when user doesn't have permission to perform an action."""

    def __init__(self, message: str = "Insufficient permissions", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_PERM_001",
            status_code=status.HTTP_403_FORBIDDEN,
            details=details
        )


class ResourceNotFoundError(AppException):
    """
    Raised when requested resource is not found or not visible to the caller.

    The two causes are reported identically to clients.
    """

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class RequestValidationFailed(AppException):
    """Raised when required request fields are missing or malformed."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="ERR_VALIDATION",
            status_code=status.HTTP_400_BAD_REQUEST
        )


class DuplicateCommandError(AppException):
    """Raised when a command is replayed with an idempotency key already used."""

    def __init__(self, message: str = "Duplicate request"):
        super().__init__(
            message=message,
            error_code="ERR_DUPLICATE_001",
            status_code=status.HTTP_409_CONFLICT
        )


class UpstreamServiceError(AppException):
    """Raised when the data platform or payment processor call fails."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_UPSTREAM_001",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details
        )


class ContractViolationError(UpstreamServiceError):
    """Raised when a remote procedure returns data in an unexpected shape."""

    def __init__(self, procedure: str, reason: str = ""):
        super().__init__(
            message=f"Unexpected response from {procedure}",
            details={"procedure": procedure, "reason": reason}
        )
        self.error_code = "ERR_CONTRACT_001"


class ConfigurationError(AppException):
    """Raised when required server configuration is absent."""

    def __init__(self, missing: str = ""):
        message = "Server configuration error"
        if missing:
            message = f"{message}: Missing {missing}"
        super().__init__(
            message=message,
            error_code="ERR_CONFIG_001",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )


def map_api_error(exc: Exception) -> Tuple[int, Dict[str, str]]:
    """
    Map any exception to an (HTTP status, JSON body) pair.

    Authorization, not-found, validation, conflict and configuration errors
    forward their message. Upstream failures and unknown exceptions are
    logged and collapsed to a generic body.
    """
    if isinstance(exc, UpstreamServiceError):
        logger.error("Upstream failure: %s %s", exc.message, exc.details)
        return exc.status_code, {"error": GENERIC_ERROR_MESSAGE}
    if isinstance(exc, AppException):
        return exc.status_code, {"error": exc.message}

    logger.error("API handler error: %s: %s", type(exc).__name__, exc, exc_info=exc)
    return status.HTTP_500_INTERNAL_SERVER_ERROR, {"error": GENERIC_ERROR_MESSAGE}


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    status_code, body = map_api_error(exc)
    return JSONResponse(status_code=status_code, content=body)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors (reported as 400)."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    message = f"Invalid {field}: {first.get('msg')}" if field else "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": message}
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    status_code, body = map_api_error(exc)
    return JSONResponse(status_code=status_code, content=body)

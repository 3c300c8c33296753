"""
Exception classes and FastAPI error handlers for the BMI Service.

Error taxonomy:
- Startup-fatal: RecordFileCorruptError, TemplateMissingError (raised from lifespan)
- Request validation: InvalidMeasurementError, request/body validation errors (400)
- Persistence failure: StorageError (logged by BMIService, never shown to the caller)
- Presentation failure: PresentationError (500)

All error responses are plain text; the page is a browser form, not a JSON API.

Usage:
    from core.exceptions import InvalidMeasurementError

    raise InvalidMeasurementError(weight="abc", height="1.75")
"""
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


# =============================================================================
# BASE EXCEPTION CLASS
# =============================================================================

class BMIServiceError(Exception):
    """
    Base exception for all BMI Service domain errors.
    
    Carries an HTTP status code and a human-readable detail message.
    """
    
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "An unexpected error occurred"
    
    def __init__(
        self,
        detail: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs: Any
    ):
        """
        Initialize the exception.
        
        Args:
            detail: Human-readable error message. Uses class default if not provided.
            status_code: HTTP status code. Uses class default if not provided.
            **kwargs: Additional context for logs.
        """
        self.detail = detail or self.__class__.detail
        self.status_code = status_code or self.__class__.status_code
        self.context = kwargs
        super().__init__(self.detail)


# =============================================================================
# REQUEST VALIDATION
# =============================================================================

class InvalidMeasurementError(BMIServiceError):
    """Raised when weight or height is not a valid positive number."""
    
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid input. Please enter valid positive numbers for weight and height."


# =============================================================================
# STORAGE EXCEPTIONS
# =============================================================================

class StorageError(BMIServiceError):
    """Raised when reading or writing the records file fails."""
    
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Record storage operation failed"
    
    def __init__(self, operation: Optional[str] = None, detail: Optional[str] = None, **kwargs: Any):
        if detail is None and operation:
            detail = f"Record storage error during {operation}"
        super().__init__(detail=detail, operation=operation, **kwargs)


class RecordFileCorruptError(StorageError):
    """Raised when the records file exists but is not a valid record list."""
    
    detail = "Records file is malformed"


# =============================================================================
# PRESENTATION EXCEPTIONS
# =============================================================================

class PresentationError(BMIServiceError):
    """Raised when the page template fails to render."""
    
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Error rendering template"


class TemplateMissingError(PresentationError):
    """Raised at startup when the page template cannot be found."""
    
    detail = "Page template not found"


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

async def bmi_service_exception_handler(
    request: Request,
    exc: BMIServiceError
) -> PlainTextResponse:
    """Log a domain error and return its detail as plain text."""
    log_level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(
        log_level,
        f"BMIServiceError: {exc.detail}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method,
            "context": exc.context
        }
    )
    return PlainTextResponse(exc.detail, status_code=exc.status_code)


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException
) -> PlainTextResponse:
    """Return router-level errors (404, 405, body parsing 400) as plain text."""
    logger.warning(
        f"HTTP error: {exc.detail}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method
        }
    )
    return PlainTextResponse(
        str(exc.detail),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> PlainTextResponse:
    """Map FastAPI request validation errors to a plain 400."""
    logger.warning(
        "Request validation failed",
        extra={
            "path": request.url.path,
            "method": request.method,
            "errors": str(exc.errors())
        }
    )
    return PlainTextResponse(
        f"Error parsing form data: {exc.errors()}",
        status_code=status.HTTP_400_BAD_REQUEST
    )


async def generic_exception_handler(
    request: Request,
    exc: Exception
) -> PlainTextResponse:
    """Log the full exception and return a generic 500."""
    logger.exception(
        f"Unhandled exception: {exc}",
        extra={
            "path": request.url.path,
            "method": request.method
        }
    )
    return PlainTextResponse(
        "An internal server error occurred",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.
    
    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(BMIServiceError, bmi_service_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

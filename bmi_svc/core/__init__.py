"""
Core module for configuration, logging, errors and shared domain rules.

This module provides:
- Settings: Application configuration via pydantic-settings
- Dependency injection: FastAPI Depends() functions for the service and templates
- Exceptions: Domain-specific exception classes with HTTP status codes
- BMI engine: The BMI formula and category bands
"""
from core.config import settings, Settings

from core.dependencies import (
    get_record_repository,
    get_bmi_service,
    get_templates,
    reset_bmi_service,
    reset_templates,
)

from core.exceptions import (
    BMIServiceError,
    InvalidMeasurementError,
    StorageError,
    RecordFileCorruptError,
    PresentationError,
    TemplateMissingError,
    setup_exception_handlers,
)

from core.bmi_engine import compute_bmi, classify

__all__ = [
    "settings",
    "Settings",
    "get_record_repository",
    "get_bmi_service",
    "get_templates",
    "reset_bmi_service",
    "reset_templates",
    "BMIServiceError",
    "InvalidMeasurementError",
    "StorageError",
    "RecordFileCorruptError",
    "PresentationError",
    "TemplateMissingError",
    "setup_exception_handlers",
    "compute_bmi",
    "classify",
]

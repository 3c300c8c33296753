"""
Structured logging configuration for the BMI Service.

Every log line is a single JSON object so the service's stdout can be shipped
to any line-oriented log collector:

{
    "timestamp": "2026-01-15T10:30:00.123Z",
    "level": "INFO",
    "service": "bmi-service",
    "logger": "services.bmi_service",
    "message": "BMI record added",
    "request_id": "1f3a9c0e",
    "extra": { ... }
}

The request id lives in a ContextVar set by LoggingMiddleware, so it follows
the request through services and repositories without being passed around.

Usage:
    from core.logging_config import setup_logging

    setup_logging(level="INFO", json_format=True)
    logger.info("Record saved", extra={"records": 3})
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# =============================================================================
# REQUEST ID CONTEXT
# =============================================================================

SERVICE_NAME = "bmi-service"

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def get_request_id() -> Optional[str]:
    """Get the current request ID from context."""
    return request_id_var.get()


def set_request_id(request_id: str) -> None:
    """Set the request ID for the current request."""
    request_id_var.set(request_id)


def clear_request_id() -> None:
    """Clear the request ID (call at end of request)."""
    request_id_var.set(None)


# =============================================================================
# JSON FORMATTER
# =============================================================================

# Attributes every LogRecord carries; anything else came in through extra=
_STANDARD_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "taskName", "message",
}


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Return the attributes a caller attached through extra=."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _STANDARD_ATTRS and not key.startswith("_")
    }


def _utc_timestamp(created: float) -> str:
    moment = datetime.fromtimestamp(created, timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class JSONFormatter(logging.Formatter):
    """
    Single-line JSON log formatter.
    
    The timestamp is taken from the record itself, not from the moment of
    formatting, so buffered handlers still report when the event happened.
    """
    
    def __init__(self, service: str = SERVICE_NAME):
        super().__init__()
        self.service = service
    
    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": _utc_timestamp(record.created),
            "level": record.levelname,
            "service": self.service,
            "logger": record.name,
            "message": record.getMessage(),
        }
        
        request_id = get_request_id()
        if request_id is not None:
            log_entry["request_id"] = request_id
        
        if record.levelno >= logging.WARNING:
            log_entry["source"] = f"{record.module}:{record.lineno}"
        
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        elif record.stack_info:
            log_entry["stack"] = self.formatStack(record.stack_info)
        
        extra = _extra_fields(record)
        if extra:
            log_entry["extra"] = extra
        
        return json.dumps(log_entry, default=str, ensure_ascii=False)


# =============================================================================
# LOGGING SETUP
# =============================================================================

def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    include_uvicorn: bool = True
) -> None:
    """
    Configure logging for the application.
    
    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: If True, use JSON format; if False, use human-readable format
        include_uvicorn: If True, route uvicorn loggers through the root handler
    
    Called once at application startup (in main.py lifespan).
    """
    level = level.upper()
    handler = logging.StreamHandler(sys.stdout)
    
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
    
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]
    
    for logger_name in ["core", "api", "services", "repositories"]:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.handlers = []
        logger.propagate = True
    
    if include_uvicorn:
        for logger_name in ["uvicorn", "uvicorn.error", "uvicorn.access"]:
            logger = logging.getLogger(logger_name)
            logger.handlers = []
            logger.propagate = True
    
    logging.getLogger(__name__).info(
        "Logging configured",
        extra={"level": level, "format": "json" if json_format else "text"}
    )

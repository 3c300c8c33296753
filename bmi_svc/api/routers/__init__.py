"""
API routers module.

This module contains all route definitions organized by concern.
"""
from api.routers.health import router as health_router
from api.routers.pages import router as pages_router
from api.routers.records import router as records_router

__all__ = ["health_router", "pages_router", "records_router"]

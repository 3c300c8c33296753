"""
Shared pytest fixtures for the BMI Service tests.

Key patterns:

1. File Isolation: Each test gets its own temporary records file
2. DI Override: app.dependency_overrides injects the test service and templates
3. Fresh Metrics: Each service reports to its own MetricsCollector

Fixture Hierarchy:
    data_file → record_repo → bmi_service → test_app → client
"""
import os
import tempfile

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from core import dependencies as deps
from core.config import TEMPLATE_DIR
from core.dependencies import load_templates
from core.exceptions import setup_exception_handlers
from core.middleware import LoggingMiddleware, MetricsCollector
from repositories import RecordRepository
from services import BMIService


@pytest.fixture
def data_dir():
    """Temporary directory that holds the records file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def data_file(data_dir):
    """Path of a records file that does not exist yet."""
    return os.path.join(data_dir, "users_data.json")


@pytest.fixture
def record_repo(data_file):
    """Create a RecordRepository bound to the temporary file."""
    return RecordRepository(data_file=data_file)


@pytest.fixture
def metrics():
    """A MetricsCollector private to the test."""
    return MetricsCollector()


@pytest.fixture
def bmi_service(record_repo, metrics):
    """Create a BMIService over the test repository."""
    return BMIService(record_repository=record_repo, metrics=metrics)


@pytest.fixture
def templates():
    """Template environment built from the real page template."""
    return load_templates(TEMPLATE_DIR)


@pytest.fixture
def test_app(record_repo, bmi_service, templates):
    """
    Create a FastAPI test app with dependency overrides.
    
    Uses the real routers, exception handlers and middleware; only the
    dependency functions are swapped for test instances.
    """
    from api.routers import health_router, pages_router, records_router
    
    app = FastAPI(title="BMI Service Test")
    
    setup_exception_handlers(app)
    app.add_middleware(LoggingMiddleware)
    
    app.dependency_overrides[deps.get_record_repository] = lambda: record_repo
    app.dependency_overrides[deps.get_bmi_service] = lambda: bmi_service
    app.dependency_overrides[deps.get_templates] = lambda: templates
    
    app.include_router(health_router)
    app.include_router(pages_router)
    app.include_router(records_router)
    
    yield app
    
    app.dependency_overrides.clear()


@pytest.fixture
def client(test_app):
    """Create a test client for the app."""
    return TestClient(test_app)

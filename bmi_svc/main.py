"""
FastAPI application entry point for the BMI Service.

Architecture Overview:
    ┌─────────────────────────────────────────────────────────────┐
    │                     FastAPI Application                     │
    ├─────────────────────────────────────────────────────────────┤
    │  Middleware                                                 │
    │    └── LoggingMiddleware  - Request logging & metrics       │
    ├─────────────────────────────────────────────────────────────┤
    │  Routers (api/routers/)                                     │
    │    ├── pages.py    - GET /, POST /calculate                 │
    │    ├── records.py  - GET /api/v1/records                    │
    │    └── health.py   - /health, /ready, /metrics              │
    ├─────────────────────────────────────────────────────────────┤
    │  BMIService (services/)   ← Injected via Depends()          │
    ├─────────────────────────────────────────────────────────────┤
    │  RecordRepository (repositories/) ← Injected into service   │
    ├─────────────────────────────────────────────────────────────┤
    │  JSON records file                                          │
    └─────────────────────────────────────────────────────────────┘

Startup is fail-fast: a malformed records file or a missing page template
raises out of the lifespan and the server never starts serving.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
import uvicorn

from core.config import API_HOST, API_PORT, API_RELOAD, settings
from core.dependencies import get_bmi_service, get_templates
from core.exceptions import BMIServiceError, setup_exception_handlers
from core.logging_config import setup_logging
from core.middleware import LoggingMiddleware
from api.routers import health_router, pages_router, records_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        - Configures logging
        - Loads the records file into the BMIService
        - Loads and checks the page template
    
    Shutdown:
        - Logs shutdown message; records are already on disk after every write
    """
    setup_logging(level=settings.log_level, json_format=settings.log_format.lower() == "json")
    
    logger = logging.getLogger(__name__)
    logger.info("Starting BMI Service...")
    
    try:
        bmi_service = get_bmi_service()
        get_templates()
    except BMIServiceError as e:
        logger.critical(f"Startup failed: {e.detail}", extra={"context": e.context})
        raise
    
    logger.info(
        "BMI Service ready",
        extra={"data_path": settings.data_path, "records": len(bmi_service.records)}
    )
    
    yield
    
    logger.info("BMI Service shutting down...")


app = FastAPI(
    title="BMI Service",
    description="Web form that computes Body Mass Index, classifies it and keeps every result in a JSON file.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)

setup_exception_handlers(app)

app.add_middleware(LoggingMiddleware)

app.include_router(health_router)
app.include_router(pages_router)
app.include_router(records_router)


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=API_HOST,
        port=API_PORT,
        reload=API_RELOAD
    )

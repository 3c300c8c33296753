"""
Health, readiness, and metrics endpoints for operational visibility.

This module provides:
- /health: Liveness check (is the app running?)
- /ready: Readiness check (can the records file be written?)
- /metrics: Prometheus-compatible metrics
- /metrics/json: The same metrics as JSON
"""
import logging
import os
import time
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from core.dependencies import get_record_repository
from core.middleware import get_metrics_collector
from repositories import RecordRepository

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health & Observability"])

SERVICE_VERSION = "1.0.0"


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class HealthResponse(BaseModel):
    """Response model for /health endpoint."""
    status: str  # "healthy"
    version: str
    timestamp: str  # ISO 8601 UTC


class DependencyStatus(BaseModel):
    """Status of a single dependency."""
    name: str
    status: str  # "ok" or "unavailable"
    latency_ms: float | None = None
    message: str | None = None


class ReadyResponse(BaseModel):
    """Response model for /ready endpoint."""
    status: str  # "ready" or "not_ready"
    dependencies: List[DependencyStatus]
    timestamp: str


class MetricsResponse(BaseModel):
    """Response model for JSON metrics endpoint."""
    http_requests_total: int
    http_requests_2xx_total: int
    http_requests_3xx_total: int
    http_requests_4xx_total: int
    http_requests_5xx_total: int
    http_request_duration_ms_p50: float
    http_request_duration_ms_p95: float
    http_request_duration_ms_p99: float
    record_saves_success_total: int
    record_saves_failure_total: int


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


# =============================================================================
# HEALTH ENDPOINT (LIVENESS)
# =============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness check",
    description="Check if the application is running. Returns immediately without checking dependencies."
)
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        version=SERVICE_VERSION,
        timestamp=_utc_timestamp()
    )


# =============================================================================
# READINESS ENDPOINT
# =============================================================================

def _check_record_store(repo: RecordRepository) -> DependencyStatus:
    """
    Check that the records file (or its directory, before the first save) is writable.
    """
    start = time.perf_counter()
    target = repo.data_file if repo.exists() else repo.data_file.parent
    writable = os.access(target, os.W_OK)
    latency_ms = round((time.perf_counter() - start) * 1000, 2)
    
    if writable:
        return DependencyStatus(
            name="record_store",
            status="ok",
            latency_ms=latency_ms,
            message=f"{target} is writable"
        )
    
    logger.error("Record store readiness check failed", extra={"path": str(target)})
    return DependencyStatus(
        name="record_store",
        status="unavailable",
        latency_ms=latency_ms,
        message=f"{target} is not writable"
    )


@router.get(
    "/ready",
    response_model=ReadyResponse,
    summary="Readiness check",
    description="Check if the records file can be written. Returns 503 if not."
)
async def readiness_check(
    response: Response,
    repo: RecordRepository = Depends(get_record_repository)
) -> ReadyResponse:
    dependencies = [_check_record_store(repo)]
    
    if any(d.status == "unavailable" for d in dependencies):
        status = "not_ready"
        response.status_code = 503
    else:
        status = "ready"
    
    return ReadyResponse(
        status=status,
        dependencies=dependencies,
        timestamp=_utc_timestamp()
    )


# =============================================================================
# METRICS ENDPOINTS
# =============================================================================

@router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="Export metrics in Prometheus text format. "
                "Includes HTTP request counts, latency percentiles, and records file write outcomes."
)
async def get_metrics() -> Response:
    collector = get_metrics_collector()
    
    return Response(
        content=collector.get_prometheus_format(),
        media_type="text/plain; version=0.0.4; charset=utf-8"
    )


@router.get(
    "/metrics/json",
    response_model=MetricsResponse,
    summary="JSON metrics",
    description="Export metrics in JSON format."
)
async def get_metrics_json() -> MetricsResponse:
    collector = get_metrics_collector()
    return MetricsResponse(**collector.get_summary())

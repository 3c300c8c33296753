"""
FastAPI middleware for request logging and in-memory metrics.

This module provides:
- Request/Response logging with request_id propagation
- Request timing for latency tracking
- Counters for record persistence outcomes (reported by BMIService)

Middleware Stack Order (in main.py):
    1. LoggingMiddleware (outermost - captures everything)
    2. Application routes
"""

import logging
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Deque, Dict

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from core.logging_config import set_request_id, clear_request_id

logger = logging.getLogger(__name__)


# =============================================================================
# IN-MEMORY METRICS COLLECTOR
# =============================================================================

@dataclass
class RequestMetrics:
    """Container for a single request's metrics."""
    timestamp: datetime
    method: str
    path: str
    status_code: int
    duration_ms: float
    request_id: str


@dataclass
class MetricsCollector:
    """
    In-memory metrics collector with a fixed-size request history.
    
    The history only feeds latency percentiles; counters are plain integers.
    """
    max_history: int = 1000
    
    _requests: Deque[RequestMetrics] = field(init=False, repr=False)
    
    total_requests: int = 0
    total_2xx: int = 0
    total_3xx: int = 0
    total_4xx: int = 0
    total_5xx: int = 0
    
    # Updated by BMIService after each save attempt
    persist_success: int = 0
    persist_failure: int = 0
    
    def __post_init__(self) -> None:
        self._requests = deque(maxlen=self.max_history)
    
    def record_request(self, metrics: RequestMetrics) -> None:
        """Record a completed request's metrics."""
        self._requests.append(metrics)
        self.total_requests += 1
        
        if 200 <= metrics.status_code < 300:
            self.total_2xx += 1
        elif 300 <= metrics.status_code < 400:
            self.total_3xx += 1
        elif 400 <= metrics.status_code < 500:
            self.total_4xx += 1
        elif 500 <= metrics.status_code < 600:
            self.total_5xx += 1
    
    def record_persist_result(self, success: bool) -> None:
        """Record the outcome of a records file write."""
        if success:
            self.persist_success += 1
        else:
            self.persist_failure += 1
    
    def get_latency_percentiles(self) -> Dict[str, float]:
        """
        Calculate p50, p95 and p99 latencies (ms) from recent requests.
        
        Returns 0 for each when no data is available.
        """
        if not self._requests:
            return {"p50": 0, "p95": 0, "p99": 0}
        
        durations = sorted(r.duration_ms for r in self._requests)
        n = len(durations)
        
        def percentile(p: float) -> float:
            idx = int(n * p / 100)
            return durations[min(idx, n - 1)]
        
        return {
            "p50": round(percentile(50), 2),
            "p95": round(percentile(95), 2),
            "p99": round(percentile(99), 2),
        }
    
    def get_summary(self) -> Dict:
        """Get metrics summary for the /metrics endpoints."""
        latencies = self.get_latency_percentiles()
        
        return {
            "http_requests_total": self.total_requests,
            "http_requests_2xx_total": self.total_2xx,
            "http_requests_3xx_total": self.total_3xx,
            "http_requests_4xx_total": self.total_4xx,
            "http_requests_5xx_total": self.total_5xx,
            "http_request_duration_ms_p50": latencies["p50"],
            "http_request_duration_ms_p95": latencies["p95"],
            "http_request_duration_ms_p99": latencies["p99"],
            "record_saves_success_total": self.persist_success,
            "record_saves_failure_total": self.persist_failure,
        }
    
    def get_prometheus_format(self) -> str:
        """Export metrics in Prometheus text format."""
        summary = self.get_summary()
        lines = [
            "# HELP http_requests_total Total HTTP requests",
            "# TYPE http_requests_total counter",
            f'http_requests_total {summary["http_requests_total"]}',
            "",
            "# HELP http_requests_by_status HTTP requests by status category",
            "# TYPE http_requests_by_status counter",
            f'http_requests_by_status{{status="2xx"}} {summary["http_requests_2xx_total"]}',
            f'http_requests_by_status{{status="3xx"}} {summary["http_requests_3xx_total"]}',
            f'http_requests_by_status{{status="4xx"}} {summary["http_requests_4xx_total"]}',
            f'http_requests_by_status{{status="5xx"}} {summary["http_requests_5xx_total"]}',
            "",
            "# HELP http_request_duration_ms Request duration in milliseconds",
            "# TYPE http_request_duration_ms gauge",
            f'http_request_duration_ms{{quantile="0.5"}} {summary["http_request_duration_ms_p50"]}',
            f'http_request_duration_ms{{quantile="0.95"}} {summary["http_request_duration_ms_p95"]}',
            f'http_request_duration_ms{{quantile="0.99"}} {summary["http_request_duration_ms_p99"]}',
            "",
            "# HELP record_saves_total Records file writes by outcome",
            "# TYPE record_saves_total counter",
            f'record_saves_total{{result="success"}} {summary["record_saves_success_total"]}',
            f'record_saves_total{{result="failure"}} {summary["record_saves_failure_total"]}',
        ]
        return "\n".join(lines) + "\n"


metrics_collector = MetricsCollector()


def get_metrics_collector() -> MetricsCollector:
    """Get the global metrics collector instance."""
    return metrics_collector


# =============================================================================
# LOGGING MIDDLEWARE
# =============================================================================

class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Request/Response logging middleware with request_id propagation.
    
    A caller-supplied X-Request-ID is reused so a proxy's id shows up in our
    logs; otherwise a short random id is generated. The id is set in the
    logging context, on request.state, and echoed on the response.
    """
    
    # Paths to exclude from detailed logging
    EXCLUDED_PATHS = {"/health", "/ready", "/metrics", "/metrics/json", "/docs", "/redoc", "/openapi.json"}
    
    REQUEST_ID_HEADER = "X-Request-ID"
    MAX_REQUEST_ID_LENGTH = 64
    
    def _resolve_request_id(self, request: Request) -> str:
        incoming = request.headers.get(self.REQUEST_ID_HEADER, "").strip()
        if incoming and len(incoming) <= self.MAX_REQUEST_ID_LENGTH and incoming.isprintable():
            return incoming
        return uuid.uuid4().hex[:8]
    
    def _log_completion(self, request: Request, status_code: int, duration_ms: float) -> None:
        # 4xx/5xx at WARNING so a bad form post stands out from page views
        level = logging.WARNING if status_code >= 400 else logging.INFO
        logger.log(
            level,
            "%s %s -> %d",
            request.method,
            request.url.path,
            status_code,
            extra={"status_code": status_code, "duration_ms": round(duration_ms, 2)},
        )
    
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = self._resolve_request_id(request)
        request.state.request_id = request_id
        set_request_id(request_id)
        
        path = request.url.path
        quiet = path in self.EXCLUDED_PATHS
        started = time.perf_counter()
        
        if not quiet:
            logger.debug(
                "Request started",
                extra={"method": request.method, "path": path, "query": str(request.query_params) or None},
            )
        
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Unhandled error in %s %s", request.method, path)
            raise
        else:
            duration_ms = (time.perf_counter() - started) * 1000
            metrics_collector.record_request(RequestMetrics(
                timestamp=datetime.now(timezone.utc),
                method=request.method,
                path=path,
                status_code=response.status_code,
                duration_ms=duration_ms,
                request_id=request_id,
            ))
            if not quiet:
                self._log_completion(request, response.status_code, duration_ms)
            response.headers[self.REQUEST_ID_HEADER] = request_id
            return response
        finally:
            clear_request_id()

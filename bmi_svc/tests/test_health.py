"""
Tests for health, readiness, and metrics endpoints.
"""
import os
import stat

import pytest


# =============================================================================
# HEALTH ENDPOINT (LIVENESS)
# =============================================================================

def test_health_endpoint(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["version"] == "1.0.0"
    assert "timestamp" in data


# =============================================================================
# READINESS ENDPOINT
# =============================================================================

def test_ready_endpoint(client):
    response = client.get("/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["dependencies"][0]["name"] == "record_store"
    assert data["dependencies"][0]["status"] == "ok"


@pytest.mark.skipif(hasattr(os, "geteuid") and os.geteuid() == 0, reason="root ignores file permissions")
def test_ready_endpoint_read_only_store(client, record_repo):
    directory = record_repo.data_file.parent
    os.chmod(directory, stat.S_IRUSR | stat.S_IXUSR)
    try:
        response = client.get("/ready")
    finally:
        os.chmod(directory, stat.S_IRWXU)
    
    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "not_ready"
    assert data["dependencies"][0]["status"] == "unavailable"


# =============================================================================
# METRICS ENDPOINTS
# =============================================================================

def test_metrics_endpoint(client):
    client.get("/")
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "text/plain" in response.headers.get("content-type", "")
    content = response.text
    assert "http_requests_total" in content
    assert "http_request_duration_ms" in content
    assert 'record_saves_total{result="success"}' in content


def test_metrics_json_endpoint(client):
    response = client.get("/metrics/json")
    assert response.status_code == 200
    data = response.json()
    for key in (
        "http_requests_total",
        "http_requests_2xx_total",
        "http_requests_3xx_total",
        "http_requests_4xx_total",
        "http_requests_5xx_total",
        "http_request_duration_ms_p50",
        "http_request_duration_ms_p95",
        "http_request_duration_ms_p99",
        "record_saves_success_total",
        "record_saves_failure_total",
    ):
        assert key in data

"""Integration tests for /health, /healthz and /metrics endpoints."""

import httpx
from fastapi.testclient import TestClient


class TestHealthEndpoint:
    """Test /health and /healthz endpoints."""

    def test_health_always_ok(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_healthz_returns_200_when_engine_healthy(self, client: TestClient) -> None:
        response = client.get("/healthz")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["components"]["ai_engine"] == "ok"

    def test_healthz_returns_503_when_engine_down(
        self, client: TestClient, scripted_engine
    ) -> None:
        def refused(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        scripted_engine.routes["/api/v1/health"] = refused

        response = client.get("/healthz")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "degraded"
        assert data["components"]["ai_engine"] == "unavailable"


class TestMetricsEndpoint:
    """Test /metrics endpoint."""

    def test_metrics_exposes_prometheus_format(self, client: TestClient) -> None:
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
        assert "upstream_latency_ms" in response.text
        assert "tour_plans_accepted_total" in response.text

"""Tests for application wiring: health, metrics and headers."""

import pytest
from httpx import AsyncClient

from catalog_content.core import events
from catalog_content.main import create_app
from catalog_content.services.background import get_background_processor


class TestApplication:
    """Endpoints outside the product routers."""

    async def test_health_reports_components(self, test_app_async_client: AsyncClient) -> None:
        response = await test_app_async_client.get("/api/v1/health")

        assert response.status_code == 200
        body = response.json()
        # No database engine is created under test
        assert body["status"] == "unhealthy"
        assert body["components"]["database"] is False
        assert body["components"]["draft_cleanup"] is False
        assert body["version"] == "0.1.0"

    async def test_metrics_endpoint(self, test_app_async_client: AsyncClient) -> None:
        await test_app_async_client.get("/api/v1/health")

        response = await test_app_async_client.get("/metrics")

        assert response.status_code == 200
        assert "app_http_requests_total" in response.text

    async def test_root_redirects_to_docs(self, test_app_async_client: AsyncClient) -> None:
        response = await test_app_async_client.get("/", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/docs"

    async def test_response_headers(self, test_app_async_client: AsyncClient) -> None:
        response = await test_app_async_client.get(
            "/api/v1/health", headers={"X-Request-ID": "test-abc"}
        )

        assert response.headers["X-Request-ID"] == "test-abc"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"

    async def test_unknown_route_uses_error_envelope(
        self, test_app_async_client: AsyncClient
    ) -> None:
        response = await test_app_async_client.get("/api/v1/nope")

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "HTTPException"
        assert body["correlation_id"] == response.headers["X-Request-ID"]


class TestLifespan:
    """Startup and shutdown wiring."""

    async def test_lifespan_starts_and_stops_services(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(events.settings, "DRAFT_CLEANUP_ENABLED", False)
        app = create_app(with_events=True)

        async with app.router.lifespan_context(app):
            services = app.state.services
            assert services.background_processor is get_background_processor()
            assert services.draft_cleanup is None

        assert not services.background_processor.is_running

    def test_events_can_be_disabled(self) -> None:
        app = create_app(with_events=False)
        assert not hasattr(app.state, "services")

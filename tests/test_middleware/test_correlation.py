"""Tests for correlation, metrics and security header middleware."""

import uuid
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient
from prometheus_client import REGISTRY
from structlog.contextvars import get_contextvars

from catalog_content.middleware.correlation import (
    REQUEST_ID_HEADER,
    CorrelationMiddleware,
    is_valid_correlation_id,
)
from catalog_content.middleware.metrics import MetricsMiddleware
from catalog_content.middleware.security import SecurityHeadersMiddleware


@pytest.fixture
def header_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(CorrelationMiddleware)
    app.add_middleware(SecurityHeadersMiddleware, headers={"X-Frame-Options": "SAMEORIGIN"})

    @app.get("/echo/{product_id}")
    async def echo(product_id: str, request: Request) -> dict[str, str | None]:
        return {
            "state": request.state.correlation_id,
            "context": get_contextvars().get("correlation_id"),
        }

    return app


@pytest_asyncio.fixture
async def client(header_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=header_app), base_url="http://test"
    ) as client:
        yield client


@pytest.mark.parametrize(
    "value,valid",
    [
        (str(uuid.uuid4()), True),
        ("test-request", True),
        ("", False),
        (None, False),
        ("not a uuid", False),
    ],
)
def test_is_valid_correlation_id(value: str | None, valid: bool) -> None:
    assert is_valid_correlation_id(value) is valid


class TestCorrelationMiddleware:
    """Request id propagation."""

    async def test_valid_header_is_reused(self, client: AsyncClient) -> None:
        response = await client.get("/echo/1", headers={REQUEST_ID_HEADER: "test-42"})

        assert response.headers[REQUEST_ID_HEADER] == "test-42"
        assert response.json() == {"state": "test-42", "context": "test-42"}

    async def test_invalid_header_is_replaced(self, client: AsyncClient) -> None:
        response = await client.get("/echo/1", headers={REQUEST_ID_HEADER: "<script>"})

        generated = response.headers[REQUEST_ID_HEADER]
        assert generated != "<script>"
        assert uuid.UUID(generated)


class TestSecurityHeaders:
    """Default and overridden headers."""

    async def test_headers_are_added(self, client: AsyncClient) -> None:
        response = await client.get("/echo/1")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "SAMEORIGIN"
        assert response.headers["Referrer-Policy"] == "same-origin"


class TestMetricsMiddleware:
    """Request counters."""

    async def test_requests_are_labelled_by_route_template(self, client: AsyncClient) -> None:
        labels = {"method": "GET", "path": "/echo/{product_id}"}
        before = REGISTRY.get_sample_value("app_http_requests_total", labels) or 0

        await client.get("/echo/123")
        await client.get("/echo/456")

        assert REGISTRY.get_sample_value("app_http_requests_total", labels) == before + 2

"""API test fixtures."""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient, Timeout

from catalog_content.api.v1 import drafts, products
from catalog_content.api.v1.dependencies import (
    get_background,
    get_draft_cleanup,
    get_repositories,
    get_shopify,
    get_status_service,
)
from catalog_content.database.repositories import Repositories
from catalog_content.main import create_app
from catalog_content.services.background import BackgroundRefreshProcessor
from catalog_content.services.draft_cleanup import DraftCleanupService
from catalog_content.services.product_status import ProductStatusService

from .fakes import FakeShopify, RecordingSleep, provider_for

# Default timeout configuration
DEFAULT_TIMEOUT: Timeout = Timeout(timeout=5.0, connect=2.0, read=5.0, write=5.0, pool=2.0)


@pytest.fixture
def background_processor(
    fake_repos: Repositories,
    status_service: ProductStatusService,
    recording_sleep: RecordingSleep,
) -> BackgroundRefreshProcessor:
    return BackgroundRefreshProcessor(
        repositories=provider_for(fake_repos),
        service_builder=lambda repos: status_service,
        batch_size=5,
        product_delay=0,
        batch_delay=0,
        stale_after_hours=24,
        sleep=recording_sleep,
    )


@pytest.fixture
def draft_cleanup(fake_repos: Repositories) -> DraftCleanupService:
    return DraftCleanupService(
        repositories=provider_for(fake_repos), expiry_hours=168, interval_hours=24
    )


@pytest.fixture(scope="function")
def test_app(
    monkeypatch: pytest.MonkeyPatch,
    fake_repos: Repositories,
    fake_shopify: FakeShopify,
    status_service: ProductStatusService,
    background_processor: BackgroundRefreshProcessor,
    draft_cleanup: DraftCleanupService,
) -> FastAPI:
    """Get the application wired to in-memory repositories and Shopify.

    Returns:
        FastAPI application for testing
    """
    app = create_app(with_events=False)
    app.dependency_overrides[get_repositories] = lambda: fake_repos
    app.dependency_overrides[get_shopify] = lambda: fake_shopify
    app.dependency_overrides[get_status_service] = lambda: status_service
    app.dependency_overrides[get_background] = lambda: background_processor
    app.dependency_overrides[get_draft_cleanup] = lambda: draft_cleanup

    # Routes that fall back to Shopify outside dependency injection
    monkeypatch.setattr(products, "optional_shopify_client", lambda: fake_shopify)
    monkeypatch.setattr(drafts, "optional_shopify_client", lambda: fake_shopify)
    return app


@pytest_asyncio.fixture
async def test_app_async_client(test_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Get async test client.

    Args:
        test_app: FastAPI test application

    Yields:
        Async test client
    """
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
        timeout=DEFAULT_TIMEOUT,
    ) as client:
        yield client

"""FastAPI dependencies shared by the v1 routers."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_content.core.db import get_session
from catalog_content.database.repositories import Repositories
from catalog_content.services.background import (
    BackgroundRefreshProcessor,
    get_background_processor,
)
from catalog_content.services.draft_cleanup import DraftCleanupService
from catalog_content.services.product_status import (
    ProductStatusService,
    build_status_service,
)
from catalog_content.shopify.client import ShopifyClient, get_shopify_client


def get_repositories(session: AsyncSession = Depends(get_session)) -> Repositories:
    return Repositories.from_session(session)


def get_shopify() -> ShopifyClient:
    """Shopify client; answers 503 when credentials are missing."""
    return get_shopify_client()


def get_status_service(
    repos: Repositories = Depends(get_repositories),
) -> ProductStatusService:
    return build_status_service(repos)


def get_background() -> BackgroundRefreshProcessor:
    return get_background_processor()


def get_draft_cleanup() -> DraftCleanupService:
    return DraftCleanupService()

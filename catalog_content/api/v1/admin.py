"""Administrative status maintenance endpoints."""

from fastapi import APIRouter, Depends

from catalog_content.api.v1.dependencies import (
    get_background,
    get_draft_cleanup,
    get_status_service,
)
from catalog_content.api.v1.models import (
    BackgroundActionResponse,
    CleanupResponse,
    ForceRefreshResponse,
    RefreshResponse,
)
from catalog_content.services.background import (
    BackgroundRefreshProcessor,
    BackgroundStatus,
    refresh_suspect_products,
)
from catalog_content.services.draft_cleanup import DraftCleanupService
from catalog_content.services.product_status import ProductStatusService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/refresh-suspect", response_model=RefreshResponse)
async def refresh_suspect(
    service: ProductStatusService = Depends(get_status_service),
) -> RefreshResponse:
    """Re-check every product currently flagged with draft content."""
    result = await refresh_suspect_products(service)
    return RefreshResponse(**result)


@router.post("/background/start", response_model=BackgroundActionResponse)
async def start_background(
    processor: BackgroundRefreshProcessor = Depends(get_background),
) -> BackgroundActionResponse:
    started = processor.start()
    message = "Background refresh started" if started else "Background refresh already running"
    return BackgroundActionResponse(started=started, message=message)


@router.get("/background/status", response_model=BackgroundStatus)
async def background_status(
    processor: BackgroundRefreshProcessor = Depends(get_background),
) -> BackgroundStatus:
    return processor.status()


@router.post("/background/stop", response_model=BackgroundActionResponse)
async def stop_background(
    processor: BackgroundRefreshProcessor = Depends(get_background),
) -> BackgroundActionResponse:
    stopped = await processor.stop()
    message = "Background refresh stopped" if stopped else "Background refresh was not running"
    return BackgroundActionResponse(stopped=stopped, message=message)


@router.post("/force-refresh-all", response_model=ForceRefreshResponse)
async def force_refresh_all(
    service: ProductStatusService = Depends(get_status_service),
) -> ForceRefreshResponse:
    """Mark every persisted status stale so the next lookup re-checks Shopify."""
    return ForceRefreshResponse(invalidated=await service.invalidate_all())


@router.post("/cleanup-drafts", response_model=CleanupResponse)
async def cleanup_drafts(
    cleanup: DraftCleanupService = Depends(get_draft_cleanup),
) -> CleanupResponse:
    return CleanupResponse(deleted=await cleanup.run_once())

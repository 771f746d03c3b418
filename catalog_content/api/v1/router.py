"""API v1 router module."""

from typing import Any, Dict

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from catalog_content.api.v1.admin import router as admin_router
from catalog_content.api.v1.drafts import router as drafts_router
from catalog_content.api.v1.library import router as library_router
from catalog_content.api.v1.products import router as products_router
from catalog_content.core.config import settings
from catalog_content.core.events import AppStateDict

router = APIRouter(default_response_class=JSONResponse)


@router.get("/health")
async def health_check(request: Request) -> Dict[str, Any]:
    """Report component health."""
    state = getattr(request.app.state, "services", None)
    if not isinstance(state, AppStateDict):
        state = AppStateDict()
    health = await state.health_check()
    health["version"] = settings.version
    return health


router.include_router(products_router)
router.include_router(drafts_router)
router.include_router(library_router)
router.include_router(admin_router)

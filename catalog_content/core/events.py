"""Application startup and shutdown events."""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from prometheus_client import Counter, Gauge
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from catalog_content.core.config import settings

# Prometheus metrics
REQUESTS_TOTAL = Counter(
    "app_http_requests_total",
    "Total number of HTTP requests",
    labelnames=["method", "path"],
)

RESPONSES_TOTAL = Counter(
    "app_http_responses_total",
    "Total number of HTTP responses",
    labelnames=["status_code"],
)

STATUS_CHECKS_TOTAL = Counter(
    "content_status_checks_total",
    "Content status lookups by the source that answered them",
    labelnames=["source"],
)

DRAFT_CLEANUP_RUNS_TOTAL = Counter(
    "draft_cleanup_runs_total",
    "Number of expired draft cleanup runs",
)

DRAFTS_DELETED_TOTAL = Counter(
    "drafts_deleted_total",
    "Number of expired drafts deleted",
)

BACKGROUND_REFRESH_RUNNING = Gauge(
    "background_status_refresh_running",
    "1 while the background status refresh is processing products",
)

logger: logging.Logger = logging.getLogger("catalog_content.core.events")


class AppStateDict:
    """Application state with health check capabilities."""

    def __init__(self) -> None:
        self.draft_cleanup: Any = None
        self.background_processor: Any = None

    async def health_check(self) -> dict[str, Any]:
        """Check health of all components.

        Returns:
            Dict containing health status of all components
        """
        health_status: dict[str, Any] = {
            "status": "healthy",
            "components": {
                "database": False,
                "shopify": settings.shopify_configured,
                "draft_cleanup": bool(
                    self.draft_cleanup is not None and self.draft_cleanup.is_running
                ),
            },
            "details": {},
        }

        try:
            from catalog_content.core.db import get_session_factory

            async with get_session_factory()() as session:
                await session.execute(text("SELECT 1"))
            health_status["components"]["database"] = True
        except (SQLAlchemyError, RuntimeError, OSError) as e:
            health_status["details"]["database"] = str(e)
            logger.error(f"Health check failed: {e}")

        if self.background_processor is not None:
            health_status["details"]["background_refresh"] = (
                self.background_processor.status().model_dump(by_alias=True)
            )

        if not health_status["components"]["database"]:
            health_status["status"] = "unhealthy"
        elif not all(health_status["components"].values()):
            health_status["status"] = "degraded"

        return health_status


def create_start_app_handler(app: Any) -> Callable[[], Awaitable[None]]:
    """Create startup event handler.

    Args:
        app: FastAPI application instance

    Returns:
        Startup handler function
    """

    async def start_app() -> None:
        from catalog_content.services.background import get_background_processor
        from catalog_content.services.draft_cleanup import DraftCleanupService

        state = AppStateDict()
        state.background_processor = get_background_processor()
        if settings.DRAFT_CLEANUP_ENABLED:
            state.draft_cleanup = DraftCleanupService()
            state.draft_cleanup.start()
        app.state.services = state

        logger.info(
            "Application startup complete - "
            f"Shopify configured: {settings.shopify_configured}, "
            f"Draft cleanup: {settings.DRAFT_CLEANUP_ENABLED}"
        )

    return start_app


def create_stop_app_handler(app: Any) -> Callable[[], Awaitable[None]]:
    """Create shutdown event handler with graceful shutdown logic.

    Args:
        app: FastAPI application instance

    Returns:
        Shutdown handler function
    """

    async def stop_app() -> None:
        from catalog_content.core.db import dispose_engine
        from catalog_content.shopify.client import close_shopify_client

        state: AppStateDict | None = getattr(app.state, "services", None)
        try:
            if state is not None:
                if state.background_processor is not None:
                    await state.background_processor.stop()
                if state.draft_cleanup is not None:
                    logger.info("Stopping draft cleanup...")
                    await state.draft_cleanup.stop()

            await close_shopify_client()
            await dispose_engine()
            logger.info("Application shutdown complete")
        except Exception as e:
            logger.error(f"Error during shutdown: {e}")
            raise

    return stop_app


@asynccontextmanager
async def lifespan(app: Any) -> AsyncIterator[None]:
    """Run the startup handler, serve, then run the shutdown handler."""
    await create_start_app_handler(app)()
    try:
        yield
    finally:
        await create_stop_app_handler(app)()

"""Background re-checking of product statuses that may be out of date."""

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import SQLAlchemyError

from catalog_content.core.config import settings
from catalog_content.core.events import BACKGROUND_REFRESH_RUNNING
from catalog_content.core.logging import get_logger
from catalog_content.database.repositories import Repositories, repositories_scope
from catalog_content.layout.status import EMPTY_STATUS
from catalog_content.services.draft_cleanup import RepositoriesProvider
from catalog_content.services.product_status import (
    ProductStatusService,
    Sleep,
    build_status_service,
)

logger = get_logger(__name__)

ServiceBuilder = Callable[[Repositories], ProductStatusService]


class BackgroundStatus(BaseModel):
    """Progress of the current or last background run."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    is_running: bool = False
    total_products: int = 0
    processed_count: int = 0
    updated_count: int = 0
    current_batch: int = 0
    start_time: Optional[datetime] = None
    last_update: Optional[datetime] = None


async def collect_refresh_candidates(
    repos: Repositories, checked_before: datetime
) -> list[str]:
    """Products with drafts followed by products whose last check is stale."""
    draft_ids = await repos.drafts.product_ids_with_drafts()
    flagged_ids = await repos.statuses.ids_with_drafts()
    stale_ids = await repos.statuses.stale_ids(checked_before)
    return list(dict.fromkeys([*draft_ids, *flagged_ids, *stale_ids]))


async def _refresh_one(service: ProductStatusService, product_id: str) -> bool:
    """Force a live check; report whether the status changed.

    A product without a persisted row counts as empty before the check, and a
    failed check never counts as a change.
    """
    previous = await service.get_persisted(product_id) or EMPTY_STATUS
    await service.invalidate(product_id)
    current = await service.try_get_status(product_id)
    return current is not None and current != previous


async def refresh_suspect_products(
    service: ProductStatusService,
    batch_size: int = 3,
    batch_delay: float = 2.0,
    sleep: Sleep = asyncio.sleep,
) -> dict[str, int]:
    """Re-check every product that has, or is flagged with, draft content."""
    draft_ids = await service.repos.drafts.product_ids_with_drafts()
    flagged_ids = await service.repos.statuses.ids_with_drafts()
    product_ids = list(dict.fromkeys([*draft_ids, *flagged_ids]))

    updated = 0
    for start in range(0, len(product_ids), batch_size):
        if start > 0 and batch_delay > 0:
            await sleep(batch_delay)
        for product_id in product_ids[start : start + batch_size]:
            updated += await _refresh_one(service, product_id)

    logger.info("suspect_products_refreshed", checked=len(product_ids), updated=updated)
    return {"checked": len(product_ids), "updated": updated}


class BackgroundRefreshProcessor:
    """Walks drafts and stale statuses in batches outside of any request."""

    def __init__(
        self,
        repositories: RepositoriesProvider = repositories_scope,
        service_builder: ServiceBuilder = build_status_service,
        batch_size: int | None = None,
        product_delay: float | None = None,
        batch_delay: float | None = None,
        stale_after_hours: float | None = None,
        now: Callable[[], datetime] = datetime.now,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._repositories = repositories
        self._service_builder = service_builder
        self.batch_size = batch_size or settings.BACKGROUND_BATCH_SIZE
        self.product_delay = (
            product_delay
            if product_delay is not None
            else settings.BACKGROUND_PRODUCT_DELAY_SECONDS
        )
        self.batch_delay = (
            batch_delay if batch_delay is not None else settings.BACKGROUND_BATCH_DELAY_SECONDS
        )
        self.stale_after = timedelta(
            hours=stale_after_hours or settings.STATUS_STALE_AFTER_HOURS
        )
        self._now = now
        self._sleep = sleep
        self._state = BackgroundStatus()
        self._task: asyncio.Task[BackgroundStatus] | None = None

    def status(self) -> BackgroundStatus:
        return self._state.model_copy()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        """Start a run in the background. Returns False if one is in progress."""
        if self.is_running:
            return False
        self._state = BackgroundStatus(is_running=True, start_time=self._now())
        self._task = asyncio.create_task(self.run())
        return True

    async def stop(self) -> bool:
        """Cancel the current run. Returns False if nothing was running."""
        if not self.is_running or self._task is None:
            return False
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        return True

    async def run(self) -> BackgroundStatus:
        """Process every candidate product and return the final progress."""
        self._state.is_running = True
        self._state.start_time = self._state.start_time or self._now()
        BACKGROUND_REFRESH_RUNNING.set(1)
        try:
            async with self._repositories() as repos:
                service = self._service_builder(repos)
                product_ids = await collect_refresh_candidates(
                    repos, self._now() - self.stale_after
                )
                self._state.total_products = len(product_ids)
                logger.info("background_refresh_started", total=len(product_ids))
                await self._process(service, product_ids)
        except SQLAlchemyError as e:
            logger.error("background_refresh_failed", error=str(e))
        except asyncio.CancelledError:
            logger.info(
                "background_refresh_stopped", processed=self._state.processed_count
            )
            raise
        finally:
            self._state.is_running = False
            self._state.last_update = self._now()
            BACKGROUND_REFRESH_RUNNING.set(0)

        logger.info(
            "background_refresh_finished",
            processed=self._state.processed_count,
            updated=self._state.updated_count,
        )
        return self.status()

    async def _process(
        self, service: ProductStatusService, product_ids: list[str]
    ) -> None:
        for batch_number, start in enumerate(
            range(0, len(product_ids), self.batch_size), start=1
        ):
            if start > 0 and self.batch_delay > 0:
                await self._sleep(self.batch_delay)
            self._state.current_batch = batch_number
            batch = product_ids[start : start + self.batch_size]
            for index, product_id in enumerate(batch):
                if index > 0 and self.product_delay > 0:
                    await self._sleep(self.product_delay)
                if await _refresh_one(service, product_id):
                    self._state.updated_count += 1
                self._state.processed_count += 1
                self._state.last_update = self._now()


# Global instance
_background_processor: Optional[BackgroundRefreshProcessor] = None


def get_background_processor() -> BackgroundRefreshProcessor:
    global _background_processor
    if _background_processor is None:
        _background_processor = BackgroundRefreshProcessor()
    return _background_processor


def reset_background_processor() -> None:
    """Reset processor singleton. Used for testing."""
    global _background_processor
    _background_processor = None

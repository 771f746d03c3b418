"""Product content status lookups.

A status is answered from, in order: the persisted row when it was checked
against Shopify recently, the in-memory cache, or a live check combining saved
content, drafts and the Shopify description.
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime, timedelta

import httpx
from sqlalchemy.exc import SQLAlchemyError

from catalog_content.core.config import settings
from catalog_content.core.events import STATUS_CHECKS_TOTAL
from catalog_content.core.logging import get_logger
from catalog_content.database.repositories import Repositories
from catalog_content.layout.cache import ContentStatusCache, get_status_cache
from catalog_content.layout.classifier import (
    EMPTY_CLASSIFICATION,
    LayoutClassification,
    classify,
)
from catalog_content.layout.status import (
    EMPTY_STATUS,
    ContentStatus,
    StatusCounts,
    StatusFilter,
    combine_status,
    filter_product_ids,
    matches_filter,
)
from catalog_content.shopify.client import (
    ShopifyAPIError,
    ShopifyClient,
    ShopifyConfigurationError,
    ShopifyRateLimitError,
    get_shopify_client,
)

logger = get_logger(__name__)

Sleep = Callable[[float], Awaitable[object]]


def reconcile_status(
    status: ContentStatus,
    classification: LayoutClassification,
    saved_tab_count: int,
    draft_tab_count: int,
) -> ContentStatus:
    """Fold locally saved content and drafts into a combined status.

    Saved content counts as the studio layout even before it is published. The
    section count prefers saved tabs, then the published template, then
    drafts. A published template means the drafts have been superseded.
    """
    is_template = classification.is_new_layout
    if saved_tab_count > 0:
        content_count = saved_tab_count
    elif is_template:
        content_count = status.content_count
    else:
        content_count = draft_tab_count
    return status.model_copy(
        update={
            "has_new_layout": saved_tab_count > 0 or is_template,
            "has_draft_content": status.has_draft_content and not is_template,
            "content_count": content_count,
        }
    )


class ProductStatusService:
    """Computes, caches and persists product content statuses."""

    def __init__(
        self,
        repos: Repositories,
        shopify: ShopifyClient | None,
        cache: ContentStatusCache,
        db_freshness_seconds: float = 1800,
        batch_size: int = 3,
        batch_delay: float = 1.0,
        item_delay: float = 0.2,
        now: Callable[[], datetime] = datetime.now,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.repos = repos
        self.shopify = shopify
        self.cache = cache
        self.db_freshness = timedelta(seconds=db_freshness_seconds)
        self.batch_size = max(1, batch_size)
        self.batch_delay = batch_delay
        self.item_delay = item_delay
        self._now = now
        self._sleep = sleep
        # One session serves every lookup, so database calls must not overlap
        self._db_lock = asyncio.Lock()

    async def get_persisted(self, product_id: str) -> ContentStatus | None:
        async with self._db_lock:
            record = await self.repos.statuses.get(product_id)
        return record.to_status() if record is not None else None

    async def get_status(self, product_id: str) -> ContentStatus:
        """Return the status of one product, never raising for lookup failures."""
        status = await self.try_get_status(product_id)
        return status if status is not None else EMPTY_STATUS

    async def try_get_status(self, product_id: str) -> ContentStatus | None:
        """Like :meth:`get_status`, but ``None`` when the lookup failed."""
        try:
            async with self._db_lock:
                record = await self.repos.statuses.get(product_id)
            if (
                record is not None
                and record.last_shopify_check is not None
                and self._now() - record.last_shopify_check < self.db_freshness
            ):
                STATUS_CHECKS_TOTAL.labels(source="db").inc()
                return record.to_status()

            cached = self.cache.get(product_id)
            if cached is not None:
                STATUS_CHECKS_TOTAL.labels(source="cache").inc()
                return cached

            status, is_template = await self._check_live(product_id)
            await self._persist(product_id, status, is_template)
            self.cache.set(product_id, status)
            STATUS_CHECKS_TOTAL.labels(source="live").inc()
            return status
        except Exception as e:
            STATUS_CHECKS_TOTAL.labels(source="error").inc()
            logger.error(
                "status_check_failed",
                product_id=product_id,
                error_type=type(e).__name__,
                error=str(e),
            )
            return None

    async def _check_live(self, product_id: str) -> tuple[ContentStatus, bool]:
        async with self._db_lock:
            saved_tabs = await self.repos.contents.count_for_shopify_product(product_id)
            draft_tabs = await self.repos.drafts.count_for_product(product_id)

        has_shopify_content = False
        classification = EMPTY_CLASSIFICATION
        if self.shopify is not None and (saved_tabs == 0 or draft_tabs > 0):
            try:
                product = await self.shopify.get_product(product_id)
            except ShopifyRateLimitError:
                logger.warning("shopify_rate_limited", product_id=product_id)
                product = None
            except (ShopifyAPIError, httpx.HTTPError) as e:
                logger.error("shopify_check_failed", product_id=product_id, error=str(e))
                product = None
            if product is not None:
                has_shopify_content = product.has_content
                classification = classify(product.body_html)

        combined = combine_status(
            classification,
            has_shopify_content=has_shopify_content,
            has_draft_content=draft_tabs > 0,
        )
        status = reconcile_status(combined, classification, saved_tabs, draft_tabs)
        return status, classification.is_new_layout

    async def _persist(
        self, product_id: str, status: ContentStatus, is_template: bool
    ) -> None:
        async with self._db_lock:
            try:
                await self.repos.statuses.upsert(
                    product_id,
                    has_new_layout=status.has_new_layout,
                    has_draft_content=status.has_draft_content,
                    has_shopify_content=status.has_shopify_content,
                    content_count=status.content_count,
                    is_our_template_structure=is_template,
                    last_shopify_check=self._now(),
                )
            except SQLAlchemyError as e:
                await self.repos.statuses.rollback()
                logger.warning(
                    "status_persist_failed", product_id=product_id, error=str(e)
                )

    async def _get_after(self, product_id: str, delay: float) -> ContentStatus:
        if delay > 0:
            await self._sleep(delay)
        return await self.get_status(product_id)

    async def get_batch_status(
        self, product_ids: Iterable[str]
    ) -> dict[str, ContentStatus]:
        """Look up many products in small staggered groups.

        Every unique id gets an entry; ids whose lookup failed get the empty
        status.
        """
        unique_ids = list(dict.fromkeys(product_ids))
        results: dict[str, ContentStatus] = {}
        for start in range(0, len(unique_ids), self.batch_size):
            if start > 0 and self.batch_delay > 0:
                await self._sleep(self.batch_delay)
            group = unique_ids[start : start + self.batch_size]
            statuses = await asyncio.gather(
                *(
                    self._get_after(product_id, index * self.item_delay)
                    for index, product_id in enumerate(group)
                )
            )
            results.update(zip(group, statuses))
        return results

    async def invalidate(self, product_id: str) -> None:
        self.cache.invalidate(product_id)
        async with self._db_lock:
            await self.repos.statuses.invalidate(product_id)

    async def invalidate_all(self) -> int:
        self.cache.clear()
        async with self._db_lock:
            return await self.repos.statuses.invalidate_all()

    async def mark_content_saved(self, product_id: str, has_content: bool) -> None:
        """Record that tab content was saved locally for a product."""
        async with self._db_lock:
            await self.repos.statuses.upsert(
                product_id,
                has_new_layout=has_content,
                has_draft_content=False,
                is_our_template_structure=has_content,
            )
        await self.invalidate(product_id)

    async def mark_published(self, product_id: str) -> None:
        """Record that generated content was pushed to Shopify."""
        async with self._db_lock:
            await self.repos.statuses.upsert(
                product_id,
                has_draft_content=False,
                has_shopify_content=True,
                is_our_template_structure=True,
            )
        await self.invalidate(product_id)

    async def status_counts(self) -> StatusCounts:
        async with self._db_lock:
            return await self.repos.statuses.counts()

    async def filter_products(
        self, status_filter: StatusFilter, product_ids: list[str] | None = None
    ) -> list[str]:
        """Ids matching a filter, judged on persisted statuses only.

        Without ``product_ids`` only products that have a persisted status are
        considered. Given ids without one match ``none``.
        """
        async with self._db_lock:
            rows = await self.repos.statuses.list_all()
        statuses = {row.shopify_product_id: row.to_status() for row in rows}
        if product_ids is None:
            return [
                product_id
                for product_id, status in statuses.items()
                if matches_filter(status, status_filter)
            ]
        return filter_product_ids(product_ids, statuses, status_filter)


def optional_shopify_client() -> ShopifyClient | None:
    """The Shopify client, or ``None`` when credentials are not configured."""
    try:
        return get_shopify_client()
    except ShopifyConfigurationError:
        return None


def build_status_service(repos: Repositories) -> ProductStatusService:
    """Create a service configured from application settings."""
    return ProductStatusService(
        repos=repos,
        shopify=optional_shopify_client(),
        cache=get_status_cache(),
        db_freshness_seconds=settings.STATUS_DB_FRESHNESS_SECONDS,
        batch_size=settings.STATUS_BATCH_SIZE,
        batch_delay=settings.STATUS_BATCH_DELAY_SECONDS,
        item_delay=settings.STATUS_ITEM_DELAY_SECONDS,
    )

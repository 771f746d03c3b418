"""Periodic removal of abandoned drafts."""

import asyncio
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError

from catalog_content.core.config import settings
from catalog_content.core.events import DRAFT_CLEANUP_RUNS_TOTAL, DRAFTS_DELETED_TOTAL
from catalog_content.core.logging import get_logger
from catalog_content.database.repositories import Repositories, repositories_scope

logger = get_logger(__name__)

RepositoriesProvider = Callable[[], AbstractAsyncContextManager[Repositories]]


class DraftCleanupService:
    """Deletes drafts that have not been touched for ``expiry_hours``.

    ``start`` runs a cleanup immediately and then every ``interval_hours``
    until ``stop`` is called.
    """

    def __init__(
        self,
        repositories: RepositoriesProvider = repositories_scope,
        expiry_hours: float | None = None,
        interval_hours: float | None = None,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._repositories = repositories
        self.expiry = timedelta(
            hours=expiry_hours if expiry_hours is not None else settings.DRAFT_EXPIRY_HOURS
        )
        self.interval_seconds = (
            interval_hours
            if interval_hours is not None
            else settings.DRAFT_CLEANUP_INTERVAL_HOURS
        ) * 3600
        self._now = now
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> int:
        """Delete expired drafts and return how many were removed."""
        cutoff = self._now() - self.expiry
        async with self._repositories() as repos:
            deleted = await repos.drafts.delete_older_than(cutoff)
        DRAFT_CLEANUP_RUNS_TOTAL.inc()
        DRAFTS_DELETED_TOTAL.inc(deleted)
        if deleted:
            logger.info("expired_drafts_deleted", deleted=deleted, cutoff=cutoff.isoformat())
        return deleted

    async def _loop(self) -> None:
        while True:
            try:
                await self.run_once()
            except (SQLAlchemyError, RuntimeError, OSError) as e:
                logger.error("draft_cleanup_failed", error=str(e))
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info(
            "draft_cleanup_started",
            expiry_hours=self.expiry.total_seconds() / 3600,
            interval_hours=self.interval_seconds / 3600,
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("draft_cleanup_stopped")

"""Repository pattern for database operations."""

from abc import ABC
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generic, Optional, Sequence, TypeVar

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_content.core.db import get_session_factory
from catalog_content.layout.status import StatusCounts, count_statuses

from .models import (
    ContentTemplateModel,
    DraftContentModel,
    LogoModel,
    ProductContentModel,
    ProductModel,
    ProductStatusModel,
)

ModelType = TypeVar("ModelType")

# Timestamp written by invalidation so the next lookup treats the row as stale
INVALIDATED_AT = datetime(2020, 1, 1)


class BaseRepository(ABC, Generic[ModelType]):
    """Base repository for common database operations."""

    def __init__(self, session: AsyncSession, model: type[ModelType]):
        self.session = session
        self.model = model

    async def get_by_id(self, id: str) -> Optional[ModelType]:
        """Get entity by ID."""
        return await self.session.get(self.model, id)

    async def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        filters: Optional[dict[str, Any]] = None,
    ) -> Sequence[ModelType]:
        """Get all entities with optional filtering."""
        query = select(self.model)

        if filters:
            for key, value in filters.items():
                if hasattr(self.model, key):
                    query = query.filter(getattr(self.model, key) == value)

        query = query.offset(skip).limit(limit)

        result = await self.session.execute(query)
        return result.scalars().all()

    async def count(self, filters: Optional[dict[str, Any]] = None) -> int:
        """Count entities with optional filtering."""
        query = select(func.count()).select_from(self.model)

        if filters:
            for key, value in filters.items():
                if hasattr(self.model, key):
                    query = query.filter(getattr(self.model, key) == value)

        result = await self.session.execute(query)
        return result.scalar() or 0

    async def create(self, **kwargs: Any) -> ModelType:
        """Create new entity."""
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.commit()
        await self.session.refresh(instance)
        return instance

    async def update(self, id: str, **kwargs: Any) -> Optional[ModelType]:
        """Update entity by ID."""
        instance = await self.get_by_id(id)
        if instance:
            for key, value in kwargs.items():
                if hasattr(instance, key):
                    setattr(instance, key, value)
            await self.session.commit()
            await self.session.refresh(instance)
        return instance

    async def delete(self, id: str) -> bool:
        """Delete entity by ID."""
        instance = await self.get_by_id(id)
        if instance:
            await self.session.delete(instance)
            await self.session.commit()
            return True
        return False

    async def rollback(self) -> None:
        """Discard the pending transaction after a failed statement."""
        await self.session.rollback()


class ProductRepository(BaseRepository[ProductModel]):
    """Repository for catalog products."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ProductModel)

    async def get_by_sku(self, sku: str) -> Optional[ProductModel]:
        result = await self.session.execute(select(self.model).filter_by(sku=sku))
        return result.scalar_one_or_none()

    async def get_by_shopify_id(self, shopify_id: str) -> Optional[ProductModel]:
        result = await self.session.execute(
            select(self.model).filter_by(shopify_id=shopify_id)
        )
        return result.scalar_one_or_none()

    async def search_by_sku_prefix(
        self, prefix: str, limit: int = 20
    ) -> Sequence[ProductModel]:
        """Products whose SKU starts with ``prefix``, case-insensitively."""
        query = (
            select(self.model)
            .filter(self.model.sku.ilike(f"{prefix}%"))
            .order_by(self.model.sku)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return result.scalars().all()


class ProductContentRepository(BaseRepository[ProductContentModel]):
    """Repository for saved product tab content."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ProductContentModel)

    async def list_for_product(self, product_id: str) -> Sequence[ProductContentModel]:
        query = (
            select(self.model)
            .filter_by(product_id=product_id)
            .order_by(self.model.created_at)
        )
        result = await self.session.execute(query)
        return result.scalars().all()

    async def get_by_type(
        self, product_id: str, tab_type: str
    ) -> Optional[ProductContentModel]:
        result = await self.session.execute(
            select(self.model).filter_by(product_id=product_id, tab_type=tab_type)
        )
        return result.scalar_one_or_none()

    async def save(
        self,
        product_id: str,
        tab_type: str,
        content: dict[str, Any],
        is_active: bool = True,
    ) -> ProductContentModel:
        """Insert or replace the content of one tab."""
        existing = await self.get_by_type(product_id, tab_type)
        if existing is None:
            return await self.create(
                product_id=product_id,
                tab_type=tab_type,
                content=content,
                is_active=is_active,
            )
        existing.content = content
        existing.is_active = is_active
        await self.session.commit()
        await self.session.refresh(existing)
        return existing

    async def count_for_shopify_product(self, shopify_id: str) -> int:
        """Count saved tabs of the product linked to a Shopify id."""
        query = (
            select(func.count())
            .select_from(self.model)
            .join(ProductModel, ProductModel.id == self.model.product_id)
            .filter(ProductModel.shopify_id == shopify_id)
        )
        result = await self.session.execute(query)
        return result.scalar() or 0


class TemplateRepository(BaseRepository[ContentTemplateModel]):
    """Repository for reusable content templates."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ContentTemplateModel)

    async def list_templates(
        self, tab_type: str | None = None
    ) -> Sequence[ContentTemplateModel]:
        query = select(self.model).order_by(self.model.name)
        if tab_type:
            query = query.filter_by(tab_type=tab_type)
        result = await self.session.execute(query)
        return result.scalars().all()


class LogoRepository(BaseRepository[LogoModel]):
    """Repository for the logo library."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, LogoModel)

    async def list_logos(self) -> Sequence[LogoModel]:
        result = await self.session.execute(select(self.model).order_by(self.model.name))
        return result.scalars().all()


class DraftRepository(BaseRepository[DraftContentModel]):
    """Repository for draft tab content."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, DraftContentModel)

    async def list_for_product(
        self, shopify_product_id: str
    ) -> Sequence[DraftContentModel]:
        result = await self.session.execute(
            select(self.model).filter_by(shopify_product_id=shopify_product_id)
        )
        return result.scalars().all()

    async def get_by_type(
        self, shopify_product_id: str, tab_type: str
    ) -> Optional[DraftContentModel]:
        result = await self.session.execute(
            select(self.model).filter_by(
                shopify_product_id=shopify_product_id, tab_type=tab_type
            )
        )
        return result.scalar_one_or_none()

    async def save(
        self, shopify_product_id: str, tab_type: str, content: dict[str, Any]
    ) -> DraftContentModel:
        """Insert or replace the draft of one tab."""
        existing = await self.get_by_type(shopify_product_id, tab_type)
        if existing is None:
            return await self.create(
                shopify_product_id=shopify_product_id,
                tab_type=tab_type,
                content=content,
            )
        existing.content = content
        existing.updated_at = datetime.now()
        await self.session.commit()
        await self.session.refresh(existing)
        return existing

    async def count_for_product(self, shopify_product_id: str) -> int:
        return await self.count({"shopify_product_id": shopify_product_id})

    async def delete_for_product(
        self, shopify_product_id: str, tab_type: str | None = None
    ) -> int:
        """Delete a product's drafts, or only one tab when ``tab_type`` is given."""
        statement = delete(self.model).filter_by(shopify_product_id=shopify_product_id)
        if tab_type is not None:
            statement = statement.filter_by(tab_type=tab_type)
        result = await self.session.execute(statement)
        await self.session.commit()
        return result.rowcount or 0

    async def delete_older_than(self, cutoff: datetime) -> int:
        """Delete drafts last updated before ``cutoff``."""
        result = await self.session.execute(
            delete(self.model).where(self.model.updated_at < cutoff)
        )
        await self.session.commit()
        return result.rowcount or 0

    async def product_ids_with_drafts(self) -> list[str]:
        result = await self.session.execute(
            select(self.model.shopify_product_id).distinct()
        )
        return list(result.scalars().all())


class ProductStatusRepository(BaseRepository[ProductStatusModel]):
    """Repository for persisted content statuses."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ProductStatusModel)

    async def get(self, shopify_product_id: str) -> Optional[ProductStatusModel]:
        result = await self.session.execute(
            select(self.model).filter_by(shopify_product_id=shopify_product_id)
        )
        return result.scalar_one_or_none()

    async def upsert(self, shopify_product_id: str, **fields: Any) -> ProductStatusModel:
        """Create the status row or update the given fields."""
        existing = await self.get(shopify_product_id)
        if existing is None:
            return await self.create(shopify_product_id=shopify_product_id, **fields)
        for key, value in fields.items():
            if hasattr(existing, key):
                setattr(existing, key, value)
        existing.last_updated = datetime.now()
        await self.session.commit()
        await self.session.refresh(existing)
        return existing

    async def list_all(self) -> Sequence[ProductStatusModel]:
        result = await self.session.execute(select(self.model))
        return result.scalars().all()

    async def ids_with_drafts(self) -> list[str]:
        result = await self.session.execute(
            select(self.model.shopify_product_id).filter_by(has_draft_content=True)
        )
        return list(result.scalars().all())

    async def stale_ids(self, checked_before: datetime) -> list[str]:
        """Ids never checked against Shopify or last checked before the cutoff."""
        query = select(self.model.shopify_product_id).filter(
            or_(
                self.model.last_shopify_check.is_(None),
                self.model.last_shopify_check < checked_before,
            )
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def invalidate(self, shopify_product_id: str) -> None:
        await self.session.execute(
            update(self.model)
            .filter_by(shopify_product_id=shopify_product_id)
            .values(last_shopify_check=INVALIDATED_AT)
        )
        await self.session.commit()

    async def invalidate_all(self) -> int:
        result = await self.session.execute(
            update(self.model).values(last_shopify_check=INVALIDATED_AT)
        )
        await self.session.commit()
        return result.rowcount or 0

    async def counts(self) -> StatusCounts:
        rows = await self.list_all()
        return count_statuses(row.to_status() for row in rows)


@dataclass
class Repositories:
    """All repositories bound to one session."""

    products: ProductRepository
    contents: ProductContentRepository
    templates: TemplateRepository
    logos: LogoRepository
    drafts: DraftRepository
    statuses: ProductStatusRepository

    @classmethod
    def from_session(cls, session: AsyncSession) -> "Repositories":
        return cls(
            products=ProductRepository(session),
            contents=ProductContentRepository(session),
            templates=TemplateRepository(session),
            logos=LogoRepository(session),
            drafts=DraftRepository(session),
            statuses=ProductStatusRepository(session),
        )


@asynccontextmanager
async def repositories_scope() -> AsyncIterator[Repositories]:
    """Open a session for work that runs outside a request."""
    async with get_session_factory()() as session:
        yield Repositories.from_session(session)

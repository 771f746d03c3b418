"""SQLAlchemy models for catalog content."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from catalog_content.layout.status import ContentStatus

from .base import Base


def _uuid() -> str:
    return str(uuid4())


class ProductModel(Base):
    """Catalog product tracked by the studio."""

    __tablename__ = "products"

    id = Column(Text, primary_key=True, default=_uuid, nullable=False)
    shopify_id = Column(Text, unique=True, nullable=True)
    sku = Column(Text, unique=True, nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.now,
        onupdate=datetime.now,
        nullable=False,
    )

    # Relationships
    contents = relationship(
        "ProductContentModel",
        back_populates="product",
        cascade="all, delete-orphan",
    )


class ProductContentModel(Base):
    """Saved tab content for a product."""

    __tablename__ = "product_content"
    __table_args__ = (UniqueConstraint("product_id", "tab_type"),)

    id = Column(Text, primary_key=True, default=_uuid, nullable=False)
    product_id = Column(Text, ForeignKey("products.id"), nullable=False)
    tab_type = Column(Text, nullable=False)
    content = Column(JSONB, nullable=False, default=dict)
    is_active = Column(Boolean, nullable=False, default=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.now,
        onupdate=datetime.now,
        nullable=False,
    )

    product = relationship("ProductModel", back_populates="contents")


class ContentTemplateModel(Base):
    """Reusable tab content."""

    __tablename__ = "content_templates"

    id = Column(Text, primary_key=True, default=_uuid, nullable=False)
    name = Column(Text, nullable=False)
    tab_type = Column(Text, nullable=False)
    content = Column(JSONB, nullable=False, default=dict)
    is_default = Column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.now,
        onupdate=datetime.now,
        nullable=False,
    )


class LogoModel(Base):
    """Certification or brand logo available to description tabs."""

    __tablename__ = "logo_library"

    id = Column(Text, primary_key=True, default=_uuid, nullable=False)
    name = Column(Text, nullable=False)
    url = Column(Text, nullable=False)
    alt_text = Column(Text, nullable=False)
    category = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.now, nullable=False)


class DraftContentModel(Base):
    """Unsaved tab content keyed by the Shopify product id."""

    __tablename__ = "draft_content"
    __table_args__ = (UniqueConstraint("shopify_product_id", "tab_type"),)

    id = Column(Text, primary_key=True, default=_uuid, nullable=False)
    shopify_product_id = Column(Text, nullable=False, index=True)
    tab_type = Column(Text, nullable=False)
    content = Column(JSONB, nullable=False, default=dict)

    # Timestamps
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.now,
        onupdate=datetime.now,
        nullable=False,
        index=True,
    )


class ProductStatusModel(Base):
    """Persisted content status of a Shopify product."""

    __tablename__ = "product_status"

    id = Column(Text, primary_key=True, default=_uuid, nullable=False)
    shopify_product_id = Column(Text, unique=True, nullable=False)
    has_new_layout = Column(Boolean, nullable=False, default=False)
    has_draft_content = Column(Boolean, nullable=False, default=False)
    has_shopify_content = Column(Boolean, nullable=False, default=False)
    content_count = Column(Integer, nullable=False, default=0)
    is_our_template_structure = Column(Boolean, nullable=False, default=False)
    last_shopify_check = Column(DateTime, nullable=True)
    last_updated = Column(
        DateTime,
        default=datetime.now,
        onupdate=datetime.now,
        nullable=False,
    )
    created_at = Column(DateTime, default=datetime.now, nullable=False)

    def to_status(self) -> ContentStatus:
        return ContentStatus(
            has_shopify_content=bool(self.has_shopify_content),
            has_new_layout=bool(self.has_new_layout),
            has_draft_content=bool(self.has_draft_content),
            content_count=int(self.content_count or 0),
        )

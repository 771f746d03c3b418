"""Pydantic models for Shopify Admin REST payloads."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ShopifyVariant(BaseModel):
    """Product variant; only the fields the studio reads."""

    model_config = ConfigDict(extra="ignore")

    id: int
    sku: Optional[str] = None
    title: Optional[str] = None
    price: Optional[str] = None


class ShopifyProduct(BaseModel):
    """Product as returned with ``fields=id,title,body_html,handle,variants``."""

    model_config = ConfigDict(extra="ignore")

    id: int
    title: str = ""
    body_html: Optional[str] = None
    handle: Optional[str] = None
    variants: List[ShopifyVariant] = Field(default_factory=list)

    @property
    def skus(self) -> list[str]:
        return [variant.sku for variant in self.variants if variant.sku]

    @property
    def has_content(self) -> bool:
        """True when the product description is not blank."""
        return bool(self.body_html and self.body_html.strip())


class ShopifyCollection(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    handle: str
    title: str = ""
    body_html: Optional[str] = None


class ProductPage(BaseModel):
    """One page of a cursor-paginated product listing."""

    products: List[ShopifyProduct]
    has_more: bool
    next_cursor: Optional[str] = None

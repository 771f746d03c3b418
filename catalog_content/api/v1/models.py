"""Pydantic models for the v1 API."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from catalog_content.layout.classifier import classify, detect_sections


class ApiModel(BaseModel):
    """Base for request and response bodies, serialized in camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ProductStatusRequest(ApiModel):
    product_ids: List[str]


class ProductCreate(ApiModel):
    sku: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    shopify_id: Optional[str] = None


class ProductResponse(ApiModel):
    id: str
    sku: str
    title: str
    description: Optional[str] = None
    shopify_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class TabContentIn(ApiModel):
    tab_type: str = Field(..., min_length=1)
    content: Dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True


class ProductContentResponse(ApiModel):
    id: str
    product_id: str
    tab_type: str
    content: Dict[str, Any]
    is_active: bool
    updated_at: datetime


class ProductLookupResponse(ApiModel):
    product: ProductResponse
    content: List[ProductContentResponse]


class PublishRequest(ApiModel):
    """Optional explicit tabs; saved content is used when omitted."""

    tabs: Optional[List[TabContentIn]] = None


class ClassificationResponse(ApiModel):
    is_new_layout: bool
    content_count: int
    sections: List[str]

    @classmethod
    def from_html(cls, html: str) -> "ClassificationResponse":
        result = classify(html)
        return cls(
            is_new_layout=result.is_new_layout,
            content_count=result.content_count,
            sections=list(detect_sections(html)),
        )


class PublishResponse(ApiModel):
    message: str
    html: str
    classification: ClassificationResponse


class DraftSaveRequest(ApiModel):
    shopify_product_id: str = Field(..., min_length=1)
    tab_type: str = Field(..., min_length=1)
    content: Dict[str, Any]


class DraftResponse(ApiModel):
    id: str
    shopify_product_id: str
    tab_type: str
    content: Dict[str, Any]
    updated_at: datetime


class DraftListResponse(ApiModel):
    draft_content: List[DraftResponse]


class ExtractedContentResponse(ApiModel):
    extracted_content: Dict[str, Dict[str, Any]]


class TemplateCreate(ApiModel):
    name: str = Field(..., min_length=1)
    tab_type: str = Field(..., min_length=1)
    content: Dict[str, Any]
    is_default: bool = False


class TemplateResponse(TemplateCreate):
    id: str


class LogoCreate(ApiModel):
    name: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    alt_text: str
    category: Optional[str] = None


class LogoResponse(LogoCreate):
    id: str


class PreviewRequest(ApiModel):
    tabs: List[TabContentIn]
    product_sku: Optional[str] = None


class PreviewResponse(ApiModel):
    html: str
    classification: ClassificationResponse


class MessageResponse(ApiModel):
    message: str


class ProductSearchResponse(ApiModel):
    products: List[Dict[str, Any]]
    total_found: int
    query: str


class ProductListResponse(ApiModel):
    products: List[Dict[str, Any]]
    has_more: bool
    next_cursor: Optional[str] = None


class FilteredProductsResponse(ApiModel):
    filter: str
    product_ids: List[str]
    total: int


class RefreshResponse(ApiModel):
    checked: int
    updated: int


class BackgroundActionResponse(ApiModel):
    started: Optional[bool] = None
    stopped: Optional[bool] = None
    message: str


class ForceRefreshResponse(ApiModel):
    invalidated: int


class CleanupResponse(ApiModel):
    deleted: int

"""Per-product content status, list filters and aggregate counts."""

from collections.abc import Iterable, Mapping
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from catalog_content.layout.classifier import LayoutClassification


class ContentStatus(BaseModel):
    """Derived content status of a single product.

    ``has_shopify_content`` and ``has_draft_content`` are supplied by the caller;
    ``has_new_layout`` and ``content_count`` come from the classifier.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    has_shopify_content: bool = False
    has_new_layout: bool = False
    has_draft_content: bool = False
    content_count: int = Field(default=0, ge=0)


EMPTY_STATUS = ContentStatus()


def combine_status(
    classification: LayoutClassification,
    has_shopify_content: bool,
    has_draft_content: bool,
) -> ContentStatus:
    """Merge a layout classification with the externally computed flags."""
    return ContentStatus(
        has_shopify_content=has_shopify_content,
        has_new_layout=classification.is_new_layout,
        has_draft_content=has_draft_content,
        content_count=classification.content_count,
    )


class StatusFilter(str, Enum):
    """Product list filters."""

    ALL = "all"
    SHOPIFY = "shopify"
    NEW_LAYOUT = "new-layout"
    DRAFT_MODE = "draft-mode"
    NONE = "none"


def matches_filter(status: ContentStatus | None, status_filter: StatusFilter) -> bool:
    """Decide whether a product belongs in a filtered list.

    A product that has never been classified only shows up under ``none`` and
    ``all``. Draft content does not keep a product out of ``none``.
    """
    if status_filter is StatusFilter.ALL:
        return True
    if status is None:
        return status_filter is StatusFilter.NONE
    if status_filter is StatusFilter.SHOPIFY:
        return status.has_shopify_content
    if status_filter is StatusFilter.NEW_LAYOUT:
        return status.has_new_layout
    if status_filter is StatusFilter.DRAFT_MODE:
        return status.has_draft_content
    return not status.has_shopify_content and not status.has_new_layout


def filter_product_ids(
    product_ids: Iterable[str],
    statuses: Mapping[str, ContentStatus],
    status_filter: StatusFilter,
) -> list[str]:
    """Keep the ids whose status matches ``status_filter``, preserving order."""
    return [
        product_id
        for product_id in product_ids
        if matches_filter(statuses.get(product_id), status_filter)
    ]


class StatusCounts(BaseModel):
    """Number of products per filter."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int = 0
    shopify_content: int = 0
    new_layout: int = 0
    draft_mode: int = 0
    no_content: int = 0


def count_statuses(statuses: Iterable[ContentStatus]) -> StatusCounts:
    """Count products per filter using the same rules as ``matches_filter``."""
    total = shopify_content = new_layout = draft_mode = no_content = 0
    for status in statuses:
        total += 1
        shopify_content += matches_filter(status, StatusFilter.SHOPIFY)
        new_layout += matches_filter(status, StatusFilter.NEW_LAYOUT)
        draft_mode += matches_filter(status, StatusFilter.DRAFT_MODE)
        no_content += matches_filter(status, StatusFilter.NONE)
    return StatusCounts(
        total=total,
        shopify_content=shopify_content,
        new_layout=new_layout,
        draft_mode=draft_mode,
        no_content=no_content,
    )

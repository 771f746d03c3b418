"""Layout detection and content status for product descriptions."""

from catalog_content.layout.classifier import (
    LayoutClassification,
    classify,
    detect_markers,
    detect_sections,
)
from catalog_content.layout.status import (
    ContentStatus,
    StatusCounts,
    StatusFilter,
    combine_status,
    count_statuses,
    filter_product_ids,
    matches_filter,
)

__all__ = [
    "ContentStatus",
    "LayoutClassification",
    "StatusCounts",
    "StatusFilter",
    "classify",
    "combine_status",
    "count_statuses",
    "detect_markers",
    "detect_sections",
    "filter_product_ids",
    "matches_filter",
]

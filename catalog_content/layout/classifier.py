"""Content-layout classifier for stored product HTML.

Detection is literal, case-sensitive substring containment. The input is never
parsed, so malformed or truncated markup is classified exactly like well-formed
markup containing the same text.
"""

from dataclasses import dataclass

from catalog_content.layout.sections import (
    CONTAINER_MARKER,
    DATA_SECTION_MARKER,
    SECTION_KEYS,
    SECTION_MARKERS,
    SKU_MARKER,
    TAB_CONTENT_MARKER,
    TAB_ID_MARKERS,
)


@dataclass(frozen=True)
class LayoutMarkers:
    """Structural markers found in a piece of HTML."""

    has_sku_marker: bool = False
    has_container_marker: bool = False
    has_tab_content_marker: bool = False
    has_tab_id_marker: bool = False
    has_data_section_marker: bool = False

    @property
    def has_structure(self) -> bool:
        return (
            self.has_container_marker
            or self.has_tab_content_marker
            or self.has_tab_id_marker
            or self.has_data_section_marker
        )


@dataclass(frozen=True)
class LayoutClassification:
    """Result of classifying one HTML document."""

    is_new_layout: bool = False
    content_count: int = 0


EMPTY_CLASSIFICATION = LayoutClassification()


def _is_blank(html: str | None) -> bool:
    return not html or not html.strip()


def detect_markers(html: str | None) -> LayoutMarkers:
    """Report which structural markers occur in ``html``."""
    if _is_blank(html):
        return LayoutMarkers()
    assert html is not None
    return LayoutMarkers(
        has_sku_marker=SKU_MARKER in html,
        has_container_marker=CONTAINER_MARKER in html,
        has_tab_content_marker=TAB_CONTENT_MARKER in html,
        has_tab_id_marker=any(marker in html for marker in TAB_ID_MARKERS),
        has_data_section_marker=DATA_SECTION_MARKER in html,
    )


def detect_sections(html: str | None) -> tuple[str, ...]:
    """Return the section keys found in ``html``, in vocabulary order.

    Each key appears at most once no matter how many of its markers occur.
    """
    if _is_blank(html):
        return ()
    assert html is not None
    return tuple(
        key
        for key in SECTION_KEYS
        if any(marker in html for marker in SECTION_MARKERS[key])
    )


def classify(html: str | None) -> LayoutClassification:
    """Classify product HTML as the studio's own layout and count its sections.

    The SKU marker is mandatory for the new layout; it must be accompanied by at
    least one of the container class, a ``tab-content`` block, a legacy tab id
    or a ``data-section`` attribute. The section count is independent of that
    decision, so weak markers can yield a new layout with zero sections.

    Args:
        html: Stored product description. ``None`` and blank strings are
            treated as no content.

    Returns:
        The classification. Never raises.
    """
    if _is_blank(html):
        return EMPTY_CLASSIFICATION

    markers = detect_markers(html)
    return LayoutClassification(
        is_new_layout=markers.has_sku_marker and markers.has_structure,
        content_count=len(detect_sections(html)),
    )

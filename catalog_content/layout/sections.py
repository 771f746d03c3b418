"""Section vocabulary recognised in product description HTML.

A product page produced by the content studio is split into tabs. Each tab is
identified by a section key and can be found in stored HTML through one or more
literal markers. Counts produced against this table are only comparable while
``LAYOUT_VOCABULARY_VERSION`` stays the same: adding a key means adding its
markers here and bumping the version.
"""

from types import MappingProxyType
from typing import Mapping

LAYOUT_VOCABULARY_VERSION = 1

# Structural markers
SKU_MARKER = "data-sku="
CONTAINER_MARKER = 'class="container"'
TAB_CONTENT_MARKER = "tab-content"
DATA_SECTION_MARKER = "data-section="

# Tabs that predate the data-section attribute and may be addressed by id
LEGACY_ID_SECTIONS: tuple[str, ...] = (
    "description",
    "features",
    "applications",
    "specifications",
)

SECTION_KEYS: tuple[str, ...] = (
    *LEGACY_ID_SECTIONS,
    "documentation",
    "videos",
    "safety-guidelines",
    "sterilization-method",
    "compatible-container",
    "sku-nomenclature",
)


def id_marker(key: str) -> str:
    """Return the ``id="..."`` marker for a section key."""
    return f'id="{key}"'


def data_section_marker(key: str) -> str:
    """Return the ``data-section="..."`` marker for a section key."""
    return f'data-section="{key}"'


def _build_marker_table() -> Mapping[str, tuple[str, ...]]:
    table: dict[str, tuple[str, ...]] = {}
    for key in SECTION_KEYS:
        markers = [data_section_marker(key)]
        if key in LEGACY_ID_SECTIONS:
            markers.insert(0, id_marker(key))
        table[key] = tuple(markers)
    return MappingProxyType(table)


SECTION_MARKERS: Mapping[str, tuple[str, ...]] = _build_marker_table()

TAB_ID_MARKERS: tuple[str, ...] = tuple(id_marker(key) for key in LEGACY_ID_SECTIONS)

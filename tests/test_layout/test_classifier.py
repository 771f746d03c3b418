"""Tests for the content-layout classifier."""

import pytest

from catalog_content.layout.classifier import (
    EMPTY_CLASSIFICATION,
    LayoutClassification,
    classify,
    detect_markers,
    detect_sections,
)
from catalog_content.layout.sections import (
    LEGACY_ID_SECTIONS,
    SECTION_KEYS,
    SECTION_MARKERS,
    data_section_marker,
    id_marker,
)


class TestSectionVocabulary:
    """The section table."""

    def test_has_ten_keys(self) -> None:
        assert len(SECTION_KEYS) == 10
        assert len(set(SECTION_KEYS)) == 10

    def test_legacy_sections_accept_id_and_data_section(self) -> None:
        for key in LEGACY_ID_SECTIONS:
            assert SECTION_MARKERS[key] == (id_marker(key), data_section_marker(key))

    def test_newer_sections_only_accept_data_section(self) -> None:
        assert SECTION_MARKERS["videos"] == ('data-section="videos"',)
        assert SECTION_MARKERS["sku-nomenclature"] == ('data-section="sku-nomenclature"',)

    def test_table_is_read_only(self) -> None:
        with pytest.raises(TypeError):
            SECTION_MARKERS["extra"] = ("x",)  # type: ignore[index]


class TestClassifyEmptyInput:
    """Missing or blank HTML."""

    @pytest.mark.parametrize("html", [None, "", "   ", "\n\t  \n"])
    def test_blank_input_is_not_new_layout(self, html: str | None) -> None:
        assert classify(html) == LayoutClassification(is_new_layout=False, content_count=0)

    def test_blank_input_has_no_markers_or_sections(self) -> None:
        assert not detect_markers(None).has_structure
        assert detect_sections("  ") == ()


class TestNewLayoutDecision:
    """The SKU marker plus one structural marker."""

    @pytest.mark.parametrize(
        "html",
        [
            '<div class="container" data-sku="ABC-1"></div>',
            '<div data-sku="ABC-1"><div class="tab-content"></div></div>',
            '<div data-sku="ABC-1"><div id="features"></div></div>',
            '<div data-sku="ABC-1"><div data-section="videos"></div></div>',
        ],
    )
    def test_sku_with_any_structure_is_new_layout(self, html: str) -> None:
        assert classify(html).is_new_layout

    def test_sku_marker_alone_is_not_enough(self) -> None:
        assert not classify('<div data-sku="ABC-1"><p>Plain text</p></div>').is_new_layout

    def test_structure_without_sku_is_not_new_layout(self) -> None:
        # Arrange
        html = (
            '<div class="container"><div class="tab-content" id="description">'
            "<p>Hi</p></div></div>"
        )

        # Act
        result = classify(html)

        # Assert
        assert not result.is_new_layout
        assert result.content_count == 1

    def test_published_two_tab_page(self) -> None:
        html = (
            '<div class="container" data-sku="X">'
            '<div class="tab-content" id="description">...</div>'
            '<div class="tab-content" id="features">...</div>'
            "</div>"
        )
        assert classify(html) == LayoutClassification(is_new_layout=True, content_count=2)

    def test_container_with_legacy_ids_only(self) -> None:
        html = (
            '<div class="container" data-sku="X">'
            '<div id="description"></div><div id="features"></div></div>'
        )

        markers = detect_markers(html)

        assert not markers.has_tab_content_marker
        assert not markers.has_data_section_marker
        assert classify(html) == LayoutClassification(is_new_layout=True, content_count=2)

    def test_weak_markers_give_new_layout_with_no_sections(self) -> None:
        result = classify('<div class="container" data-sku="X"><p>text</p></div>')
        assert result == LayoutClassification(is_new_layout=True, content_count=0)

    def test_markers_are_case_sensitive(self) -> None:
        html = '<div CLASS="container" DATA-SKU="X" ID="description"></div>'
        assert classify(html) == EMPTY_CLASSIFICATION

    def test_container_marker_requires_exact_class_attribute(self) -> None:
        markers = detect_markers('<div class="container wide" data-sku="X"></div>')
        assert markers.has_sku_marker
        assert not markers.has_container_marker
        assert not markers.has_structure


class TestSectionCounting:
    """Counting distinct sections."""

    def test_section_found_by_id_and_data_section_counts_once(self) -> None:
        html = '<div id="description" data-section="description"></div>'
        assert detect_sections(html) == ("description",)
        assert classify(html).content_count == 1

    def test_repeated_markers_count_once(self) -> None:
        html = '<div id="features"></div><div id="features"></div>'
        assert classify(html).content_count == 1

    def test_every_section_is_counted(self) -> None:
        html = "".join(f'<div data-section="{key}"></div>' for key in SECTION_KEYS)
        assert classify(html).content_count == 10

    def test_sections_reported_in_vocabulary_order(self) -> None:
        html = '<div data-section="videos"></div><div id="description"></div>'
        assert detect_sections(html) == ("description", "videos")

    def test_newer_sections_are_not_found_by_id(self) -> None:
        assert detect_sections('<div id="videos"></div>') == ()

    def test_singular_specification_id_is_not_a_section(self) -> None:
        assert detect_sections('<div id="specification"></div>') == ()

    def test_truncated_markup_is_still_classified(self) -> None:
        html = '<div class="container" data-sku="X"><div id="description"'
        assert classify(html) == LayoutClassification(is_new_layout=True, content_count=1)

    def test_classification_is_deterministic(self) -> None:
        html = '<div data-sku="X" class="container"><div id="applications"></div></div>'
        assert classify(html) == classify(html)

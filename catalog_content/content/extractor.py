"""Recover editable tab content from an existing product description."""

from typing import Any

from bs4 import BeautifulSoup, Tag

from catalog_content.core.logging import get_logger

logger = get_logger(__name__)

# Default datasheet links are regenerated on publish and are not user content
DEFAULT_DATASHEET_PATH = "product-data-sheets"


def _text(tag: Tag) -> str:
    return tag.get_text(" ", strip=True)


def _section(soup: BeautifulSoup, key: str) -> Tag | None:
    """Find a tab block by id, falling back to its data-section attribute."""
    found = soup.find(id=key) or soup.find(attrs={"data-section": key})
    return found if isinstance(found, Tag) else None


def _list_texts(block: Tag) -> list[str]:
    return [text for text in (_text(li) for li in block.find_all("li")) if text]


def _extract_description(block: Tag) -> dict[str, Any] | None:
    heading = block.find("h2")
    if heading is None and isinstance(block.parent, Tag):
        # Page heading is rendered just inside the container
        heading = block.parent.find("h2", recursive=False)
    title = _text(heading) if isinstance(heading, Tag) else ""

    paragraphs = [_text(p) for p in block.find_all("p")]
    description = "\n\n".join(p for p in paragraphs if p)

    logos = [
        {"url": img.get("src", ""), "alt": img.get("alt", "")}
        for img in block.find_all("img")
        if img.get("src")
    ]
    if not (title or description or logos):
        return None
    return {"title": title, "description": description, "logos": logos}


def _extract_specifications(block: Tag) -> list[dict[str, str]]:
    specifications = []
    for row in block.find_all("tr"):
        cells = [_text(td) for td in row.find_all(["td", "th"])]
        if len(cells) < 2:
            continue
        item, value = cells[0], cells[1]
        if item and value and item != "ITEM" and value != "VALUE":
            specifications.append({"item": item, "value": value})
    return specifications


def _extract_compatible_items(block: Tag) -> list[dict[str, str]]:
    items = []
    for item in block.select(".compatible-item"):
        link = item.find("a", href=True)
        if link is None:
            continue
        image = item.find("img")
        paragraph = item.find("p")
        items.append(
            {
                "title": _text(link),
                "url": link["href"],
                "image": image.get("src", "") if image else "",
                "description": _text(paragraph) if paragraph else "",
            }
        )
    return items


def _extract_documentation(block: Tag) -> list[dict[str, str]]:
    return [
        {"title": _text(link), "url": link["href"]}
        for link in block.find_all("a", href=True)
        if DEFAULT_DATASHEET_PATH not in link["href"]
    ]


def _extract_videos(block: Tag) -> list[dict[str, str]]:
    return [
        {"url": iframe["src"], "title": "Product Video"}
        for iframe in block.find_all("iframe", src=True)
    ]


def extract_content(html: str | None) -> dict[str, dict[str, Any]]:
    """Map product HTML back to tab form data.

    Any paragraphs become a description and any list items become features.
    Blocks laid out by the studio then replace those guesses with structured
    values. Tabs with nothing to recover are left out.

    Args:
        html: Product description as stored in Shopify

    Returns:
        Form data keyed by tab type
    """
    extracted: dict[str, dict[str, Any]] = {}
    if not html or not html.strip():
        return extracted

    soup = BeautifulSoup(html, "html.parser")

    paragraphs = [text for text in (_text(p) for p in soup.find_all("p")) if text]
    if paragraphs:
        extracted["description"] = {
            "title": "",
            "description": "\n\n".join(paragraphs),
            "logos": [],
        }

    list_items = _list_texts(soup)
    if list_items:
        extracted["features"] = {"features": list_items}

    block = _section(soup, "description")
    if block is not None:
        description = _extract_description(block)
        if description:
            extracted["description"] = description

    for key, field in (
        ("features", "features"),
        ("applications", "applications"),
        ("safety-guidelines", "guidelines"),
    ):
        block = _section(soup, key)
        if block is not None:
            values = _list_texts(block)
            if values:
                extracted[key] = {field: values}

    block = _section(soup, "specifications")
    if block is not None:
        specifications = _extract_specifications(block)
        if specifications:
            extracted["specifications"] = {"specifications": specifications}

    block = _section(soup, "compatible-container")
    if block is not None:
        items = _extract_compatible_items(block)
        if items:
            extracted["compatible-container"] = {"compatibleItems": items}

    block = _section(soup, "documentation")
    if block is not None:
        datasheets = _extract_documentation(block)
        if datasheets:
            extracted["documentation"] = {"datasheets": datasheets}

    block = _section(soup, "videos")
    if block is not None:
        videos = _extract_videos(block)
        if videos:
            extracted["videos"] = {"videos": videos}

    logger.debug("content_extracted", tabs=sorted(extracted))
    return extracted

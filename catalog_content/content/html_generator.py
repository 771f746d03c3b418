"""Render saved tab content into Shopify product description HTML.

Every block carries both ``id`` and ``data-section`` attributes and the outer
container carries ``data-sku``, so published descriptions are recognised by
:func:`catalog_content.layout.classifier.classify`.
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from html import escape
from typing import Any

from catalog_content.layout.sections import data_section_marker

INDENT = "    "

VIDEO_IFRAME_ATTRS = (
    'width="560" height="315" title="YouTube video player" frameborder="0" '
    'allow="accelerometer; autoplay; clipboard-write; encrypted-media; gyroscope; '
    'picture-in-picture; web-share" referrerpolicy="strict-origin-when-cross-origin" '
    "allowfullscreen"
)


@dataclass
class TabContent:
    """One tab of product content as stored or edited."""

    tab_type: str
    content: Mapping[str, Any] = field(default_factory=dict)
    is_active: bool = True


def _attr(value: Any) -> str:
    return escape(str(value), quote=True)


def _open_tab(key: str, active: bool = False) -> str:
    css = "tab-content active" if active else "tab-content"
    return f'{INDENT}<div class="{css}" id="{key}" {data_section_marker(key)}>\n'


def _close_tab() -> str:
    return f"{INDENT}</div>\n"


def _list_items(items: Any) -> list[str]:
    if not isinstance(items, list):
        return []
    return [str(item) for item in items if item]


def _bullet_list(items: Any) -> str:
    html = f"{INDENT}<ul>\n"
    for item in _list_items(items):
        html += f'{INDENT * 3}<li><span style="line-height: 1.4;">{item}</span></li>\n'
    html += f"{INDENT}</ul>\n"
    return html


def render_description(content: Mapping[str, Any]) -> str:
    html = _open_tab("description", active=True)
    for paragraph in str(content.get("description") or "").split("\n\n"):
        if paragraph.strip():
            html += f"{INDENT}<p>{paragraph.strip()}</p>\n"

    logos = content.get("logos") or []
    if logos:
        html += f'{INDENT}<div class="logo-grid">\n'
        for logo in logos:
            alt = logo.get("altText") or logo.get("alt") or ""
            html += f'{INDENT}<img alt="{_attr(alt)}" src="{_attr(logo.get("url", ""))}">\n'
        html += f"{INDENT}</div>\n"
    return html + _close_tab()


def render_features(content: Mapping[str, Any]) -> str:
    return _open_tab("features") + _bullet_list(content.get("features")) + _close_tab()


def render_applications(content: Mapping[str, Any]) -> str:
    return (
        _open_tab("applications")
        + _bullet_list(content.get("applications"))
        + _close_tab()
    )


def render_safety_guidelines(content: Mapping[str, Any]) -> str:
    return (
        _open_tab("safety-guidelines")
        + _bullet_list(content.get("guidelines"))
        + _close_tab()
    )


def render_sterilization_method(content: Mapping[str, Any]) -> str:
    html = _open_tab("sterilization-method")
    if content.get("title"):
        html += f"{INDENT * 2}<h3>{content['title']}</h3>\n"
    if content.get("description"):
        html += f"{INDENT * 2}<p>{content['description']}</p>\n"
    methods = content.get("methods")
    if methods:
        html += _bullet_list(methods)
    return html + _close_tab()


def render_specifications(content: Mapping[str, Any]) -> str:
    html = _open_tab("specifications")
    html += f'{INDENT}<table style="width: 100%;">\n{INDENT}<tbody>\n'
    html += f"{INDENT}<tr>\n{INDENT}<td>ITEM</td>\n{INDENT}<td>VALUE</td>\n{INDENT}</tr>\n"
    specifications = content.get("specifications")
    if isinstance(specifications, list):
        for spec in specifications:
            html += f"{INDENT}<tr>\n"
            html += f"{INDENT}<td>{spec.get('item', '')}</td>\n"
            html += f"{INDENT}<td>{spec.get('value', '')}</td>\n"
            html += f"{INDENT}</tr>\n"
    html += f"{INDENT}</tbody>\n{INDENT}</table>\n"
    return html + _close_tab()


def render_videos(content: Mapping[str, Any]) -> str:
    html = _open_tab("videos")
    urls = [content["videoUrl"]] if content.get("videoUrl") else []
    urls += [video.get("url") for video in content.get("videos") or [] if video.get("url")]
    for url in urls:
        html += f'{INDENT * 2}<iframe src="{_attr(url)}" {VIDEO_IFRAME_ATTRS}></iframe>\n'
    if content.get("youtubeChannelText"):
        html += f"{INDENT}<p>{content['youtubeChannelText']}</p>\n"
    return html + _close_tab()


def render_documentation(content: Mapping[str, Any]) -> str:
    html = _open_tab("documentation")
    links: list[tuple[str, str]] = []
    if content.get("datasheetUrl"):
        links.append(
            (content["datasheetUrl"], content.get("datasheetTitle") or "Product Datasheet")
        )
    for key in ("additionalLinks", "datasheets"):
        for link in content.get(key) or []:
            if link.get("url"):
                links.append((link["url"], link.get("title") or link["url"]))
    for url, title in links:
        html += f'{INDENT}<p><a href="{_attr(url)}" target="_blank">{title}</a></p>\n'
    return html + _close_tab()


def render_sku_nomenclature(content: Mapping[str, Any]) -> str:
    html = _open_tab("sku-nomenclature")
    if content.get("title"):
        html += f"{INDENT * 2}<h3>{content['title']}</h3>\n"

    if content.get("mainImage"):
        html += f'{INDENT * 2}<div class="sku-main-image">\n'
        html += (
            f'{INDENT * 3}<img src="{_attr(content["mainImage"])}" '
            'alt="SKU Nomenclature" class="sku-nomenclature-image" />\n'
        )
        html += f"{INDENT * 2}</div>\n"

    images = [url for url in content.get("additionalImages") or [] if url]
    if images:
        html += f'{INDENT * 2}<div class="sku-additional-images">\n'
        html += f"{INDENT * 3}<h4>Additional Images</h4>\n"
        html += f'{INDENT * 3}<div class="image-gallery">\n'
        for url in images:
            html += (
                f'{INDENT * 4}<img src="{_attr(url)}" '
                'alt="SKU Additional Image" class="gallery-image" />\n'
            )
        html += f"{INDENT * 3}</div>\n{INDENT * 2}</div>\n"

    components = [
        c
        for c in content.get("components") or []
        if c.get("code") and c.get("description")
    ]
    if components:
        html += f'{INDENT * 2}<div class="sku-breakdown">\n'
        for component in components:
            code = component["code"]
            html += f'{INDENT * 3}<div class="sku-component">\n'
            html += (
                f"{INDENT * 4}<p><strong>{code}</strong> = "
                f"{component['description']}</p>\n"
            )
            component_images = [url for url in component.get("images") or [] if url]
            if component_images:
                html += f'{INDENT * 4}<div class="component-images">\n'
                for url in component_images:
                    html += (
                        f'{INDENT * 5}<img src="{_attr(url)}" '
                        f'alt="{_attr(code)} Image" class="component-image" />\n'
                    )
                html += f"{INDENT * 4}</div>\n"
            html += f"{INDENT * 3}</div>\n"
        html += f"{INDENT * 2}</div>\n"
    return html + _close_tab()


def render_compatible_container(content: Mapping[str, Any]) -> str:
    html = _open_tab("compatible-container")
    if content.get("title"):
        html += f"{INDENT * 2}<h3>{content['title']}</h3>\n"
    if content.get("description"):
        html += f"{INDENT * 2}<p>{content['description']}</p>\n"

    for item in content.get("compatibleItems") or []:
        if not item.get("url"):
            continue
        html += f'{INDENT * 2}<div class="compatible-item">\n'
        if item.get("image"):
            html += f'{INDENT * 3}<img src="{_attr(item["image"])}" alt="{_attr(item.get("title", ""))}">\n'
        html += f'{INDENT * 3}<a href="{_attr(item["url"])}">{item.get("title", "")}</a>\n'
        if item.get("description"):
            html += f"{INDENT * 3}<p>{item['description']}</p>\n"
        html += f"{INDENT * 2}</div>\n"

    handle = content.get("collectionHandle")
    if handle:
        html += f'{INDENT * 2}<div class="collection-showcase" data-collection="{_attr(handle)}">\n'
        html += (
            f'{INDENT * 3}<p>Browse compatible products in the '
            f'<a href="/collections/{_attr(handle)}">product collection</a>.</p>\n'
        )
        html += f"{INDENT * 2}</div>\n"
    return html + _close_tab()


TAB_RENDERERS: dict[str, Callable[[Mapping[str, Any]], str]] = {
    "description": render_description,
    "features": render_features,
    "applications": render_applications,
    "specifications": render_specifications,
    "videos": render_videos,
    "documentation": render_documentation,
    "safety-guidelines": render_safety_guidelines,
    "sterilization-method": render_sterilization_method,
    "sku-nomenclature": render_sku_nomenclature,
    "compatible-container": render_compatible_container,
}


def generate_product_html(
    items: Iterable[TabContent], product_sku: str | None = None
) -> str:
    """Render active tabs in the order given.

    Inactive tabs and unknown tab types are skipped. The description title, if
    any, becomes the page heading.
    """
    items = [item for item in items if item.is_active]

    container_attrs = 'class="container"'
    if product_sku:
        container_attrs += f' data-sku="{_attr(product_sku)}"'
    html = f"<div {container_attrs}>\n"

    for item in items:
        if item.tab_type == "description" and item.content.get("title"):
            html += f"{INDENT}<h2>{item.content['title']}</h2>\n"
            break

    for item in items:
        renderer = TAB_RENDERERS.get(item.tab_type)
        if renderer is not None:
            html += renderer(item.content)

    return html + "</div>"

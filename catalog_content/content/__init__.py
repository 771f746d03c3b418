"""Product description HTML generation and extraction."""

from catalog_content.content.extractor import extract_content
from catalog_content.content.html_generator import TabContent, generate_product_html

__all__ = ["TabContent", "extract_content", "generate_product_html"]

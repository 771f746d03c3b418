"""Catalog content studio: Shopify product content editing and layout status."""

__version__ = "0.1.0"

"""Shopify Admin API access."""

"""Async client for the Shopify Admin REST API."""

import re
from collections.abc import AsyncIterator
from types import TracebackType
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from catalog_content.core.config import settings
from catalog_content.core.logging import get_logger
from catalog_content.shopify.models import (
    ProductPage,
    ShopifyCollection,
    ShopifyProduct,
)
from catalog_content.shopify.retry import with_rate_limit_retry

logger = get_logger(__name__)

PRODUCT_FIELDS = "id,title,body_html,handle,variants"
MAX_PAGE_SIZE = 250
SKU_LOOKUP_MAX_PAGES = 10
SKU_SEARCH_PAGES = 5
SKU_SEARCH_PAGE_SIZE = 20
TITLE_SEARCH_LIMIT = 50

_TRAILING_VARIANT_SUFFIX = re.compile(r"-\d*$")


class ShopifyAPIError(Exception):
    """Shopify answered with an error status.

    ``status_code`` is what this service reports to its own callers;
    ``upstream_status`` is the status Shopify returned.
    """

    status_code = 502

    def __init__(self, upstream_status: int, errors: Any = None) -> None:
        self.upstream_status = upstream_status
        self.errors = errors
        message = f"Shopify API error: {upstream_status}"
        if errors:
            message += f" - {errors}"
        super().__init__(message)


class ShopifyRateLimitError(ShopifyAPIError):
    """Shopify throttled the request (HTTP 429)."""

    status_code = 429

    def __init__(self, errors: Any = None, retry_after: float | None = None) -> None:
        super().__init__(429, errors)
        self.retry_after = retry_after


class ShopifyConfigurationError(Exception):
    """Store URL or access token is missing."""

    status_code = 503


def base_sku(sku: str) -> str:
    """Strip a trailing variant suffix such as ``-1`` or ``-``."""
    return _TRAILING_VARIANT_SUFFIX.sub("", sku)


def _normalize_store(store_url: str) -> str:
    store = store_url.strip()
    for prefix in ("https://", "http://"):
        if store.startswith(prefix):
            store = store[len(prefix) :]
    return store.rstrip("/")


def _parse_retry_after(response: httpx.Response) -> float | None:
    value = response.headers.get("Retry-After")
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


class ShopifyClient:
    """Thin wrapper over the product and collection endpoints the studio uses."""

    def __init__(
        self,
        store_url: str,
        access_token: str,
        api_version: str = "2023-10",
        timeout: float = 30.0,
        max_retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = f"https://{_normalize_store(store_url)}/admin/api/{api_version}"
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "X-Shopify-Access-Token": access_token,
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )
        self._send = with_rate_limit_retry(
            max_retries=max_retries,
            retry_on=(ShopifyRateLimitError, httpx.TransportError),
        )(self._send_once)

    async def __aenter__(self) -> "ShopifyClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _send_once(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        response = await self._client.request(method, path, params=params, json=json)
        if response.is_success:
            try:
                data = response.json()
            except ValueError as e:
                raise ShopifyAPIError(response.status_code, "response is not JSON") from e
            if not isinstance(data, dict):
                raise ShopifyAPIError(response.status_code, "unexpected response body")
            return data

        try:
            errors = response.json().get("errors")
        except ValueError:
            errors = response.text

        if response.status_code == 429:
            raise ShopifyRateLimitError(errors, _parse_retry_after(response))
        raise ShopifyAPIError(response.status_code, errors)

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return await self._send(method, path, params=params, json=json)

    async def get_product(self, product_id: str | int) -> ShopifyProduct | None:
        """Fetch one product, or ``None`` when Shopify does not know the id."""
        try:
            data = await self._request(
                "GET", f"/products/{product_id}.json", params={"fields": PRODUCT_FIELDS}
            )
        except ShopifyAPIError as e:
            if e.upstream_status == 404:
                return None
            raise
        try:
            return ShopifyProduct.model_validate(data["product"])
        except (KeyError, ValidationError) as e:
            raise ShopifyAPIError(200, f"invalid product payload: {e}") from e

    async def get_product_by_handle(self, handle: str) -> ShopifyProduct | None:
        data = await self._request(
            "GET", "/products.json", params={"handle": handle, "fields": PRODUCT_FIELDS}
        )
        products = data.get("products") or []
        return ShopifyProduct.model_validate(products[0]) if products else None

    async def get_collection_by_handle(self, handle: str) -> ShopifyCollection | None:
        """Look the handle up among custom collections, then smart collections."""
        for resource in ("custom_collections", "smart_collections"):
            data = await self._request(
                "GET", f"/{resource}.json", params={"handle": handle}
            )
            collections = data.get(resource) or []
            if collections:
                return ShopifyCollection.model_validate(collections[0])
        return None

    async def get_product_count(self) -> int:
        data = await self._request("GET", "/products/count.json")
        return int(data.get("count", 0))

    async def get_products_page(
        self, since_id: str | int | None = None, limit: int = MAX_PAGE_SIZE
    ) -> ProductPage:
        """Fetch products with ids greater than ``since_id``.

        A full page means more products may follow; its last id is the cursor
        for the next call.
        """
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        params: dict[str, Any] = {"fields": PRODUCT_FIELDS, "limit": limit}
        if since_id:
            params["since_id"] = since_id
        data = await self._request("GET", "/products.json", params=params)
        products = [ShopifyProduct.model_validate(p) for p in data.get("products", [])]
        has_more = len(products) == limit
        return ProductPage(
            products=products,
            has_more=has_more,
            next_cursor=str(products[-1].id) if has_more else None,
        )

    async def iter_products(
        self, page_size: int = MAX_PAGE_SIZE, max_pages: int | None = None
    ) -> AsyncIterator[list[ShopifyProduct]]:
        """Yield successive pages of products."""
        cursor: str | None = None
        pages = 0
        while max_pages is None or pages < max_pages:
            page = await self.get_products_page(since_id=cursor, limit=page_size)
            pages += 1
            if page.products:
                yield page.products
            if not page.has_more:
                return
            cursor = page.next_cursor

    async def find_product_by_sku(self, sku: str) -> ShopifyProduct | None:
        """Find the product owning a variant SKU.

        An exact variant match wins. Otherwise the SKU without its trailing
        ``-N`` suffix is matched as a prefix, so ``ABC-123-2`` finds ``ABC-123``.
        """
        candidates: list[ShopifyProduct] = []
        async for page in self.iter_products(max_pages=SKU_LOOKUP_MAX_PAGES):
            candidates.extend(page)

        for product in candidates:
            if sku in product.skus:
                return product

        prefix = base_sku(sku)
        for product in candidates:
            if any(variant_sku.startswith(prefix) for variant_sku in product.skus):
                logger.info("sku_fuzzy_match", sku=sku, product_id=product.id)
                return product

        logger.info("sku_not_found", sku=sku, products_scanned=len(candidates))
        return None

    async def search_by_title(
        self, query: str, limit: int = TITLE_SEARCH_LIMIT
    ) -> list[ShopifyProduct]:
        data = await self._request(
            "GET",
            "/products.json",
            params={"title": query, "limit": limit, "fields": PRODUCT_FIELDS},
        )
        return [ShopifyProduct.model_validate(p) for p in data.get("products", [])]

    async def search_by_sku(self, query: str) -> list[ShopifyProduct]:
        """Scan the first few small pages for SKUs containing ``query``.

        Stops at the first page with a match.
        """
        needle = query.lower()
        async for page in self.iter_products(
            page_size=SKU_SEARCH_PAGE_SIZE, max_pages=SKU_SEARCH_PAGES
        ):
            matches = [
                product
                for product in page
                if any(needle in variant_sku.lower() for variant_sku in product.skus)
            ]
            if matches:
                return matches
        return []

    async def search_products(self, query: str) -> list[ShopifyProduct]:
        """Search by id, title and SKU.

        A numeric query that names an existing product returns just that
        product. Otherwise title and SKU results are merged without duplicates.
        """
        query = query.strip()
        if query.isdigit():
            product = await self.get_product(query)
            if product is not None:
                return [product]

        results = await self.search_by_title(query)
        if len(query) >= 3:
            results += await self.search_by_sku(query)

        unique: dict[int, ShopifyProduct] = {}
        for product in results:
            unique.setdefault(product.id, product)
        return list(unique.values())

    async def update_product_description(
        self, product_id: str | int, body_html: str
    ) -> ShopifyProduct:
        data = await self._request(
            "PUT",
            f"/products/{product_id}.json",
            json={"product": {"id": int(product_id), "body_html": body_html}},
        )
        logger.info("shopify_description_updated", product_id=str(product_id))
        return ShopifyProduct.model_validate(data["product"])


# Global instance
_shopify_client: Optional[ShopifyClient] = None


def get_shopify_client() -> ShopifyClient:
    """Get the configured Shopify client.

    Raises:
        ShopifyConfigurationError: If the store URL or token is not set
    """
    global _shopify_client
    if _shopify_client is None:
        if not settings.shopify_configured:
            raise ShopifyConfigurationError(
                "Missing Shopify credentials. Set SHOPIFY_STORE_URL and "
                "SHOPIFY_ACCESS_TOKEN."
            )
        _shopify_client = ShopifyClient(
            store_url=settings.SHOPIFY_STORE_URL or "",
            access_token=settings.SHOPIFY_ACCESS_TOKEN or "",
            api_version=settings.SHOPIFY_API_VERSION,
            timeout=settings.SHOPIFY_TIMEOUT,
            max_retries=settings.SHOPIFY_MAX_RETRIES,
        )
    return _shopify_client


async def close_shopify_client() -> None:
    global _shopify_client
    if _shopify_client is not None:
        await _shopify_client.aclose()
    _shopify_client = None


def reset_shopify_client() -> None:
    """Reset client singleton. Used for testing."""
    global _shopify_client
    _shopify_client = None

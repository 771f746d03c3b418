"""Product lookup, content and status endpoints."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from starlette import status

from catalog_content.api.v1.dependencies import (
    get_repositories,
    get_shopify,
    get_status_service,
)
from catalog_content.api.v1.models import (
    ClassificationResponse,
    FilteredProductsResponse,
    ProductContentResponse,
    ProductCreate,
    ProductListResponse,
    ProductLookupResponse,
    ProductResponse,
    ProductSearchResponse,
    ProductStatusRequest,
    PublishRequest,
    PublishResponse,
    TabContentIn,
)
from catalog_content.content.html_generator import TabContent, generate_product_html
from catalog_content.core.logging import get_logger
from catalog_content.database.repositories import Repositories
from catalog_content.layout.status import ContentStatus, StatusCounts, StatusFilter
from catalog_content.services.product_status import (
    ProductStatusService,
    optional_shopify_client,
)
from catalog_content.shopify.client import ShopifyAPIError, ShopifyClient

router = APIRouter(prefix="/products", tags=["products"])
logger = get_logger(__name__)


@router.get("/lookup/{sku}", response_model=ProductLookupResponse)
async def lookup_product(
    sku: str, repos: Repositories = Depends(get_repositories)
) -> ProductLookupResponse:
    """
    Find a product by SKU and return it with its saved content.

    The local catalog is searched first, exactly and then by SKU prefix. A
    product only known to Shopify is copied into the local catalog.
    """
    product = await repos.products.get_by_sku(sku)
    if product is None:
        matches = await repos.products.search_by_sku_prefix(sku, limit=1)
        product = matches[0] if matches else None

    shopify = optional_shopify_client() if product is None else None
    if shopify is not None:
        try:
            remote = await shopify.find_product_by_sku(sku)
        except ShopifyAPIError as e:
            logger.warning("shopify_sku_lookup_failed", sku=sku, error=str(e))
            remote = None
        if remote is not None:
            product = await repos.products.create(
                shopify_id=str(remote.id),
                sku=sku if sku in remote.skus else (remote.skus[0] if remote.skus else sku),
                title=remote.title,
                description=remote.body_html or "",
            )

    if product is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, f"Product not found: {sku}")

    content = await repos.contents.list_for_product(product.id)
    return ProductLookupResponse(
        product=ProductResponse.model_validate(product),
        content=[ProductContentResponse.model_validate(item) for item in content],
    )


@router.get("/all", response_model=ProductListResponse)
@router.get("/batch", response_model=ProductListResponse)
async def list_products(
    since_id: Optional[str] = Query(None, description="Cursor from a previous page"),
    limit: int = Query(50, ge=1, le=250),
    shopify: ShopifyClient = Depends(get_shopify),
) -> ProductListResponse:
    """Page through Shopify products with a ``since_id`` cursor."""
    page = await shopify.get_products_page(since_id=since_id, limit=limit)
    return ProductListResponse(
        products=[product.model_dump() for product in page.products],
        has_more=page.has_more,
        next_cursor=page.next_cursor,
    )


@router.get("/search", response_model=ProductSearchResponse)
async def search_products(
    q: str = Query("", description="Product id, title or SKU fragment"),
    shopify: ShopifyClient = Depends(get_shopify),
) -> ProductSearchResponse:
    query = q.strip()
    if len(query) < 2:
        return ProductSearchResponse(products=[], total_found=0, query=query)
    products = await shopify.search_products(query)
    return ProductSearchResponse(
        products=[product.model_dump() for product in products],
        total_found=len(products),
        query=query,
    )


@router.get("/count")
async def count_products(shopify: ShopifyClient = Depends(get_shopify)) -> Dict[str, int]:
    return {"count": await shopify.get_product_count()}


@router.get("/shopify/{product_id}")
async def get_shopify_product(
    product_id: str, shopify: ShopifyClient = Depends(get_shopify)
) -> Dict[str, Any]:
    product = await shopify.get_product(product_id)
    if product is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Product not found")
    return product.model_dump()


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    body: ProductCreate, repos: Repositories = Depends(get_repositories)
) -> ProductResponse:
    if await repos.products.get_by_sku(body.sku) is not None:
        raise HTTPException(status.HTTP_409_CONFLICT, f"SKU already exists: {body.sku}")
    product = await repos.products.create(**body.model_dump())
    return ProductResponse.model_validate(product)


@router.post("/content-status", response_model=Dict[str, ContentStatus])
async def get_content_status(
    body: ProductStatusRequest,
    service: ProductStatusService = Depends(get_status_service),
) -> Dict[str, ContentStatus]:
    """
    Look up the content status of many products.

    Every requested id is present in the response. Products with no
    discoverable content, or whose lookup failed, report all flags false.
    """
    return await service.get_batch_status(body.product_ids)


@router.get("/status-counts", response_model=StatusCounts)
async def get_status_counts(
    service: ProductStatusService = Depends(get_status_service),
) -> StatusCounts:
    return await service.status_counts()


@router.get("/status", response_model=FilteredProductsResponse)
async def get_filtered_products(
    filter: StatusFilter = Query(StatusFilter.ALL),
    ids: Optional[List[str]] = Query(None, description="Restrict to these ids"),
    service: ProductStatusService = Depends(get_status_service),
) -> FilteredProductsResponse:
    product_ids = await service.filter_products(filter, ids)
    return FilteredProductsResponse(
        filter=filter.value, product_ids=product_ids, total=len(product_ids)
    )


@router.post("/{product_id}/content", response_model=List[ProductContentResponse])
async def save_product_content(
    product_id: str,
    tabs: List[TabContentIn],
    repos: Repositories = Depends(get_repositories),
    service: ProductStatusService = Depends(get_status_service),
) -> List[ProductContentResponse]:
    product = await repos.products.get_by_id(product_id)
    if product is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Product not found")

    saved = [
        await repos.contents.save(
            product_id, tab.tab_type, tab.content, is_active=tab.is_active
        )
        for tab in tabs
    ]
    if product.shopify_id:
        await service.mark_content_saved(
            product.shopify_id, has_content=any(tab.is_active for tab in tabs)
        )
    return [ProductContentResponse.model_validate(item) for item in saved]


@router.post("/{product_id}/update-shopify", response_model=PublishResponse)
async def publish_product(
    product_id: str,
    body: Optional[PublishRequest] = None,
    repos: Repositories = Depends(get_repositories),
    shopify: ShopifyClient = Depends(get_shopify),
    service: ProductStatusService = Depends(get_status_service),
) -> PublishResponse:
    """Render the product's tabs and write them to the Shopify description."""
    product = await repos.products.get_by_id(product_id)
    if product is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Product not found")
    if not product.shopify_id:
        raise HTTPException(
            status.HTTP_409_CONFLICT, "Product is not linked to a Shopify product"
        )

    if body is not None and body.tabs is not None:
        tabs = [TabContent(t.tab_type, t.content, t.is_active) for t in body.tabs]
    else:
        saved = await repos.contents.list_for_product(product.id)
        tabs = [TabContent(c.tab_type, c.content, c.is_active) for c in saved]

    html = generate_product_html(tabs, product_sku=product.sku)
    await shopify.update_product_description(product.shopify_id, html)
    await repos.products.update(product.id, description=html)
    await service.mark_published(product.shopify_id)

    return PublishResponse(
        message="Product updated successfully",
        html=html,
        classification=ClassificationResponse.from_html(html),
    )

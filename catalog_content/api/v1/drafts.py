"""Draft content endpoints."""

from fastapi import APIRouter, Depends
from starlette import status

from catalog_content.api.v1.dependencies import (
    get_repositories,
    get_shopify,
    get_status_service,
)
from catalog_content.api.v1.models import (
    DraftListResponse,
    DraftResponse,
    DraftSaveRequest,
    ExtractedContentResponse,
    MessageResponse,
)
from catalog_content.content.extractor import extract_content
from catalog_content.core.logging import get_logger
from catalog_content.database.repositories import Repositories
from catalog_content.services.product_status import (
    ProductStatusService,
    optional_shopify_client,
)
from catalog_content.shopify.client import ShopifyAPIError, ShopifyClient

router = APIRouter(tags=["drafts"])
logger = get_logger(__name__)


async def _ensure_local_product(repos: Repositories, shopify_product_id: str) -> None:
    """Create a local product record for a Shopify product seen for the first time."""
    if await repos.products.get_by_shopify_id(shopify_product_id) is not None:
        return

    remote = None
    shopify = optional_shopify_client()
    if shopify is not None:
        try:
            remote = await shopify.get_product(shopify_product_id)
        except ShopifyAPIError as e:
            logger.warning(
                "shopify_product_fetch_failed",
                shopify_product_id=shopify_product_id,
                error=str(e),
            )

    await repos.products.create(
        shopify_id=shopify_product_id,
        sku=(remote.handle if remote and remote.handle else None)
        or f"product-{shopify_product_id}",
        title=remote.title if remote and remote.title else "Product (Draft)",
        description=remote.body_html if remote else None,
    )
    logger.info("local_product_created", shopify_product_id=shopify_product_id)


@router.get("/draft-content/{shopify_product_id}", response_model=DraftListResponse)
async def list_drafts(
    shopify_product_id: str, repos: Repositories = Depends(get_repositories)
) -> DraftListResponse:
    drafts = await repos.drafts.list_for_product(shopify_product_id)
    return DraftListResponse(
        draft_content=[DraftResponse.model_validate(draft) for draft in drafts]
    )


@router.post("/draft-content", response_model=DraftResponse)
async def save_draft(
    body: DraftSaveRequest,
    repos: Repositories = Depends(get_repositories),
    service: ProductStatusService = Depends(get_status_service),
) -> DraftResponse:
    """Create or replace the draft of one tab."""
    await _ensure_local_product(repos, body.shopify_product_id)
    draft = await repos.drafts.save(body.shopify_product_id, body.tab_type, body.content)
    await service.invalidate(body.shopify_product_id)
    return DraftResponse.model_validate(draft)


@router.delete(
    "/draft-content/{shopify_product_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
)
async def delete_drafts(
    shopify_product_id: str,
    tab_type: str | None = None,
    repos: Repositories = Depends(get_repositories),
    service: ProductStatusService = Depends(get_status_service),
) -> MessageResponse:
    deleted = await repos.drafts.delete_for_product(shopify_product_id, tab_type)
    await service.invalidate(shopify_product_id)
    return MessageResponse(message=f"Deleted {deleted} draft(s)")


@router.get(
    "/extract-content/{shopify_product_id}", response_model=ExtractedContentResponse
)
async def extract_product_content(
    shopify_product_id: str, shopify: ShopifyClient = Depends(get_shopify)
) -> ExtractedContentResponse:
    """Turn the live Shopify description back into editable tabs."""
    product = await shopify.get_product(shopify_product_id)
    if product is None or not product.has_content:
        return ExtractedContentResponse(extracted_content={})
    return ExtractedContentResponse(extracted_content=extract_content(product.body_html))

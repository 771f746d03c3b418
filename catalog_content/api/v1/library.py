"""Templates, logos, HTML preview and Shopify lookups used by the editor."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from starlette import status

from catalog_content.api.v1.dependencies import get_repositories, get_shopify
from catalog_content.api.v1.models import (
    ClassificationResponse,
    LogoCreate,
    LogoResponse,
    MessageResponse,
    PreviewRequest,
    PreviewResponse,
    TemplateCreate,
    TemplateResponse,
)
from catalog_content.content.html_generator import TabContent, generate_product_html
from catalog_content.database.repositories import Repositories
from catalog_content.shopify.client import ShopifyClient

router = APIRouter(tags=["library"])


@router.get("/templates", response_model=List[TemplateResponse])
async def list_templates(
    tab_type: Optional[str] = None, repos: Repositories = Depends(get_repositories)
) -> List[TemplateResponse]:
    templates = await repos.templates.list_templates(tab_type)
    return [TemplateResponse.model_validate(t) for t in templates]


@router.post(
    "/templates", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED
)
async def create_template(
    body: TemplateCreate, repos: Repositories = Depends(get_repositories)
) -> TemplateResponse:
    template = await repos.templates.create(**body.model_dump())
    return TemplateResponse.model_validate(template)


@router.get("/logos", response_model=List[LogoResponse])
async def list_logos(repos: Repositories = Depends(get_repositories)) -> List[LogoResponse]:
    return [LogoResponse.model_validate(logo) for logo in await repos.logos.list_logos()]


@router.post("/logos", response_model=LogoResponse, status_code=status.HTTP_201_CREATED)
async def create_logo(
    body: LogoCreate, repos: Repositories = Depends(get_repositories)
) -> LogoResponse:
    logo = await repos.logos.create(**body.model_dump())
    return LogoResponse.model_validate(logo)


@router.delete("/logos/{logo_id}", response_model=MessageResponse)
async def delete_logo(
    logo_id: str, repos: Repositories = Depends(get_repositories)
) -> MessageResponse:
    if not await repos.logos.delete(logo_id):
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Logo not found")
    return MessageResponse(message="Logo deleted successfully")


@router.post("/preview", response_model=PreviewResponse)
async def preview(body: PreviewRequest) -> PreviewResponse:
    """Render tabs without saving and report how the result classifies."""
    html = generate_product_html(
        [TabContent(t.tab_type, t.content, t.is_active) for t in body.tabs],
        product_sku=body.product_sku,
    )
    return PreviewResponse(html=html, classification=ClassificationResponse.from_html(html))


@router.get("/shopify/collections/{handle}")
async def get_collection(
    handle: str, shopify: ShopifyClient = Depends(get_shopify)
) -> Dict[str, Any]:
    collection = await shopify.get_collection_by_handle(handle)
    if collection is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Collection not found")
    return collection.model_dump()


@router.get("/shopify/products/handle/{handle}")
async def get_product_by_handle(
    handle: str, shopify: ShopifyClient = Depends(get_shopify)
) -> Dict[str, Any]:
    product = await shopify.get_product_by_handle(handle)
    if product is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Product not found")
    return product.model_dump()

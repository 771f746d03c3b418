"""Tests for the product endpoints."""

from datetime import datetime

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from catalog_content.api.v1.dependencies import get_shopify
from catalog_content.database.repositories import Repositories
from catalog_content.shopify import client as client_module

from tests.fixtures.fakes import FakeShopify, make_shopify_product

PREFIX = "/api/v1/products"


class TestCreateAndLookup:
    """Local catalog products."""

    async def test_create_product(self, test_app_async_client: AsyncClient) -> None:
        response = await test_app_async_client.post(
            PREFIX, json={"sku": "SB-1", "title": "Sampling Bag", "shopifyId": "11"}
        )

        assert response.status_code == 201
        body = response.json()
        assert body["sku"] == "SB-1"
        assert body["shopifyId"] == "11"
        assert "createdAt" in body

    async def test_duplicate_sku_conflicts(
        self, test_app_async_client: AsyncClient, fake_repos: Repositories
    ) -> None:
        await fake_repos.products.create(sku="SB-1", title="Existing")

        response = await test_app_async_client.post(
            PREFIX, json={"sku": "SB-1", "title": "Again"}, headers={"X-Request-ID": "test-dup"}
        )

        assert response.status_code == 409
        assert response.json() == {
            "error": "HTTPException",
            "message": "SKU already exists: SB-1",
            "status_code": 409,
            "correlation_id": "test-dup",
        }

    async def test_invalid_body_is_rejected(self, test_app_async_client: AsyncClient) -> None:
        response = await test_app_async_client.post(PREFIX, json={"sku": "SB-1"})

        assert response.status_code == 422
        assert response.json()["error"] == "RequestValidationError"
        assert "title" in response.json()["message"]

    async def test_lookup_exact_sku_with_content(
        self, test_app_async_client: AsyncClient, fake_repos: Repositories
    ) -> None:
        product = await fake_repos.products.create(sku="SB-1", title="Bag", shopify_id="11")
        await fake_repos.contents.save(product.id, "features", {"features": ["A"]})

        response = await test_app_async_client.get(f"{PREFIX}/lookup/SB-1")

        assert response.status_code == 200
        body = response.json()
        assert body["product"]["id"] == product.id
        assert [c["tabType"] for c in body["content"]] == ["features"]

    async def test_lookup_by_sku_prefix(
        self, test_app_async_client: AsyncClient, fake_repos: Repositories
    ) -> None:
        await fake_repos.products.create(sku="SB-100", title="Bag")

        response = await test_app_async_client.get(f"{PREFIX}/lookup/SB-1")

        assert response.status_code == 200
        assert response.json()["product"]["sku"] == "SB-100"

    async def test_lookup_imports_shopify_product(
        self,
        test_app_async_client: AsyncClient,
        fake_repos: Repositories,
        fake_shopify: FakeShopify,
    ) -> None:
        fake_shopify.add(make_shopify_product(9, "<p>Rack</p>", skus=("RK-9",), title="Rack"))

        response = await test_app_async_client.get(f"{PREFIX}/lookup/RK-9")

        assert response.status_code == 200
        assert response.json()["product"]["shopifyId"] == "9"
        assert await fake_repos.products.get_by_sku("RK-9") is not None

    async def test_lookup_unknown_sku(self, test_app_async_client: AsyncClient) -> None:
        response = await test_app_async_client.get(f"{PREFIX}/lookup/NOPE")

        assert response.status_code == 404
        assert response.json()["message"] == "Product not found: NOPE"


class TestShopifyListing:
    """Endpoints backed by Shopify."""

    async def test_list_page(
        self, test_app_async_client: AsyncClient, fake_shopify: FakeShopify
    ) -> None:
        for product_id in (1, 2, 3):
            fake_shopify.add(make_shopify_product(product_id))

        response = await test_app_async_client.get(f"{PREFIX}/all", params={"limit": 2})

        body = response.json()
        assert [p["id"] for p in body["products"]] == [1, 2]
        assert body["hasMore"] is True
        assert body["nextCursor"] == "2"

        response = await test_app_async_client.get(
            f"{PREFIX}/batch", params={"since_id": "2", "limit": 2}
        )
        assert [p["id"] for p in response.json()["products"]] == [3]
        assert response.json()["hasMore"] is False

    async def test_short_search_returns_nothing(
        self, test_app_async_client: AsyncClient
    ) -> None:
        response = await test_app_async_client.get(f"{PREFIX}/search", params={"q": " a "})
        assert response.json() == {"products": [], "totalFound": 0, "query": "a"}

    async def test_search(
        self, test_app_async_client: AsyncClient, fake_shopify: FakeShopify
    ) -> None:
        fake_shopify.add(make_shopify_product(1, title="Sampling Bag"))
        fake_shopify.add(make_shopify_product(2, title="Rack"))

        response = await test_app_async_client.get(f"{PREFIX}/search", params={"q": "bag"})

        assert response.json()["totalFound"] == 1
        assert response.json()["products"][0]["title"] == "Sampling Bag"

    async def test_count_and_single_product(
        self, test_app_async_client: AsyncClient, fake_shopify: FakeShopify
    ) -> None:
        fake_shopify.add(make_shopify_product(1))

        assert (await test_app_async_client.get(f"{PREFIX}/count")).json() == {"count": 1}
        assert (await test_app_async_client.get(f"{PREFIX}/shopify/1")).json()["id"] == 1
        assert (await test_app_async_client.get(f"{PREFIX}/shopify/2")).status_code == 404

    async def test_missing_shopify_credentials_answer_503(
        self, test_app: FastAPI, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        test_app.dependency_overrides.pop(get_shopify)
        monkeypatch.setattr(client_module.settings, "SHOPIFY_STORE_URL", None)

        async with AsyncClient(
            transport=ASGITransport(app=test_app), base_url="http://test"
        ) as client:
            response = await client.get(f"{PREFIX}/count")

        assert response.status_code == 503
        assert response.json()["error"] == "ShopifyConfigurationError"


class TestContentStatus:
    """Status lookups, filters and counts."""

    async def test_batch_status_covers_every_id(
        self, test_app_async_client: AsyncClient, fake_shopify: FakeShopify
    ) -> None:
        fake_shopify.add(
            make_shopify_product(
                1, '<div class="container" data-sku="A"><div id="description"></div></div>'
            )
        )

        response = await test_app_async_client.post(
            f"{PREFIX}/content-status", json={"productIds": ["1", "2"]}
        )

        assert response.status_code == 200
        assert response.json() == {
            "1": {
                "hasShopifyContent": True,
                "hasNewLayout": True,
                "hasDraftContent": False,
                "contentCount": 1,
            },
            "2": {
                "hasShopifyContent": False,
                "hasNewLayout": False,
                "hasDraftContent": False,
                "contentCount": 0,
            },
        }

    async def test_counts_and_filters(
        self, test_app_async_client: AsyncClient, fake_repos: Repositories
    ) -> None:
        now = datetime.now()
        await fake_repos.statuses.upsert("1", has_shopify_content=True, last_shopify_check=now)
        await fake_repos.statuses.upsert("2", has_draft_content=True, last_shopify_check=now)

        counts = (await test_app_async_client.get(f"{PREFIX}/status-counts")).json()
        assert counts == {
            "total": 2,
            "shopifyContent": 1,
            "newLayout": 0,
            "draftMode": 1,
            "noContent": 1,
        }

        response = await test_app_async_client.get(
            f"{PREFIX}/status", params={"filter": "none", "ids": ["1", "2", "3"]}
        )
        assert response.json() == {"filter": "none", "productIds": ["2", "3"], "total": 2}

    async def test_unknown_filter_is_rejected(self, test_app_async_client: AsyncClient) -> None:
        response = await test_app_async_client.get(f"{PREFIX}/status", params={"filter": "x"})
        assert response.status_code == 422


class TestSaveAndPublish:
    """Saving tabs and pushing them to Shopify."""

    @pytest.fixture
    async def linked_product(self, fake_repos: Repositories, fake_shopify: FakeShopify):
        fake_shopify.add(make_shopify_product(11, "<p>Old</p>"))
        return await fake_repos.products.create(sku="SB-1", title="Bag", shopify_id="11")

    async def test_save_content_marks_status(
        self,
        test_app_async_client: AsyncClient,
        fake_repos: Repositories,
        linked_product,
    ) -> None:
        response = await test_app_async_client.post(
            f"{PREFIX}/{linked_product.id}/content",
            json=[
                {"tabType": "description", "content": {"description": "Hi"}},
                {"tabType": "features", "content": {"features": ["A"]}},
            ],
        )

        assert response.status_code == 200
        assert [c["tabType"] for c in response.json()] == ["description", "features"]
        status = await fake_repos.statuses.get("11")
        assert status is not None
        assert status.has_new_layout

    async def test_save_content_for_unknown_product(
        self, test_app_async_client: AsyncClient
    ) -> None:
        response = await test_app_async_client.post(f"{PREFIX}/missing/content", json=[])
        assert response.status_code == 404

    async def test_publish_saved_content(
        self,
        test_app_async_client: AsyncClient,
        fake_repos: Repositories,
        fake_shopify: FakeShopify,
        linked_product,
    ) -> None:
        # Arrange
        await fake_repos.contents.save(
            linked_product.id, "description", {"title": "Bag", "description": "Sterile"}
        )
        await fake_repos.contents.save(linked_product.id, "features", {"features": ["A"]})

        # Act
        response = await test_app_async_client.post(f"{PREFIX}/{linked_product.id}/update-shopify")

        # Assert
        assert response.status_code == 200
        body = response.json()
        assert body["classification"] == {
            "isNewLayout": True,
            "contentCount": 2,
            "sections": ["description", "features"],
        }
        assert fake_shopify.updates == [("11", body["html"])]
        assert linked_product.description == body["html"]
        status = await fake_repos.statuses.get("11")
        assert status is not None
        assert status.has_shopify_content

    async def test_publish_explicit_tabs(
        self, test_app_async_client: AsyncClient, linked_product
    ) -> None:
        response = await test_app_async_client.post(
            f"{PREFIX}/{linked_product.id}/update-shopify",
            json={"tabs": [{"tabType": "videos", "content": {"videoUrl": "https://v"}}]},
        )
        assert response.json()["classification"]["sections"] == ["videos"]

    async def test_publish_unlinked_product_conflicts(
        self, test_app_async_client: AsyncClient, fake_repos: Repositories
    ) -> None:
        product = await fake_repos.products.create(sku="LOCAL", title="Local only")

        response = await test_app_async_client.post(f"{PREFIX}/{product.id}/update-shopify")

        assert response.status_code == 409

    async def test_shopify_failure_answers_502(
        self, test_app_async_client: AsyncClient, fake_repos: Repositories
    ) -> None:
        product = await fake_repos.products.create(sku="GONE", title="Gone", shopify_id="999")

        response = await test_app_async_client.post(f"{PREFIX}/{product.id}/update-shopify")

        assert response.status_code == 502
        assert response.json()["error"] == "ShopifyAPIError"

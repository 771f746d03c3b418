"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator

import pytest

# Must be set before application modules build their settings
os.environ.setdefault("TESTING", "true")

from catalog_content.core.logging import configure_logging  # noqa: E402
from catalog_content.layout.cache import reset_status_cache  # noqa: E402
from catalog_content.services.background import reset_background_processor  # noqa: E402
from catalog_content.shopify.client import reset_shopify_client  # noqa: E402

pytest_plugins = [
    "tests.fixtures.fakes",
    "tests.fixtures.api",
]


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest."""
    configure_logging(testing=True)

    config.addinivalue_line("markers", "asyncio: mark test as async")
    config.addinivalue_line("markers", "integration: mark test as integration test")


@pytest.fixture(scope="session", autouse=True)
def setup_test_env() -> Generator[None, None, None]:
    """Ensure database helpers know they are running under test."""
    original_testing = os.environ.get("TESTING")
    os.environ["TESTING"] = "true"
    yield
    if original_testing is None:
        os.environ.pop("TESTING", None)
    else:
        os.environ["TESTING"] = original_testing


@pytest.fixture(autouse=True)
def reset_singletons() -> Generator[None, None, None]:
    """Give every test fresh process-wide singletons."""
    reset_status_cache()
    reset_shopify_client()
    reset_background_processor()
    yield
    reset_status_cache()
    reset_shopify_client()
    reset_background_processor()

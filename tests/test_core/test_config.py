"""Tests for application settings."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from catalog_content.core.config import Settings


def make_settings(**overrides: object) -> Settings:
    return Settings(_env_file=None, **overrides)  # type: ignore[arg-type]


class TestSettings:
    """Defaults, overrides and validators."""

    def test_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            settings = make_settings()

        assert settings.app_name == "Catalog Content Studio"
        assert settings.api_prefix == "/api/v1"
        assert settings.SHOPIFY_API_VERSION == "2023-10"
        assert settings.STATUS_CACHE_TTL_SECONDS == 300
        assert settings.STATUS_DB_FRESHNESS_SECONDS == 1800
        assert settings.STATUS_BATCH_SIZE == 3
        assert settings.DRAFT_EXPIRY_HOURS == 168
        assert not settings.shopify_configured

    def test_wildcard_origins_become_localhost(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            settings = make_settings(cors_origins=["*"])

        assert "*" not in settings.cors_origins
        assert "http://localhost:3000" in settings.cors_origins

    def test_explicit_origins_are_kept(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            settings = make_settings(cors_origins=["https://studio.example.com"])

        assert settings.cors_origins == ["https://studio.example.com"]

    def test_environment_overrides(self) -> None:
        env = {
            "SHOPIFY_STORE_URL": "shop.myshopify.com",
            "SHOPIFY_ACCESS_TOKEN": "shpat_x",
            "STATUS_CACHE_TTL_SECONDS": "60",
            "DRAFT_CLEANUP_ENABLED": "false",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = make_settings()

        assert settings.shopify_configured
        assert settings.STATUS_CACHE_TTL_SECONDS == 60
        assert settings.DRAFT_CLEANUP_ENABLED is False

    def test_invalid_values_are_rejected(self) -> None:
        with patch.dict(os.environ, {"STATUS_BATCH_SIZE": "0"}, clear=True):
            with pytest.raises(ValidationError):
                make_settings()


class TestTestingDatabase:
    """Database isolation while TESTING is set."""

    def test_database_name_gets_test_prefix(self) -> None:
        env = {"TESTING": "true", "DATABASE_URL": "postgresql://u:p@db:5432/catalog"}
        with patch.dict(os.environ, env, clear=True):
            settings = make_settings()

        assert settings.DATABASE_URL == "postgresql://u:p@db:5432/test_catalog"

    def test_explicit_test_database_wins(self) -> None:
        env = {
            "TESTING": "true",
            "DATABASE_URL": "postgresql://u:p@db/catalog",
            "TEST_DATABASE_URL": "postgresql://u:p@db/scratch",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = make_settings()

        assert settings.DATABASE_URL == "postgresql://u:p@db/scratch"

    def test_untouched_outside_tests(self) -> None:
        with patch.dict(os.environ, {"DATABASE_URL": "postgresql://u:p@db/catalog"}, clear=True):
            settings = make_settings()

        assert settings.DATABASE_URL == "postgresql://u:p@db/catalog"

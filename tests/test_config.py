"""Tests for configuration loading."""

import pytest

from metaobject_migrator.models.config import ConfigurationError, MigrationConfig, StoreConfig

ENV = {
    "SHOPIFY_STORE_URL": "https://old-shop.myshopify.com/admin/api/2024-01/graphql.json",
    "SHOPIFY_ACCESS_TOKEN": "shpat_source",
    "DEST_SHOPIFY_STORE_URL": "https://new-shop.myshopify.com/admin/api/2024-01/graphql.json",
    "DEST_SHOPIFY_ACCESS_TOKEN": "shpat_dest",
}


class TestMigrationConfig:
    def test_from_env(self):
        config = MigrationConfig.from_env(ENV)

        assert config.source.access_token == "shpat_source"
        assert config.destination.url == ENV["DEST_SHOPIFY_STORE_URL"]
        assert config.snapshot_dir == "./store"
        assert config.snapshot_store_name == "old-shop"
        assert config.dry_run is False

    def test_missing_settings_are_named(self):
        env = dict(ENV)
        del env["DEST_SHOPIFY_ACCESS_TOKEN"]
        env["SHOPIFY_ACCESS_TOKEN"] = ""

        with pytest.raises(ConfigurationError) as excinfo:
            MigrationConfig.from_env(env)

        assert "SHOPIFY_ACCESS_TOKEN" in str(excinfo.value)
        assert "DEST_SHOPIFY_ACCESS_TOKEN" in str(excinfo.value)

    def test_optional_settings_and_overrides(self):
        env = {**ENV, "SNAPSHOT_DIR": "/tmp/snapshots", "STORE_NAME": "legacy", "OUTPUT_DIR": "/tmp/out"}

        config = MigrationConfig.from_env(env, store_name="override", dry_run=True, output_dir=None)

        assert config.snapshot_dir == "/tmp/snapshots"
        assert config.snapshot_store_name == "override"
        assert config.output_dir == "/tmp/out"
        assert config.dry_run is True

    def test_store_name_not_derivable(self):
        config = MigrationConfig(
            source=StoreConfig(url="http://localhost:8080/graphql", access_token="x"),
            destination=StoreConfig(url="http://localhost:8081/graphql", access_token="y"),
        )

        with pytest.raises(ConfigurationError):
            config.snapshot_store_name

"""Configuration models for source and destination stores."""

import os
import re
from typing import Mapping, Optional
from pydantic import BaseModel, Field

STORE_NAME_PATTERN = re.compile(r"https://(.*?)\.myshopify\.com")


class ConfigurationError(ValueError):
    """Raised when required store settings are missing."""


class StoreConfig(BaseModel):
    """Connection settings for one store's GraphQL endpoint."""
    url: str
    access_token: str
    rate_limit: float = Field(default=2.0, ge=0)  # Requests per second, 0 disables
    timeout: Optional[float] = None
    max_retries: int = Field(default=3, ge=0)  # Retries on HTTP 429 only

    @property
    def store_name(self) -> Optional[str]:
        """Subdomain of a myshopify.com URL, if the URL has one."""
        match = STORE_NAME_PATTERN.search(self.url)
        return match.group(1) if match else None


class MigrationConfig(BaseModel):
    """Configuration for a migration run."""
    source: StoreConfig
    destination: StoreConfig
    snapshot_dir: str = "./store"
    store_name: Optional[str] = None
    output_dir: str = "./data"
    dry_run: bool = False
    save_report: bool = True

    @property
    def snapshot_store_name(self) -> str:
        """Name of the snapshot root, derived from the source URL when unset."""
        if self.store_name:
            return self.store_name
        if self.source.store_name:
            return self.source.store_name
        raise ConfigurationError(
            f"Cannot derive a store name from {self.source.url}; set STORE_NAME or --store-name"
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "MigrationConfig":
        """
        Build the configuration from environment values.

        Args:
            environ: Mapping to read from (defaults to os.environ)
            **overrides: Values that take precedence over the environment

        Returns:
            MigrationConfig
        """
        env = os.environ if environ is None else environ

        missing = [
            name for name in (
                "SHOPIFY_STORE_URL",
                "SHOPIFY_ACCESS_TOKEN",
                "DEST_SHOPIFY_STORE_URL",
                "DEST_SHOPIFY_ACCESS_TOKEN",
            )
            if not env.get(name)
        ]
        if missing:
            raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")

        values = {
            "source": StoreConfig(
                url=env["SHOPIFY_STORE_URL"],
                access_token=env["SHOPIFY_ACCESS_TOKEN"],
            ),
            "destination": StoreConfig(
                url=env["DEST_SHOPIFY_STORE_URL"],
                access_token=env["DEST_SHOPIFY_ACCESS_TOKEN"],
            ),
        }
        if env.get("SNAPSHOT_DIR"):
            values["snapshot_dir"] = env["SNAPSHOT_DIR"]
        if env.get("STORE_NAME"):
            values["store_name"] = env["STORE_NAME"]
        if env.get("OUTPUT_DIR"):
            values["output_dir"] = env["OUTPUT_DIR"]

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

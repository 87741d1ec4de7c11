"""Environment-driven settings for the storefront engine."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class StorefrontSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="STOREFRONT_")

    store_backend: Literal["memory", "mongodb"] = "memory"
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_database: str = "storefront"
    mongodb_collection: str = "documents"
    cart_cache_dir: str = ".cart-cache"
    seed_file: str | None = None


@lru_cache
def get_settings() -> StorefrontSettings:
    return StorefrontSettings()

"""Tests for environment-driven settings and the adapters they select."""

import pytest
from shared.local_cache import FileLocalCache, default_local_cache
from shared.settings import StorefrontSettings, get_settings
from shared.storage import MemoryDocumentStore, get_store, reset_store


@pytest.fixture()
def fresh_settings():
    get_settings.cache_clear()
    reset_store()
    yield
    get_settings.cache_clear()
    reset_store()


class TestStorefrontSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("STOREFRONT_STORE_BACKEND", raising=False)
        monkeypatch.delenv("STOREFRONT_SEED_FILE", raising=False)
        settings = StorefrontSettings()
        assert settings.store_backend == "memory"
        assert settings.seed_file is None
        assert settings.mongodb_database == "storefront"
        assert settings.cart_cache_dir == ".cart-cache"

    def test_reads_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("STOREFRONT_MONGODB_DATABASE", "shop_test")
        monkeypatch.setenv("STOREFRONT_CART_CACHE_DIR", "/tmp/carts")
        settings = StorefrontSettings()
        assert settings.mongodb_database == "shop_test"
        assert settings.cart_cache_dir == "/tmp/carts"

    def test_rejects_unknown_backend(self, monkeypatch):
        monkeypatch.setenv("STOREFRONT_STORE_BACKEND", "postgres")
        with pytest.raises(ValueError):
            StorefrontSettings()


class TestAdapterSelection:
    def test_memory_backend_by_default(self, monkeypatch, fresh_settings):
        monkeypatch.delenv("STOREFRONT_STORE_BACKEND", raising=False)
        store = get_store()
        assert isinstance(store, MemoryDocumentStore)
        assert get_store() is store

    def test_local_cache_uses_configured_directory(self, monkeypatch, tmp_path, fresh_settings):
        monkeypatch.setenv("STOREFRONT_CART_CACHE_DIR", str(tmp_path / "carts"))
        cache = default_local_cache()
        assert isinstance(cache, FileLocalCache)
        cache.set("cart", "[]")
        assert (tmp_path / "carts" / "cart.json").exists()

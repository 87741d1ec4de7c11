"""Tests for the device-local cache adapters."""

import pytest
from shared.local_cache import FileLocalCache, MemoryLocalCache


class TestMemoryLocalCache:
    def test_roundtrip_and_delete(self):
        cache = MemoryLocalCache({"cart": "[]"})
        assert cache.get("cart") == "[]"
        cache.set("cart", '[{"product_id": "p1"}]')
        assert cache.get("cart") == '[{"product_id": "p1"}]'
        cache.delete("cart")
        assert cache.get("cart") is None

    def test_delete_missing_key(self):
        MemoryLocalCache().delete("cart")


class TestFileLocalCache:
    def test_missing_key_returns_none(self, tmp_path):
        assert FileLocalCache(tmp_path).get("cart") is None

    def test_writes_one_json_file_per_key(self, tmp_path):
        cache = FileLocalCache(tmp_path / "cache")
        cache.set("cart", "[]")
        assert (tmp_path / "cache" / "cart.json").read_text(encoding="utf-8") == "[]"
        assert cache.get("cart") == "[]"

    def test_survives_a_new_instance(self, tmp_path):
        FileLocalCache(tmp_path).set("cart", '["kept"]')
        assert FileLocalCache(tmp_path).get("cart") == '["kept"]'

    def test_delete(self, tmp_path):
        cache = FileLocalCache(tmp_path)
        cache.set("cart", "[]")
        cache.delete("cart")
        cache.delete("cart")
        assert cache.get("cart") is None

    def test_rejects_path_like_keys(self, tmp_path):
        with pytest.raises(ValueError):
            FileLocalCache(tmp_path).set("../escape", "[]")

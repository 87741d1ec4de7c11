"""Application tests for loading products from a seed file."""

import json

import pytest
from catalogue.product.catalog_view import CatalogView, product_key
from catalogue.product.seed import load_products


@pytest.fixture()
def seed_file(tmp_path):
    path = tmp_path / "products.json"
    path.write_text(
        json.dumps(
            {
                "load-tee": {"name": "Tee", "list_price": 25.0, "sale_price": 20.0, "stock": {"M": 200}},
                "mug": {"name": "Mug", "list_price": 8.0, "stock": 10},
            }
        ),
        encoding="utf-8",
    )
    return path


class TestLoadProducts:
    async def test_products_become_visible_in_the_catalog(self, store, seed_file):
        assert await load_products(store, seed_file) == 2

        tee = await CatalogView(store).get("load-tee")
        assert tee.units_for("M") == 200
        assert (await store.get(product_key("mug")))["stock"] == 10
        assert len(store.commits) == 1

    async def test_existing_records_are_replaced(self, store, seed_file, add_product):
        await add_product("mug", stock=1)
        await load_products(store, seed_file)
        assert (await store.get(product_key("mug")))["stock"] == 10

    async def test_rejects_a_file_that_is_not_an_object(self, store, tmp_path):
        path = tmp_path / "products.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(ValueError):
            await load_products(store, path)

"""Application tests for CatalogView lookups against the document store."""

import pytest
from catalogue.product.catalog_view import CatalogView
from protean.exceptions import ObjectNotFoundError


@pytest.fixture()
def catalog(store):
    return CatalogView(store)


class TestCatalogView:
    async def test_find_returns_product(self, catalog, add_product):
        await add_product("tee", list_price=25.0, sale_price=19.99, stock={"S": 1})
        product = await catalog.find("tee")
        assert str(product.id) == "tee"
        assert product.list_price == 25.0
        assert product.sale_price == 19.99
        assert product.is_variant

    async def test_find_missing_returns_none(self, catalog):
        assert await catalog.find("ghost") is None

    async def test_get_missing_raises(self, catalog):
        with pytest.raises(ObjectNotFoundError):
            await catalog.get("ghost")

    async def test_get_many_skips_missing_ids(self, catalog, add_product):
        await add_product("a")
        await add_product("b")
        products = await catalog.get_many(["a", "ghost", "b", "a"])
        assert sorted(products) == ["a", "b"]

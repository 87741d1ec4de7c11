"""Application tests for OrderCommitter — the atomic order batch."""

import asyncio

import pytest
from catalogue.product.catalog_view import product_key
from ordering.cart.cart import CartLine
from ordering.cart.store import cart_line_key
from ordering.coupon.coupon import Coupon
from ordering.order.order import ORDERS, account_orders_collection
from ordering.order.placement import OrderPlacementFailed
from protean.exceptions import ValidationError
from shared.storage import DocumentKey, StoreError


def _cart(*lines):
    return {line.line_id: line for line in lines}


async def _stock(store, product_id):
    return (await store.get(product_key(product_id)))["stock"]


async def _persist(store, account_id, cart):
    for line in cart.values():
        await store.set(cart_line_key(account_id, line.line_id), line.to_document())


class TestPreconditions:
    async def test_requires_account(self, committer, shipping_info, store):
        cart = _cart(CartLine(product_id="mug", quantity=1, unit_price=5.0))
        with pytest.raises(ValidationError) as exc:
            await committer.place_order(cart, None, shipping_info, None)
        assert "account_id" in exc.value.messages
        assert store.commits == []

    async def test_requires_items(self, committer, shipping_info, store):
        with pytest.raises(ValidationError) as exc:
            await committer.place_order({}, None, shipping_info, "acct-1")
        assert "items" in exc.value.messages
        assert store.commits == []

    async def test_requires_valid_shipping_info(self, committer, shipping_info, add_product, store):
        await add_product("mug", stock=3)
        del shipping_info["zip_code"]
        cart = _cart(CartLine(product_id="mug", quantity=1, unit_price=5.0))
        with pytest.raises(ValidationError) as exc:
            await committer.place_order(cart, None, shipping_info, "acct-1")
        assert "zip_code" in exc.value.messages
        assert store.commits == []

    async def test_missing_shipping_info(self, committer, store):
        cart = _cart(CartLine(product_id="mug", quantity=1, unit_price=5.0))
        with pytest.raises(ValidationError):
            await committer.place_order(cart, None, None, "acct-1")

    async def test_product_must_still_exist(self, committer, shipping_info, store):
        cart = _cart(CartLine(product_id="gone", quantity=1, unit_price=5.0))
        with pytest.raises(ValidationError):
            await committer.place_order(cart, None, shipping_info, "acct-1")
        assert store.commits == []


class TestSuccessfulPlacement:
    async def test_writes_both_copies_decrements_stock_and_clears_cart(
        self, committer, shipping_info, add_product, store
    ):
        await add_product("tee", list_price=15.0, stock={"S": 2, "M": 3})
        await add_product("mug", list_price=8.0, stock=4)
        cart = _cart(
            CartLine(product_id="tee", size="M", quantity=2, unit_price=15.0),
            CartLine(product_id="mug", quantity=1, unit_price=8.0),
        )
        await _persist(store, "acct-1", cart)

        order = await committer.place_order(cart, None, shipping_info, "acct-1")

        account_copy = await store.get(DocumentKey(account_orders_collection("acct-1"), str(order.id)))
        global_copy = (await store.scan(ORDERS))[0].data
        assert account_copy == global_copy
        assert global_copy["status"] == "Processing"
        assert global_copy["total"] == 38.0
        assert global_copy["shipping_info"]["display_name"] == "Ana López"

        assert await _stock(store, "tee") == {"S": 2, "M": 1}
        assert await _stock(store, "mug") == 3
        assert await store.scan("accounts/acct-1/cart") == []
        assert len(store.commits) == 1

    async def test_coupon_is_applied_and_recorded(self, committer, shipping_info, add_product, store):
        await add_product("mug", list_price=50.0, stock=4)
        cart = _cart(CartLine(product_id="mug", quantity=2, unit_price=50.0))
        coupon = Coupon.create("TEN", "percentage", 10)

        order = await committer.place_order(cart, coupon, shipping_info, "acct-1")

        assert order.subtotal == 100.0
        assert order.discount == 10.0
        assert order.total == 90.0
        assert order.applied_coupon.code == "TEN"

    async def test_items_are_a_snapshot_of_cart_prices(self, committer, shipping_info, add_product):
        await add_product("mug", list_price=99.0, stock=4)
        cart = _cart(CartLine(product_id="mug", quantity=1, unit_price=10.0))
        order = await committer.place_order(cart, None, shipping_info, "acct-1")
        assert order.items[0].unit_price == 10.0
        assert order.total == 10.0

    async def test_insufficient_stock_is_not_checked(self, committer, shipping_info, add_product, store):
        await add_product("mug", stock=1)
        cart = _cart(CartLine(product_id="mug", quantity=3, unit_price=5.0))
        await committer.place_order(cart, None, shipping_info, "acct-1")
        assert await _stock(store, "mug") == -2


class TestFailedPlacement:
    async def test_storage_failure_persists_nothing(self, committer, shipping_info, add_product, store):
        await add_product("mug", stock=4)
        cart = _cart(CartLine(product_id="mug", quantity=1, unit_price=5.0))
        await _persist(store, "acct-1", cart)
        store.fail_next_commit(after_writes=3)

        with pytest.raises(OrderPlacementFailed) as exc:
            await committer.place_order(cart, None, shipping_info, "acct-1")

        assert exc.value.message == "Order failed, please retry"
        assert await store.scan(ORDERS) == []
        assert await store.scan(account_orders_collection("acct-1")) == []
        assert await _stock(store, "mug") == 4
        assert len(await store.scan("accounts/acct-1/cart")) == 1

    async def test_sized_line_for_unsized_product_fails_the_batch(self, committer, shipping_info, add_product, store):
        await add_product("tee", stock={"S": 2})
        cart = _cart(CartLine(product_id="tee", quantity=1, unit_price=5.0))

        with pytest.raises(OrderPlacementFailed):
            await committer.place_order(cart, None, shipping_info, "acct-1")

        assert await store.scan(ORDERS) == []
        assert (await _stock(store, "tee"))["S"] == 2


class TestConcurrentPlacement:
    async def test_two_checkouts_of_the_last_unit_both_commit(self, committer, shipping_info, add_product, store):
        await add_product("mug", stock=1)
        first = _cart(CartLine(product_id="mug", quantity=1, unit_price=5.0))
        second = _cart(CartLine(product_id="mug", quantity=1, unit_price=5.0))

        orders = await asyncio.gather(
            committer.place_order(first, None, shipping_info, "acct-1"),
            committer.place_order(second, None, shipping_info, "acct-2"),
        )

        assert len({str(order.id) for order in orders}) == 2
        assert len(await store.scan(ORDERS)) == 2
        assert await _stock(store, "mug") == -1

    async def test_many_concurrent_checkouts_lose_no_decrement(self, committer, shipping_info, add_product, store):
        await add_product("tee", stock={"M": 10})
        carts = [_cart(CartLine(product_id="tee", size="M", quantity=2, unit_price=5.0)) for _ in range(6)]

        await asyncio.gather(
            *(committer.place_order(cart, None, shipping_info, f"acct-{i}") for i, cart in enumerate(carts))
        )

        assert (await _stock(store, "tee"))["M"] == -2


class TestStorageErrorsBeforeCommit:
    async def test_cart_scan_failure_is_a_placement_failure(self, committer, shipping_info, add_product, store):
        await add_product("mug", stock=4)
        cart = _cart(CartLine(product_id="mug", quantity=1, unit_price=5.0))

        async def broken_scan(collection):
            raise StoreError("network down")

        store.scan = broken_scan
        with pytest.raises(OrderPlacementFailed) as exc:
            await committer.place_order(cart, None, shipping_info, "acct-1")

        assert exc.value.message == "Order failed, please retry"
        assert store.commits == []
        assert await _stock(store, "mug") == 4

    async def test_product_lookup_failure_is_a_placement_failure(self, committer, shipping_info, store):
        cart = _cart(CartLine(product_id="mug", quantity=1, unit_price=5.0))

        async def broken_get(key):
            raise StoreError("network down")

        store.get = broken_get
        with pytest.raises(OrderPlacementFailed):
            await committer.place_order(cart, None, shipping_info, "acct-1")
        assert store.commits == []

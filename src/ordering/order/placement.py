"""Order Committer — finalize a purchase as one atomic batch.

The batch holds, in order:

1. the account copy of the order (`accounts/{id}/orders/{order_id}`),
2. the fulfillment copy (`orders/{order_id}`),
3. one increment of `-quantity` per line on the product's stock counter,
4. a delete of every persisted cart line for the account.

Either all of it persists or none of it does. Stock is decremented with the
store's atomic increment, never by writing back a value read earlier, so
concurrent checkouts cannot lose each other's decrements. Stock is not
checked against the ordered quantity: two checkouts of the last unit both
succeed and leave the counter at -1.
"""

import structlog
from protean.exceptions import ValidationError

from catalogue.product.catalog_view import CatalogView, product_key
from ordering.cart.store import cart_collection, cart_line_key
from ordering.order.order import ORDERS, Order, ShippingInfo, account_orders_collection
from ordering.pricing import compute_totals
from shared.storage import DocumentKey, DocumentStore, StoreError

logger = structlog.get_logger(__name__)

RETRY_MESSAGE = "Order failed, please retry"


class OrderPlacementFailed(Exception):
    """The order batch did not commit. Nothing was persisted."""

    def __init__(self, message: str = RETRY_MESSAGE) -> None:
        super().__init__(message)
        self.message = message


def parse_shipping_info(value) -> ShippingInfo:
    """Build shipping details from a mapping. Raises ValidationError when they are missing or invalid."""
    if isinstance(value, ShippingInfo):
        return value
    if not isinstance(value, dict):
        raise ValidationError({"shipping_info": ["Shipping information is required"]})
    return ShippingInfo(**value)


class OrderCommitter:
    def __init__(self, store: DocumentStore, catalog: CatalogView) -> None:
        self._store = store
        self._catalog = catalog

    async def place_order(self, lines, coupon, shipping_info, account_id) -> Order:
        """Commit an order for `lines` and return it.

        Raises:
            ValidationError: no account, an empty cart, invalid shipping
                information or a product that no longer exists. Raised
                before anything is written.
            OrderPlacementFailed: the batch failed to commit.
        """
        if not account_id:
            raise ValidationError({"account_id": ["Sign in to place an order"]})

        lines = list(lines.values()) if isinstance(lines, dict) else list(lines)
        if not lines:
            raise ValidationError({"items": ["Cart is empty"]})

        shipping = parse_shipping_info(shipping_info)

        try:
            products = await self._catalog.get_many(line.product_id for line in lines)
        except StoreError as exc:
            raise self._failed(exc, account_id, stage="product lookup") from exc

        missing = sorted({str(line.product_id) for line in lines} - products.keys())
        if missing:
            raise ValidationError(
                {"items": [f"Product `{product_id}` is no longer available" for product_id in missing]}
            )

        totals = compute_totals(lines, coupon)
        order = Order.place(lines, totals, coupon=coupon, shipping_info=shipping, account_id=account_id)
        document = order.to_document()
        order_id = str(order.id)

        batch = self._store.batch()
        batch.set(DocumentKey(account_orders_collection(account_id), order_id), document)
        batch.set(DocumentKey(ORDERS, order_id), document)

        for line in lines:
            product = products[str(line.product_id)]
            batch.increment(product_key(product.id), product.stock_field(line.size), -line.quantity)

        try:
            persisted = await self._store.scan(cart_collection(account_id))
        except StoreError as exc:
            raise self._failed(exc, account_id, order_id=order_id, stage="cart scan") from exc

        line_ids = dict.fromkeys([record.id for record in persisted] + [line.line_id for line in lines])
        for line_id in line_ids:
            batch.delete(cart_line_key(account_id, line_id))

        try:
            await batch.commit()
        except StoreError as exc:
            raise self._failed(exc, account_id, order_id=order_id, stage="commit", writes=len(batch)) from exc

        logger.info(
            "Order placed",
            account_id=account_id,
            order_id=order_id,
            items=len(lines),
            total=str(totals.total),
            coupon=coupon.code if coupon is not None else None,
        )
        return order

    @staticmethod
    def _failed(exc: StoreError, account_id, **context) -> OrderPlacementFailed:
        logger.error("Order placement failed", account_id=account_id, error=str(exc), **context)
        return OrderPlacementFailed()

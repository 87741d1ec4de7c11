"""Point of Sale — in-person sales recorded straight into the order book.

A sale has no account and no shipping information. It is written only to
the fulfillment namespace (`orders`), already Completed, and its stock
decrements go into the same batch as the order record.
"""

from dataclasses import dataclass

import structlog
from protean.exceptions import ValidationError

from catalogue.product.catalog_view import CatalogView, product_key
from catalogue.product.product import SIZES
from ordering.cart.cart import CartLine
from ordering.order.order import ORDERS, Order, OrderChannel, OrderStatus
from ordering.order.placement import OrderPlacementFailed
from ordering.pricing import compute_totals, effective_unit_price
from shared.storage import DocumentKey, DocumentStore, StoreError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SaleEntry:
    """One product (and size) rung up at the till. `quantity` is the final count, not a delta."""

    product_id: str
    quantity: int
    size: str | None = None


class PointOfSale:
    def __init__(self, store: DocumentStore, catalog: CatalogView) -> None:
        self._store = store
        self._catalog = catalog

    async def ring_up(self, entries) -> Order:
        entries = list(entries)
        if not entries:
            raise ValidationError({"items": ["A sale needs at least one item"]})

        products = await self._catalog.get_many(entry.product_id for entry in entries)

        lines: dict[str, CartLine] = {}
        for entry in entries:
            product = products.get(str(entry.product_id))
            if product is None:
                raise ValidationError({"items": [f"Product `{entry.product_id}` does not exist"]})
            if entry.quantity < 1:
                raise ValidationError({"quantity": ["Quantity must be at least 1"]})
            if entry.size is not None and entry.size not in SIZES:
                raise ValidationError({"size": [f"Unknown size `{entry.size}`"]})
            if product.is_variant != (entry.size is not None):
                raise ValidationError({"size": [f"Size selection does not match product `{product.id}`"]})

            line = CartLine(
                product_id=str(product.id),
                size=entry.size,
                quantity=entry.quantity,
                unit_price=float(effective_unit_price(product)),
            )
            if line.line_id in lines:
                raise ValidationError({"items": [f"`{line.line_id}` appears more than once"]})
            lines[line.line_id] = line

        totals = compute_totals(lines.values())
        order = Order.place(
            lines.values(),
            totals,
            channel=OrderChannel.POINT_OF_SALE,
            status=OrderStatus.COMPLETED,
        )
        order_id = str(order.id)

        batch = self._store.batch()
        batch.set(DocumentKey(ORDERS, order_id), order.to_document())
        for line in lines.values():
            product = products[line.product_id]
            batch.increment(product_key(product.id), product.stock_field(line.size), -line.quantity)

        try:
            await batch.commit()
        except StoreError as exc:
            logger.error("Point-of-sale sale failed", order_id=order_id, error=str(exc))
            raise OrderPlacementFailed() from exc

        logger.info("Point-of-sale sale recorded", order_id=order_id, units=order.units(), total=str(totals.total))
        return order

"""Order fulfillment — status transitions driven by the fulfillment actor.

The fulfillment copy in `orders` is the source of truth for the current
status. A transition is validated against the order state machine and then
written to both copies of the order in one batch, so the account's view and
the fulfillment view never disagree.
"""

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError

from ordering.order.order import ORDERS, Order, OrderStatus, account_orders_collection
from shared.storage import DocumentKey, DocumentStore

logger = structlog.get_logger(__name__)


class OrderFulfillment:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def update_status(self, order_id, status) -> Order:
        try:
            status = OrderStatus(status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown order status `{status}`"]}) from None

        data = await self._store.get(DocumentKey(ORDERS, str(order_id)))
        if data is None:
            raise ObjectNotFoundError(f"Order `{order_id}` does not exist")

        order = Order.from_document(data)
        previous = order.status
        order.transition_to(status)

        change = {"status": order.status, "updated_at": order.updated_at.isoformat()}
        batch = self._store.batch()
        batch.update(DocumentKey(ORDERS, str(order.id)), change)
        if order.account_id:
            batch.update(DocumentKey(account_orders_collection(str(order.account_id)), str(order.id)), change)
        await batch.commit()

        logger.info(
            "Order status updated",
            order_id=str(order.id),
            from_status=previous,
            to_status=order.status,
        )
        return order

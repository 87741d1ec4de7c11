"""Order history for an account, and store-wide earnings."""

from dataclasses import dataclass
from decimal import Decimal

from ordering.order.order import ORDERS, Order, OrderStatus, account_orders_collection
from ordering.pricing import ZERO, to_amount
from shared.storage import DocumentStore


@dataclass(frozen=True)
class EarningsSummary:
    total_earnings: Decimal
    order_count: int
    units_sold: int


async def order_history(store: DocumentStore, account_id: str) -> list[Order]:
    """Orders placed by `account_id`, newest first."""
    documents = await store.scan(account_orders_collection(account_id))
    orders = [Order.from_document(document.data) for document in documents]
    return sorted(orders, key=lambda order: order.created_at, reverse=True)


async def earnings_summary(store: DocumentStore) -> EarningsSummary:
    """Totals over every order, online and point-of-sale, that was not cancelled."""
    total = ZERO
    count = 0
    units = 0
    for document in await store.scan(ORDERS):
        order = Order.from_document(document.data)
        if order.status == OrderStatus.CANCELLED.value:
            continue
        total += to_amount(order.total)
        count += 1
        units += order.units()
    return EarningsSummary(total_earnings=total, order_count=count, units_sold=units)

"""Order aggregate — a committed purchase.

An order is created exactly once, when its batch commits, and afterwards
only its status changes. Items are a snapshot of the cart lines at commit
time and are never re-priced.

State Machine:
    PROCESSING → SHIPPED → COMPLETED
    PROCESSING → COMPLETED
    PROCESSING → CANCELLED
    COMPLETED and CANCELLED are terminal.

Orders are kept twice: under the placing account (`accounts/{id}/orders`)
and in the fulfillment namespace (`orders`), with the same id.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, ValueObject

from ordering.domain import ordering


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class OrderChannel(Enum):
    ONLINE = "Online"
    POINT_OF_SALE = "Point_Of_Sale"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

ORDERS = "orders"


def account_orders_collection(account_id: str) -> str:
    return f"accounts/{account_id}/orders"


def assert_can_transition(current: OrderStatus, target: OrderStatus) -> None:
    if target not in _VALID_TRANSITIONS[current]:
        raise ValidationError({"status": [f"Cannot transition from {current.value} to {target.value}"]})


def _parse_datetime(value):
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def _isoformat(value):
    return value.isoformat() if value else None


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class ShippingInfo:
    """Where, and to whom, an online order is shipped. Captured once at checkout."""

    display_name = String(required=True, max_length=255)
    phone = String(max_length=50)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    zip_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)

    def to_document(self) -> dict:
        return {
            "display_name": self.display_name,
            "phone": self.phone,
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "country": self.country,
        }


@ordering.value_object(part_of="Order")
class AppliedCoupon:
    """The coupon an order was priced with, copied so later coupon edits do not alter it."""

    code = String(required=True, max_length=100)
    discount_type = String(required=True, max_length=20)
    discount_value = Float(required=True)

    def to_document(self) -> dict:
        return {
            "code": self.code,
            "discount_type": self.discount_type,
            "discount_value": self.discount_value,
        }


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    line_id = String(required=True, max_length=120)
    product_id = Identifier(required=True)
    size = String(max_length=5)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)

    def to_document(self) -> dict:
        return {
            "id": str(self.id),
            "line_id": self.line_id,
            "product_id": str(self.product_id),
            "size": self.size,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
        }


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    account_id = Identifier()
    items = HasMany(OrderItem)
    subtotal = Float(default=0.0)
    discount = Float(default=0.0)
    total = Float(default=0.0)
    applied_coupon = ValueObject(AppliedCoupon)
    shipping_info = ValueObject(ShippingInfo)
    status = String(choices=OrderStatus, default=OrderStatus.PROCESSING.value)
    channel = String(choices=OrderChannel, default=OrderChannel.ONLINE.value)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def order_must_have_items(self):
        if not self.items:
            raise ValidationError({"items": ["Order must contain at least one item"]})

    @invariant.post
    def online_orders_must_have_an_account(self):
        if self.channel == OrderChannel.ONLINE.value and not self.account_id:
            raise ValidationError({"account_id": ["Online orders must belong to an account"]})

    # -------------------------------------------------------------------
    # Factory methods
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        lines,
        totals,
        coupon=None,
        shipping_info=None,
        account_id=None,
        channel=OrderChannel.ONLINE,
        status=OrderStatus.PROCESSING,
    ):
        """Build an order from priced lines.

        Args:
            lines: CartLines (or anything with product_id, size, quantity,
                   unit_price and line_id) to snapshot as order items.
            totals: Totals computed over `lines` and `coupon`.
            coupon: The Coupon the totals were computed with, if any.
            shipping_info: ShippingInfo for online orders.
            account_id: The placing account; None for point-of-sale orders.
        """
        now = datetime.now(UTC)
        applied = None
        if coupon is not None:
            applied = AppliedCoupon(
                code=coupon.code,
                discount_type=coupon.discount_type,
                discount_value=coupon.discount_value,
            )

        return cls(
            id=str(uuid4()),
            account_id=account_id,
            items=[
                OrderItem(
                    id=str(uuid4()),
                    line_id=line.line_id,
                    product_id=str(line.product_id),
                    size=line.size,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                )
                for line in lines
            ],
            subtotal=float(totals.subtotal),
            discount=float(totals.discount),
            total=float(totals.total),
            applied_coupon=applied,
            shipping_info=shipping_info,
            status=status.value,
            channel=channel.value,
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def from_document(cls, data):
        """Rebuild an order from one of its stored copies."""
        coupon = data.get("applied_coupon")
        shipping = data.get("shipping_info")
        return cls(
            id=data["order_id"],
            account_id=data.get("account_id"),
            items=[OrderItem(**item) for item in data.get("items", [])],
            subtotal=data.get("subtotal", 0.0),
            discount=data.get("discount", 0.0),
            total=data.get("total", 0.0),
            applied_coupon=AppliedCoupon(**coupon) if coupon else None,
            shipping_info=ShippingInfo(**shipping) if shipping else None,
            status=data.get("status", OrderStatus.PROCESSING.value),
            channel=data.get("channel", OrderChannel.ONLINE.value),
            created_at=_parse_datetime(data.get("created_at")),
            updated_at=_parse_datetime(data.get("updated_at")),
        )

    # -------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------
    def transition_to(self, status: OrderStatus) -> None:
        assert_can_transition(OrderStatus(self.status), status)
        self.status = status.value
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def units(self) -> int:
        return sum(item.quantity for item in self.items)

    def to_document(self) -> dict:
        return {
            "order_id": str(self.id),
            "account_id": str(self.account_id) if self.account_id else None,
            "items": [item.to_document() for item in self.items],
            "subtotal": self.subtotal,
            "discount": self.discount,
            "total": self.total,
            "applied_coupon": self.applied_coupon.to_document() if self.applied_coupon else None,
            "shipping_info": self.shipping_info.to_document() if self.shipping_info else None,
            "status": self.status,
            "channel": self.channel,
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }

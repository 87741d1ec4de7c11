"""Checkout — the caller-facing purchase flow.

Shipping details are validated before any coupon lookup. The Order
Committer then commits the cart, and the cart mirror is reset once the order
is in. An unknown coupon code does not block the purchase: the order is
placed without a discount and the result says the code was rejected.
"""

from dataclasses import dataclass

import structlog
from protean.exceptions import ValidationError

from ordering.cart.store import Bound, CartStore
from ordering.coupon.resolver import CouponResolver
from ordering.order.order import Order
from ordering.order.placement import OrderCommitter, parse_shipping_info

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CheckoutResult:
    order: Order
    coupon_rejected: bool = False


class Checkout:
    def __init__(self, committer: OrderCommitter, resolver: CouponResolver) -> None:
        self._committer = committer
        self._resolver = resolver

    async def submit(self, cart: CartStore, shipping_info, coupon_code=None) -> CheckoutResult:
        if not isinstance(cart.scope, Bound):
            raise ValidationError({"account_id": ["Sign in to place an order"]})
        if cart.is_empty():
            raise ValidationError({"items": ["Cart is empty"]})

        shipping = parse_shipping_info(shipping_info)

        coupon = cart.applied_coupon
        coupon_rejected = False
        if coupon_code:
            coupon = await self._resolver.resolve(coupon_code)
            if coupon is None:
                coupon_rejected = True
                logger.info("Checkout continuing without rejected coupon", code=coupon_code)

        order = await self._committer.place_order(
            cart.lines,
            coupon,
            shipping,
            cart.account_id,
        )
        cart.checked_out()
        return CheckoutResult(order=order, coupon_rejected=coupon_rejected)

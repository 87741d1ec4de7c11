"""Ordering bounded context — Shopping Cart, Coupons and Order Placement.

Handles the session cart (anonymous or bound to an account), deterministic
pricing and coupon discounts, and the checkout that commits an order and
its stock decrements as one batch.
"""

import structlog
from protean.domain import Domain

from shared.logging import configure_logging

configure_logging()

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)

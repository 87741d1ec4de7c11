"""Pricing Engine — effective unit prices and order totals.

Pure functions over Decimal amounts, rounded to cents. Nothing here reads
the live catalogue: totals are computed from the unit prices snapshotted
into cart lines when they were added.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    discount: Decimal
    total: Decimal


def to_amount(value) -> Decimal:
    """Convert a stored number to a cent-rounded Decimal."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def effective_unit_price(product) -> Decimal:
    """Sale price when set and lower than the list price, otherwise the list price."""
    list_price = to_amount(product.list_price)
    if product.sale_price is not None:
        sale_price = to_amount(product.sale_price)
        if sale_price < list_price:
            return sale_price
    return list_price


def discount_for(subtotal: Decimal, coupon) -> Decimal:
    """Raw discount a coupon grants on `subtotal`. Not clamped to the subtotal."""
    if coupon is None:
        return ZERO

    value = Decimal(str(coupon.discount_value))
    if DiscountType(coupon.discount_type) == DiscountType.PERCENTAGE:
        return (subtotal * value / 100).quantize(CENT, rounding=ROUND_HALF_UP)
    return to_amount(value)


def compute_totals(lines, coupon=None) -> Totals:
    """Subtotal, discount and total for cart lines under an optional coupon.

    `lines` is any iterable of objects with `unit_price` and `quantity`.
    The total never drops below zero.
    """
    subtotal = sum((to_amount(line.unit_price) * line.quantity for line in lines), ZERO)
    subtotal = subtotal.quantize(CENT, rounding=ROUND_HALF_UP)
    discount = discount_for(subtotal, coupon)
    total = max(ZERO, subtotal - discount)
    return Totals(subtotal=subtotal, discount=discount, total=total)

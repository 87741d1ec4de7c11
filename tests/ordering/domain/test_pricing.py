"""Tests for effective prices and order totals."""

from decimal import Decimal
from types import SimpleNamespace

from ordering.pricing import DiscountType, Totals, compute_totals, discount_for, effective_unit_price, to_amount


def _line(unit_price, quantity):
    return SimpleNamespace(unit_price=unit_price, quantity=quantity)


def _coupon(discount_type, value):
    return SimpleNamespace(code="X", discount_type=discount_type.value, discount_value=value)


def _product(list_price, sale_price=None):
    return SimpleNamespace(list_price=list_price, sale_price=sale_price)


class TestEffectiveUnitPrice:
    def test_list_price_without_sale(self):
        assert effective_unit_price(_product(25.0)) == Decimal("25.00")

    def test_lower_sale_price_wins(self):
        assert effective_unit_price(_product(25.0, 19.99)) == Decimal("19.99")

    def test_sale_price_not_lower_is_ignored(self):
        assert effective_unit_price(_product(25.0, 25.0)) == Decimal("25.00")
        assert effective_unit_price(_product(25.0, 30.0)) == Decimal("25.00")

    def test_zero_sale_price_is_honoured(self):
        assert effective_unit_price(_product(25.0, 0.0)) == Decimal("0.00")


class TestComputeTotals:
    def test_empty_cart(self):
        assert compute_totals([]) == Totals(Decimal("0.00"), Decimal("0.00"), Decimal("0.00"))

    def test_subtotal_is_sum_of_line_amounts(self):
        totals = compute_totals([_line(10.0, 2), _line(5.5, 1)])
        assert totals.subtotal == Decimal("25.50")
        assert totals.discount == Decimal("0.00")
        assert totals.total == Decimal("25.50")

    def test_percentage_coupon(self):
        totals = compute_totals([_line(100.0, 1)], _coupon(DiscountType.PERCENTAGE, 10))
        assert totals.discount == Decimal("10.00")
        assert totals.total == Decimal("90.00")

    def test_fixed_coupon(self):
        totals = compute_totals([_line(20.0, 2)], _coupon(DiscountType.FIXED, 15))
        assert totals.discount == Decimal("15.00")
        assert totals.total == Decimal("25.00")

    def test_total_never_negative_but_discount_is_not_clamped(self):
        totals = compute_totals([_line(10.0, 1)], _coupon(DiscountType.FIXED, 50))
        assert totals.discount == Decimal("50.00")
        assert totals.total == Decimal("0.00")

    def test_percentage_rounds_half_up_to_cents(self):
        # 33.33 * 15% = 4.9995
        totals = compute_totals([_line(33.33, 1)], _coupon(DiscountType.PERCENTAGE, 15))
        assert totals.discount == Decimal("5.00")
        assert totals.total == Decimal("28.33")

    def test_float_prices_do_not_drift(self):
        totals = compute_totals([_line(0.1, 3)])
        assert totals.subtotal == Decimal("0.30")


class TestHelpers:
    def test_to_amount_handles_none(self):
        assert to_amount(None) == Decimal("0.00")

    def test_no_coupon_means_no_discount(self):
        assert discount_for(Decimal("10.00"), None) == Decimal("0.00")

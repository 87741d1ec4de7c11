"""Coupon aggregate — a discount code redeemable at checkout."""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, String

from ordering.domain import ordering
from ordering.pricing import DiscountType


def normalize_code(code) -> str:
    return (code or "").strip().upper()


@ordering.aggregate
class Coupon:
    code = String(required=True, max_length=100)
    discount_type = String(required=True, choices=DiscountType)
    discount_value = Float(required=True)
    is_active = Boolean(default=True)  # Stored, not consulted when resolving
    created_at = DateTime()

    @invariant.post
    def code_must_be_normalized(self):
        if self.code != normalize_code(self.code):
            raise ValidationError({"code": ["Coupon codes are stored upper-case without surrounding spaces"]})

    @invariant.post
    def discount_value_must_be_positive(self):
        if self.discount_value is None or self.discount_value <= 0:
            raise ValidationError({"discount_value": ["Discount value must be greater than zero"]})

    @classmethod
    def create(cls, code, discount_type, discount_value):
        normalized = normalize_code(code)
        if not normalized:
            raise ValidationError({"code": ["Coupon code is required"]})
        return cls(
            id=normalized,
            code=normalized,
            discount_type=DiscountType(discount_type).value,
            discount_value=discount_value,
            created_at=datetime.now(UTC),
        )

    @classmethod
    def from_document(cls, data):
        return cls(
            id=data["code"],
            code=data["code"],
            discount_type=data["discount_type"],
            discount_value=data["discount_value"],
            is_active=data.get("is_active", True),
        )

    def to_document(self) -> dict:
        return {
            "code": self.code,
            "discount_type": self.discount_type,
            "discount_value": self.discount_value,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

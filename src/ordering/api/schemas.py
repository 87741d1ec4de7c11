"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer) — separate from
the internal Protean value objects.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class CartLineSchema(BaseModel):
    line_id: str | None = None
    product_id: str
    size: str | None = None
    quantity: int = Field(ge=1)
    unit_price: float = Field(ge=0)


class TotalsSchema(BaseModel):
    subtotal: float
    discount: float
    total: float


class CouponSchema(BaseModel):
    code: str
    discount_type: str
    discount_value: float


class ShippingInfoSchema(BaseModel):
    display_name: str
    phone: str | None = None
    street: str
    city: str
    state: str | None = None
    zip_code: str
    country: str


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    size: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "tee-black",
                    "size": "M",
                }
            ]
        }
    }


class UpdateCartQuantityRequest(BaseModel):
    new_quantity: int


class MergeCartRequest(BaseModel):
    lines: list[CartLineSchema] = Field(default_factory=list)


class QuoteRequest(BaseModel):
    lines: list[CartLineSchema] = Field(default_factory=list)
    coupon_code: str | None = None


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class CheckoutRequest(BaseModel):
    shipping_info: ShippingInfoSchema
    coupon_code: str | None = None


class UpdateOrderStatusRequest(BaseModel):
    status: str


class SaleEntrySchema(BaseModel):
    product_id: str
    size: str | None = None
    quantity: int = Field(ge=1)


class PointOfSaleRequest(BaseModel):
    entries: list[SaleEntrySchema]


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class CartResponse(BaseModel):
    account_id: str | None = None
    lines: list[CartLineSchema]
    item_count: int
    totals: TotalsSchema
    coupon: CouponSchema | None = None


class OrderResponse(BaseModel):
    order_id: str
    account_id: str | None = None
    status: str
    channel: str
    items: list[CartLineSchema]
    subtotal: float
    discount: float
    total: float
    applied_coupon: CouponSchema | None = None
    shipping_info: ShippingInfoSchema | None = None
    created_at: str | None = None
    updated_at: str | None = None


class CheckoutResponse(BaseModel):
    order: OrderResponse
    coupon_rejected: bool = False


class EarningsResponse(BaseModel):
    total_earnings: float
    order_count: int
    units_sold: int

"""FastAPI routes for the Ordering domain — carts, coupons and orders.

The account cart is addressed through the `X-Account-Id` header. Anonymous
carts are held by the client; they reach the server only to be quoted or
merged into an account cart at sign-in.
"""

from fastapi import APIRouter, Header
from protean.exceptions import ObjectNotFoundError, ValidationError

from catalogue.product.catalog_view import CatalogView
from ordering.api.schemas import (
    AddToCartRequest,
    CartLineSchema,
    CartResponse,
    CheckoutRequest,
    CheckoutResponse,
    CouponSchema,
    EarningsResponse,
    MergeCartRequest,
    OrderResponse,
    PointOfSaleRequest,
    QuoteRequest,
    TotalsSchema,
    UpdateCartQuantityRequest,
    UpdateOrderStatusRequest,
)
from ordering.cart.cart import CartLine, serialize_cart
from ordering.cart.store import CACHE_KEY, CartStore
from ordering.checkout.checkout import Checkout
from ordering.coupon.resolver import CouponResolver
from ordering.order.fulfillment import OrderFulfillment
from ordering.order.history import earnings_summary, order_history
from ordering.order.placement import OrderCommitter, OrderPlacementFailed
from ordering.order.point_of_sale import PointOfSale, SaleEntry
from ordering.pricing import compute_totals
from shared.local_cache import MemoryLocalCache
from shared.storage import StoreError, get_store


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _require_account(account_id: str | None) -> str:
    if not account_id:
        raise ValidationError({"account_id": ["Sign in to use the account cart"]})
    return account_id


def _line_schema(line) -> CartLineSchema:
    return CartLineSchema(
        line_id=line.line_id,
        product_id=str(line.product_id),
        size=line.size,
        quantity=line.quantity,
        unit_price=line.unit_price,
    )


def _coupon_schema(coupon) -> CouponSchema | None:
    if coupon is None:
        return None
    return CouponSchema(
        code=coupon.code,
        discount_type=coupon.discount_type,
        discount_value=coupon.discount_value,
    )


def _cart_response(lines, coupon=None, account_id=None) -> CartResponse:
    lines = list(lines)
    totals = compute_totals(lines, coupon)
    return CartResponse(
        account_id=account_id,
        lines=[_line_schema(line) for line in lines],
        item_count=sum(line.quantity for line in lines),
        totals=TotalsSchema(
            subtotal=float(totals.subtotal),
            discount=float(totals.discount),
            total=float(totals.total),
        ),
        coupon=_coupon_schema(coupon),
    )


def _order_response(order) -> OrderResponse:
    document = order.to_document()
    return OrderResponse(
        order_id=document["order_id"],
        account_id=document["account_id"],
        status=document["status"],
        channel=document["channel"],
        items=[CartLineSchema(**item) for item in document["items"]],
        subtotal=document["subtotal"],
        discount=document["discount"],
        total=document["total"],
        applied_coupon=document["applied_coupon"],
        shipping_info=document["shipping_info"],
        created_at=document["created_at"],
        updated_at=document["updated_at"],
    )


def _client_lines(lines: list[CartLineSchema]) -> dict[str, CartLine]:
    cart = {}
    for line in lines:
        cart_line = CartLine(
            product_id=line.product_id,
            size=line.size or None,
            quantity=line.quantity,
            unit_price=line.unit_price,
        )
        cart[cart_line.line_id] = cart_line
    return cart


async def _account_cart(account_id: str, anonymous_lines=None) -> CartStore:
    store = get_store()
    cache = MemoryLocalCache()
    if anonymous_lines:
        cache.set(CACHE_KEY, serialize_cart(anonymous_lines))
    cart = CartStore(store, CatalogView(store), cache)
    await cart.bind(account_id)
    return cart


async def _coupon_for(code: str | None):
    if not code:
        return None
    return await CouponResolver(get_store()).resolve(code)


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def get_cart(
    coupon_code: str | None = None,
    account_id: str | None = Header(default=None, alias="X-Account-Id"),
) -> CartResponse:
    cart = await _account_cart(_require_account(account_id))
    return _cart_response(cart.lines.values(), await _coupon_for(coupon_code), cart.account_id)


@cart_router.post("/items", status_code=201, response_model=CartResponse)
async def add_cart_item(
    body: AddToCartRequest,
    account_id: str | None = Header(default=None, alias="X-Account-Id"),
) -> CartResponse:
    cart = await _account_cart(_require_account(account_id))
    await cart.add(body.product_id, body.size)
    return _cart_response(cart.lines.values(), account_id=cart.account_id)


@cart_router.put("/items/{line_id}", response_model=CartResponse)
async def update_cart_item_quantity(
    line_id: str,
    body: UpdateCartQuantityRequest,
    account_id: str | None = Header(default=None, alias="X-Account-Id"),
) -> CartResponse:
    cart = await _account_cart(_require_account(account_id))
    await cart.set_quantity(line_id, body.new_quantity)
    return _cart_response(cart.lines.values(), account_id=cart.account_id)


@cart_router.delete("/items/{line_id}", response_model=CartResponse)
async def remove_cart_item(
    line_id: str,
    account_id: str | None = Header(default=None, alias="X-Account-Id"),
) -> CartResponse:
    cart = await _account_cart(_require_account(account_id))
    await cart.remove(line_id)
    return _cart_response(cart.lines.values(), account_id=cart.account_id)


@cart_router.post("/merge", response_model=CartResponse)
async def merge_cart(
    body: MergeCartRequest,
    account_id: str | None = Header(default=None, alias="X-Account-Id"),
) -> CartResponse:
    """Fold a client-held anonymous cart into the account cart at sign-in."""
    cart = await _account_cart(_require_account(account_id), _client_lines(body.lines))
    return _cart_response(cart.lines.values(), account_id=cart.account_id)


@cart_router.post("/quote", response_model=CartResponse)
async def quote_cart(body: QuoteRequest) -> CartResponse:
    """Price client-held lines. An unknown coupon code prices without a discount."""
    lines = _client_lines(body.lines)
    return _cart_response(lines.values(), await _coupon_for(body.coupon_code))


# ---------------------------------------------------------------------------
# Coupon Router
# ---------------------------------------------------------------------------
coupon_router = APIRouter(prefix="/coupons", tags=["coupons"])


@coupon_router.get("/{code}", response_model=CouponSchema)
async def get_coupon(code: str) -> CouponSchema:
    coupon = await _coupon_for(code)
    if coupon is None:
        raise ObjectNotFoundError(f"Coupon `{code}` does not exist")
    return _coupon_schema(coupon)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=CheckoutResponse)
async def place_order(
    body: CheckoutRequest,
    account_id: str | None = Header(default=None, alias="X-Account-Id"),
) -> CheckoutResponse:
    store = get_store()
    account_id = _require_account(account_id)
    try:
        cart = await _account_cart(account_id)
    except StoreError as exc:
        raise OrderPlacementFailed() from exc
    checkout = Checkout(OrderCommitter(store, CatalogView(store)), CouponResolver(store))
    result = await checkout.submit(cart, body.shipping_info.model_dump(), body.coupon_code)
    return CheckoutResponse(order=_order_response(result.order), coupon_rejected=result.coupon_rejected)


@order_router.get("", response_model=list[OrderResponse])
async def list_orders(
    account_id: str | None = Header(default=None, alias="X-Account-Id"),
) -> list[OrderResponse]:
    orders = await order_history(get_store(), _require_account(account_id))
    return [_order_response(order) for order in orders]


@order_router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(order_id: str, body: UpdateOrderStatusRequest) -> OrderResponse:
    order = await OrderFulfillment(get_store()).update_status(order_id, body.status)
    return _order_response(order)


# ---------------------------------------------------------------------------
# Point of Sale / Reports Router
# ---------------------------------------------------------------------------
pos_router = APIRouter(tags=["point-of-sale"])


@pos_router.post("/pos/sales", status_code=201, response_model=OrderResponse)
async def ring_up_sale(body: PointOfSaleRequest) -> OrderResponse:
    store = get_store()
    entries = [
        SaleEntry(product_id=entry.product_id, quantity=entry.quantity, size=entry.size) for entry in body.entries
    ]
    order = await PointOfSale(store, CatalogView(store)).ring_up(entries)
    return _order_response(order)


@pos_router.get("/reports/earnings", response_model=EarningsResponse)
async def get_earnings() -> EarningsResponse:
    summary = await earnings_summary(get_store())
    return EarningsResponse(
        total_earnings=float(summary.total_earnings),
        order_count=summary.order_count,
        units_sold=summary.units_sold,
    )

"""Cart Store — the session's cart, anonymous or bound to an account.

State machine with two scopes:

    Anonymous(cache) ──bind(account_id)──▶ Bound(account_id)
           ▲                                      │
           └──────────────── unbind() ────────────┘

While Anonymous, the cart lives in memory and in the device-local cache.
While Bound, every change is written to the document store under
`accounts/{account_id}/cart` before the in-memory mirror is updated.

Binding merges the anonymous cart into the account's persisted cart:
shared lines add up, the merged set is written back in one batch, and the
anonymous copy is discarded only once that batch commits. The merge assumes
nothing else mutates either cart while it runs, which holds because one
client drives at most one merge per session.
"""

from collections.abc import Callable
from dataclasses import dataclass

import structlog
from protean.exceptions import ValidationError

from catalogue.product.catalog_view import CatalogView
from catalogue.product.product import SIZES
from ordering.cart.cart import (
    CartLine,
    deserialize_cart,
    line_id_for,
    lines_from_documents,
    merge_lines,
    serialize_cart,
)
from ordering.pricing import Totals, compute_totals, effective_unit_price
from shared.identity import IdentityProvider
from shared.local_cache import LocalCache
from shared.storage import DocumentKey, DocumentStore

logger = structlog.get_logger(__name__)

CACHE_KEY = "cart"


def cart_collection(account_id: str) -> str:
    return f"accounts/{account_id}/cart"


def cart_line_key(account_id: str, line_id: str) -> DocumentKey:
    return DocumentKey(cart_collection(account_id), line_id)


# ---------------------------------------------------------------------------
# Scopes
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Anonymous:
    cache: LocalCache


@dataclass(frozen=True)
class Bound:
    account_id: str


CartScope = Anonymous | Bound

CartListener = Callable[["CartStore"], None]


class CartStore:
    def __init__(self, store: DocumentStore, catalog: CatalogView, cache: LocalCache) -> None:
        self._store = store
        self._catalog = catalog
        self._cache = cache
        self._scope: CartScope = Anonymous(cache)
        self._lines: dict[str, CartLine] = deserialize_cart(cache.get(CACHE_KEY))
        self._listeners: list[CartListener] = []
        self.applied_coupon = None

    # -------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------
    @property
    def scope(self) -> CartScope:
        return self._scope

    @property
    def account_id(self) -> str | None:
        return self._scope.account_id if isinstance(self._scope, Bound) else None

    @property
    def lines(self) -> dict[str, CartLine]:
        return dict(self._lines)

    def is_empty(self) -> bool:
        return not self._lines

    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    def totals(self) -> Totals:
        return compute_totals(self._lines.values(), self.applied_coupon)

    # -------------------------------------------------------------------
    # Observers
    # -------------------------------------------------------------------
    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        """Call `listener` with this store after every change. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # -------------------------------------------------------------------
    # Identity transitions
    # -------------------------------------------------------------------
    async def attach(self, identity: IdentityProvider) -> Callable[[], None]:
        """Follow `identity` from now on, starting with its current value."""
        unsubscribe = identity.subscribe(self.on_identity_changed)
        await self.on_identity_changed(identity.current())
        return unsubscribe

    async def on_identity_changed(self, account_id: str | None) -> None:
        if account_id is None:
            if isinstance(self._scope, Bound):
                self.unbind()
        elif isinstance(self._scope, Anonymous):
            await self.bind(account_id)
        elif self._scope.account_id != account_id:
            self.unbind()
            await self.bind(account_id)

    async def bind(self, account_id: str) -> None:
        """Merge the anonymous cart into the account's cart and make the account cart authoritative."""
        if isinstance(self._scope, Bound):
            if self._scope.account_id == account_id:
                return
            raise ValidationError({"account_id": ["Cart is already bound to another account"]})

        documents = await self._store.scan(cart_collection(account_id))
        persisted = lines_from_documents(document.data for document in documents)
        anonymous = dict(self._lines)
        merged = merge_lines(anonymous, persisted)

        batch = self._store.batch()
        for line in merged.values():
            batch.set(cart_line_key(account_id, line.line_id), line.to_document())
        await batch.commit()

        self._cache.delete(CACHE_KEY)
        self._scope = Bound(account_id)
        self._lines = merged

        logger.info(
            "Cart bound to account",
            account_id=account_id,
            anonymous_lines=len(anonymous),
            persisted_lines=len(persisted),
            merged_lines=len(merged),
        )
        self._notify()

    def unbind(self) -> None:
        """Return to an empty anonymous cart. The account's persisted cart is left as is."""
        if isinstance(self._scope, Anonymous):
            return

        logger.info("Cart unbound from account", account_id=self._scope.account_id)
        self._scope = Anonymous(self._cache)
        self._lines = {}
        self.applied_coupon = None
        self._cache.delete(CACHE_KEY)
        self._notify()

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    async def add(self, product_id, size=None) -> CartLine:
        """Add one unit of a product (and size) to the cart."""
        product = await self._catalog.get(product_id)

        if size is not None and size not in SIZES:
            raise ValidationError({"size": [f"Unknown size `{size}`"]})
        if product.is_variant:
            if size is None:
                raise ValidationError({"size": ["A size must be selected for this product"]})
            if product.units_for(size) <= 0:
                raise ValidationError({"size": [f"Size {size} is out of stock"]})
        else:
            if size is not None:
                raise ValidationError({"size": ["This product is not sold by size"]})
            if product.total_stock() <= 0:
                raise ValidationError({"product_id": ["Product is out of stock"]})

        line_id = line_id_for(product.id, size)
        existing = self._lines.get(line_id)
        if existing is not None:
            line = existing.with_quantity(existing.quantity + 1)
        else:
            line = CartLine(
                product_id=str(product.id),
                size=size,
                quantity=1,
                unit_price=float(effective_unit_price(product)),
            )

        await self._put(line)
        return line

    async def set_quantity(self, line_id, new_quantity: int) -> CartLine | None:
        """Overwrite a line's quantity. Anything below 1 removes the line."""
        if new_quantity < 1:
            await self.remove(line_id)
            return None

        existing = self._lines.get(line_id)
        if existing is None:
            raise ValidationError({"line_id": ["Item not found in cart"]})

        line = existing.with_quantity(new_quantity)
        await self._put(line)
        return line

    async def remove(self, line_id) -> None:
        if line_id not in self._lines:
            raise ValidationError({"line_id": ["Item not found in cart"]})

        if isinstance(self._scope, Bound):
            await self._store.delete(cart_line_key(self._scope.account_id, line_id))
        del self._lines[line_id]
        self._save_local()
        self._notify()

    def apply_coupon(self, coupon) -> None:
        """Apply a resolved coupon. A previously applied coupon is replaced, never stacked."""
        self.applied_coupon = coupon
        self._notify()

    def clear_coupon(self) -> None:
        self.applied_coupon = None
        self._notify()

    def checked_out(self) -> None:
        """Reset the mirror after an order committed; the persisted lines went with the order batch."""
        self._lines = {}
        self.applied_coupon = None
        self._save_local()
        self._notify()

    # -------------------------------------------------------------------
    # Persistence helpers
    # -------------------------------------------------------------------
    async def _put(self, line: CartLine) -> None:
        if isinstance(self._scope, Bound):
            await self._store.set(cart_line_key(self._scope.account_id, line.line_id), line.to_document())
        self._lines[line.line_id] = line
        self._save_local()
        self._notify()

    def _save_local(self) -> None:
        if isinstance(self._scope, Anonymous):
            self._cache.set(CACHE_KEY, serialize_cart(self._lines))

"""Coupon Resolver — look up discount codes and register new ones."""

import structlog

from ordering.coupon.coupon import Coupon, normalize_code
from shared.storage import DocumentKey, DocumentStore

logger = structlog.get_logger(__name__)

COUPONS = "coupons"


class CouponResolver:
    """Exact-match, case-insensitive coupon lookup.

    Resolution does not check expiry, usage limits, minimum order value or
    the `is_active` flag: a stored code is always honoured.
    """

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def resolve(self, code) -> Coupon | None:
        normalized = normalize_code(code)
        if not normalized:
            return None

        matches = await self._store.query(COUPONS, code=normalized)
        if not matches:
            logger.info("Coupon not found", code=normalized)
            return None
        return Coupon.from_document(matches[0].data)

    async def register(self, code, discount_type, discount_value) -> Coupon:
        """Store a coupon under its normalized code, replacing any coupon with the same code."""
        coupon = Coupon.create(code, discount_type, discount_value)
        await self._store.set(DocumentKey(COUPONS, coupon.code), coupon.to_document())
        logger.info(
            "Coupon registered",
            code=coupon.code,
            discount_type=coupon.discount_type,
            discount_value=coupon.discount_value,
        )
        return coupon

"""Cart lines and the merge between an anonymous and a persisted cart.

A cart is a mapping of line id to CartLine. The line id is the product id,
suffixed with "-<size>" for size-stocked products, so one product/size pair
never occupies two lines. Unit prices are captured when a line is first
added and are not refreshed from the catalogue afterwards.
"""

import json

import structlog
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, Integer, String

from ordering.domain import ordering

logger = structlog.get_logger(__name__)


def line_id_for(product_id, size=None) -> str:
    return f"{product_id}-{size}" if size else str(product_id)


@ordering.value_object
class CartLine:
    product_id = Identifier(required=True)
    size = String(max_length=5)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)

    @property
    def line_id(self) -> str:
        return line_id_for(self.product_id, self.size)

    def with_quantity(self, quantity) -> "CartLine":
        return CartLine(
            product_id=self.product_id,
            size=self.size,
            quantity=quantity,
            unit_price=self.unit_price,
        )

    def to_document(self) -> dict:
        return {
            "product_id": str(self.product_id),
            "size": self.size,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
        }

    @classmethod
    def from_document(cls, data) -> "CartLine":
        return cls(
            product_id=data["product_id"],
            size=data.get("size") or None,
            quantity=data["quantity"],
            unit_price=data["unit_price"],
        )


def lines_from_documents(documents) -> dict[str, CartLine]:
    """Build a cart from stored line records, skipping records that do not form a valid line."""
    lines = {}
    for data in documents:
        try:
            line = CartLine.from_document(data)
        except (KeyError, TypeError, ValidationError) as exc:
            logger.warning("Skipping malformed cart line", record=data, error=str(exc))
            continue
        lines[line.line_id] = line
    return lines


def serialize_cart(lines: dict[str, CartLine]) -> str:
    return json.dumps([line.to_document() for line in lines.values()])


def deserialize_cart(blob) -> dict[str, CartLine]:
    """Parse a cached cart blob. Unreadable blobs yield an empty cart."""
    if not blob:
        return {}
    try:
        records = json.loads(blob)
    except (json.JSONDecodeError, TypeError):
        logger.warning("Discarding unreadable cached cart")
        return {}
    if not isinstance(records, list):
        logger.warning("Discarding unreadable cached cart")
        return {}
    return lines_from_documents(record for record in records if isinstance(record, dict))


def merge_lines(anonymous: dict[str, CartLine], persisted: dict[str, CartLine]) -> dict[str, CartLine]:
    """Fold an anonymous cart into a persisted one.

    Shared line ids add their quantities and keep the persisted unit price.
    Lines present on only one side are carried over unchanged.
    """
    merged = dict(persisted)
    for line_id, line in anonymous.items():
        existing = merged.get(line_id)
        if existing is None:
            merged[line_id] = line
        else:
            merged[line_id] = existing.with_quantity(existing.quantity + line.quantity)
    return merged

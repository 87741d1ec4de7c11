"""Product aggregate as seen by the storefront.

Stock is held either as a single count ("scalar") or as a count per size
label ("variant"). The raw shape is kept as JSON text, the same way the
rest of the model keeps nested data, and normalized on read: unknown size
labels are dropped and anything that is not a number counts as zero, so a
malformed record can still be rendered.
"""

import json
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Float, String, Text

from catalogue.domain import catalogue


class Size(Enum):
    S = "S"
    M = "M"
    L = "L"
    XL = "XL"


SIZES = tuple(size.value for size in Size)


def _count(value) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return 0
    return 0


def normalize_stock(raw) -> int | dict[str, int]:
    """Coerce a stored stock value to an int or a full {size: int} mapping."""
    if isinstance(raw, dict):
        return {size: _count(raw.get(size, 0)) for size in SIZES}
    return _count(raw)


@catalogue.aggregate
class Product:
    """Read-only product record used for pricing and stock keeping."""

    name: String(max_length=255)
    list_price: Float(required=True, min_value=0.0)
    sale_price: Float(min_value=0.0)
    category: String(max_length=100)
    description: Text()
    image: String(max_length=500)
    stock: Text(default="0")  # JSON: integer, or {"S": n, "M": n, "L": n, "XL": n}

    @invariant.post
    def stock_must_be_json(self):
        try:
            json.loads(self.stock)
        except (json.JSONDecodeError, TypeError):
            raise ValidationError({"stock": ["Stock must be valid JSON"]}) from None

    @classmethod
    def from_document(cls, product_id, data):
        """Build a Product from its stored record."""
        return cls(
            id=product_id,
            name=data.get("name"),
            list_price=data.get("list_price"),
            sale_price=data.get("sale_price"),
            category=data.get("category"),
            description=data.get("description"),
            image=data.get("image"),
            stock=json.dumps(normalize_stock(data.get("stock", 0))),
        )

    # -------------------------------------------------------------------
    # Stock queries
    # -------------------------------------------------------------------
    def stock_levels(self) -> int | dict[str, int]:
        try:
            raw = json.loads(self.stock)
        except (json.JSONDecodeError, TypeError):
            raw = 0
        return normalize_stock(raw)

    @property
    def is_variant(self) -> bool:
        return isinstance(self.stock_levels(), dict)

    def total_stock(self) -> int:
        levels = self.stock_levels()
        if isinstance(levels, dict):
            return sum(levels.values())
        return levels

    def units_for(self, size=None) -> int:
        """Units on hand for `size`, or for the whole product when it is not size-stocked."""
        levels = self.stock_levels()
        if isinstance(levels, dict):
            return levels.get(size, 0) if size else 0
        return levels

    def available_sizes(self) -> list[str]:
        """Sizes that can currently be selected, i.e. those with a positive count."""
        levels = self.stock_levels()
        if not isinstance(levels, dict):
            return []
        return [size for size in SIZES if levels[size] > 0]

    def stock_field(self, size=None) -> str:
        """Document field path of the counter that a sale of `size` decrements."""
        if self.is_variant and size:
            return f"stock.{size}"
        return "stock"

"""Product Catalog View — point lookups of product records by id."""

import structlog
from protean.exceptions import ObjectNotFoundError

from catalogue.product.product import Product
from shared.storage import DocumentKey, DocumentStore

logger = structlog.get_logger(__name__)

PRODUCTS = "products"


def product_key(product_id: str) -> DocumentKey:
    return DocumentKey(PRODUCTS, str(product_id))


class CatalogView:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def find(self, product_id: str) -> Product | None:
        data = await self._store.get(product_key(product_id))
        if data is None:
            return None
        return Product.from_document(str(product_id), data)

    async def get(self, product_id: str) -> Product:
        product = await self.find(product_id)
        if product is None:
            logger.warning("Product not found", product_id=str(product_id))
            raise ObjectNotFoundError(f"Product `{product_id}` does not exist")
        return product

    async def get_many(self, product_ids) -> dict[str, Product]:
        """Look up several products, skipping ids with no record."""
        products = {}
        for product_id in dict.fromkeys(str(pid) for pid in product_ids):
            product = await self.find(product_id)
            if product is not None:
                products[product_id] = product
        return products

"""FastAPI endpoints for the Catalogue domain."""

from fastapi import APIRouter

from catalogue.api.schemas import ProductResponse
from catalogue.product.catalog_view import CatalogView
from ordering.pricing import effective_unit_price
from shared.storage import get_store

product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str) -> ProductResponse:
    product = await CatalogView(get_store()).get(product_id)
    return ProductResponse(
        product_id=str(product.id),
        name=product.name,
        category=product.category,
        description=product.description,
        image=product.image,
        list_price=product.list_price,
        sale_price=product.sale_price,
        effective_price=float(effective_unit_price(product)),
        stock=product.stock_levels(),
        total_stock=product.total_stock(),
        available_sizes=product.available_sizes(),
    )

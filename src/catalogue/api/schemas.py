"""Pydantic response schemas for the Catalogue API."""

from __future__ import annotations

from pydantic import BaseModel


class ProductResponse(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "tee-black",
                    "name": "Classic Black Tee",
                    "category": "playeras",
                    "list_price": 25.0,
                    "sale_price": 19.99,
                    "effective_price": 19.99,
                    "stock": {"S": 2, "M": 0, "L": 3, "XL": 0},
                    "total_stock": 5,
                    "available_sizes": ["S", "L"],
                }
            ]
        }
    }

    product_id: str
    name: str | None = None
    category: str | None = None
    description: str | None = None
    image: str | None = None
    list_price: float
    sale_price: float | None = None
    effective_price: float
    stock: int | dict[str, int]
    total_stock: int
    available_sizes: list[str]

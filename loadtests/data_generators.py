"""Faker-based data generators for Locust load test scenarios.

Payloads match the field names expected by the API's Pydantic request
schemas. The product seed file is written here and loaded by the server at
startup through `STOREFRONT_SEED_FILE`:

    python -m loadtests.data_generators loadtests/seed_products.json
    STOREFRONT_SEED_FILE=loadtests/seed_products.json uvicorn app:app --app-dir src
"""

import json
import random
import sys
from pathlib import Path

from faker import Faker

fake = Faker()

RACE_PRODUCT = "load-tee"
RACE_SIZE = "M"
RACE_STOCK = 200

SIZES = ("S", "M", "L", "XL")


# ---------- Catalogue ----------


def race_product() -> dict:
    """The contested product: a sized tee with a limited run of the race size."""
    return {
        "name": "Load Test Tee",
        "list_price": 25.0,
        "sale_price": 20.0,
        "category": "playeras",
        "stock": {size: (RACE_STOCK if size == RACE_SIZE else 0) for size in SIZES},
    }


def catalog_product() -> dict:
    """A filler product, sized or not, with plenty of stock."""
    list_price = round(random.uniform(5, 120), 2)
    sized = random.random() < 0.5
    return {
        "name": fake.catch_phrase()[:60],
        "list_price": list_price,
        "sale_price": round(list_price * 0.8, 2) if random.random() < 0.3 else None,
        "category": random.choice(["playeras", "sudaderas", "tazas", "gorras"]),
        "stock": {size: random.randint(10, 100) for size in SIZES} if sized else random.randint(10, 100),
    }


def seed_products(filler: int = 20) -> dict[str, dict]:
    products = {RACE_PRODUCT: race_product()}
    for index in range(filler):
        products[f"load-product-{index}"] = catalog_product()
    return products


# ---------- Ordering ----------


def shipping_info() -> dict:
    """Shipping details that pass ShippingInfo validation."""
    return {
        "display_name": fake.name()[:80],
        "phone": fake.phone_number()[:30],
        "street": fake.street_address()[:120],
        "city": fake.city()[:60],
        "state": fake.state()[:60],
        "zip_code": fake.postcode()[:12],
        "country": fake.country_code(),
    }


def write_seed_file(path: str | Path, filler: int = 20) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(seed_products(filler), indent=2), encoding="utf-8")
    return path


if __name__ == "__main__":
    target = sys.argv[1] if len(sys.argv) > 1 else "loadtests/seed_products.json"
    print(f"Wrote {write_seed_file(target)}")

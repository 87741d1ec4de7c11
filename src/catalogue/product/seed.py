"""Load product records from a JSON seed file into the document store.

The file maps product ids to product records:

    {"load-tee": {"name": "Tee", "list_price": 25.0, "stock": {"M": 500}}}

Records are written in one batch, replacing any existing record with the
same id.
"""

import json
from pathlib import Path

import structlog

from catalogue.product.catalog_view import product_key
from shared.storage import DocumentStore

logger = structlog.get_logger(__name__)


async def load_products(store: DocumentStore, path: str | Path) -> int:
    records = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(records, dict):
        raise ValueError(f"Seed file `{path}` must hold an object of product records")

    batch = store.batch()
    for product_id, record in records.items():
        batch.set(product_key(product_id), record)
    await batch.commit()

    logger.info("Products seeded", path=str(path), products=len(records))
    return len(records)

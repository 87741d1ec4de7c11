import os
from pathlib import Path

import pytest
from shared.storage import MemoryDocumentStore, reset_store, set_store


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Fetch and activate the domain by pushing the associated domain_context. The activated domain can then be referred to elsewhere as `current_domain`
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env

    from catalogue.domain import catalogue

    catalogue.init()
    catalogue.domain_context().push()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        # Get the test file path relative to the tests directory
        test_path = Path(item.fspath)

        # Mark tests based on their directory
        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in str(test_path):
            item.add_marker(pytest.mark.bdd)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(autouse=True)
def store():
    """Fresh in-memory document store for every test, installed as the active store."""
    memory_store = MemoryDocumentStore()
    set_store(memory_store)

    yield memory_store

    reset_store()


@pytest.fixture()
def add_product(store):
    """Seed a product record. `stock` is an int or a {size: count} mapping."""
    from catalogue.product.catalog_view import product_key

    async def _add(product_id, list_price=10.0, stock=5, sale_price=None, **fields):
        record = {
            "name": fields.pop("name", f"Product {product_id}"),
            "list_price": list_price,
            "sale_price": sale_price,
            "category": fields.pop("category", "playeras"),
            "stock": stock,
            **fields,
        }
        await store.set(product_key(product_id), record)
        return record

    return _add

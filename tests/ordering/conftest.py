import pytest
from catalogue.product.catalog_view import CatalogView
from ordering.cart.store import CartStore
from ordering.coupon.resolver import CouponResolver
from ordering.order.placement import OrderCommitter
from protean.integrations.pytest import DomainFixture
from shared.local_cache import MemoryLocalCache


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield


@pytest.fixture()
def catalog(store):
    return CatalogView(store)


@pytest.fixture()
def local_cache():
    return MemoryLocalCache()


@pytest.fixture()
def cart(store, catalog, local_cache):
    return CartStore(store, catalog, local_cache)


@pytest.fixture()
def resolver(store):
    return CouponResolver(store)


@pytest.fixture()
def committer(store, catalog):
    return OrderCommitter(store, catalog)


@pytest.fixture()
def shipping_info():
    return {
        "display_name": "Ana López",
        "phone": "555-0100",
        "street": "Av. Reforma 100",
        "city": "CDMX",
        "state": "CDMX",
        "zip_code": "06600",
        "country": "MX",
    }

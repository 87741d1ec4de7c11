"""Storefront FastAPI application.

Serves the catalogue view, the account cart, coupons, checkout, order
fulfillment and point-of-sale endpoints. Each request is wrapped in the
correct domain context based on URL prefix.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload

    # Seed products on startup (see loadtests/data_generators.py):
    STOREFRONT_SEED_FILE=loadtests/seed_products.json uvicorn app:app --app-dir src
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
from contextlib import asynccontextmanager

# Domains are initialized at module level so uvicorn workers share them.
from catalogue.domain import catalogue  # noqa: E402
from catalogue.product.seed import load_products
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from ordering.domain import ordering  # noqa: E402
from ordering.order.placement import OrderPlacementFailed
from protean.integrations.fastapi import register_exception_handlers
from shared.logging import add_context, clear_context
from shared.settings import get_settings
from shared.storage import StoreError, get_store

catalogue.init()
ordering.init()

# ---------------------------------------------------------------------------
# Route-to-domain mapping
# ---------------------------------------------------------------------------
_ROUTE_DOMAIN_MAP = {
    "/products": catalogue,
    "/cart": ordering,
    "/coupons": ordering,
    "/orders": ordering,
    "/pos": ordering,
    "/reports": ordering,
}


def _resolve_domain(path: str):
    """Return the domain for the given request path, or None."""
    for prefix, domain in _ROUTE_DOMAIN_MAP.items():
        if path.startswith(prefix):
            return domain
    return None


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the configured seed file, if any, before serving requests."""
    seed_file = get_settings().seed_file
    if seed_file:
        await load_products(get_store(), seed_file)
    yield


app = FastAPI(
    title="Storefront API",
    description="Cart & order placement engine — Catalogue & Ordering domains",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the correct Protean domain context for each request."""
    clear_context()
    add_context(path=request.url.path, account_id=request.headers.get("X-Account-Id"))
    domain = _resolve_domain(request.url.path)
    if domain is not None:
        with domain.domain_context():
            response = await call_next(request)
        return response
    # No domain match: health check and docs pass through
    return await call_next(request)


# ---------------------------------------------------------------------------
# Error handling
# ---------------------------------------------------------------------------
register_exception_handlers(app)


@app.exception_handler(OrderPlacementFailed)
async def order_placement_failed_handler(request: Request, exc: OrderPlacementFailed):
    return JSONResponse(status_code=503, content={"error": exc.message})


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    return JSONResponse(status_code=503, content={"error": "Storage unavailable, please retry"})


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from catalogue.api import product_router  # noqa: E402
from ordering.api import cart_router, coupon_router, order_router, pos_router  # noqa: E402

app.include_router(product_router)
app.include_router(cart_router)
app.include_router(coupon_router)
app.include_router(order_router)
app.include_router(pos_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {
                "catalogue": {"name": catalogue.name},
                "ordering": {"name": ordering.name},
            },
        }
    )

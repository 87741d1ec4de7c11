"""Storefront Load Testing — Locust entry point.

The race product must exist before the run; its final stock level after
the run shows how many units were oversold.

Usage:
    # Seed the catalogue, then start the API with the seed file:
    python -m loadtests.data_generators loadtests/seed_products.json
    STOREFRONT_SEED_FILE=loadtests/seed_products.json uvicorn app:app --app-dir src

    # Web UI:
    locust -f loadtests/locustfile.py

    # Checkout race only, headless:
    locust -f loadtests/locustfile.py CheckoutRaceUser --headless \
           -u 50 -r 10 -t 60s --csv=results/loadtest
"""

import logging
import time

from locust import events

from loadtests.helpers.response import extract_error_detail
from loadtests.scenarios.checkout import RACE_PRODUCT, CashierUser, CheckoutRaceUser  # noqa: F401

logger = logging.getLogger("loadtest")


@events.request.add_listener
def on_request(request_type, name, response, exception, **_kw):
    """Log error details for every failed request."""
    if exception:
        logger.error("[EXCEPTION] %s %s: %s", request_type, name, exception)
    elif response is not None and response.status_code >= 400:
        detail = extract_error_detail(response)
        logger.error("[%s] %s %s: %s", response.status_code, request_type, name, detail)


@events.test_start.add_listener
def on_test_start(environment, **_kwargs):
    print(f"\n[LOADTEST] Started at {time.strftime('%H:%M:%S')}")
    print(f"[LOADTEST] Target host: {environment.host}")
    print(f"[LOADTEST] Race product: {RACE_PRODUCT}")


@events.test_stop.add_listener
def on_test_stop(environment, **_kwargs):
    stats = environment.runner.stats.total
    print(f"\n[LOADTEST] Finished at {time.strftime('%H:%M:%S')}")
    print(f"[LOADTEST] Requests: {stats.num_requests}, failures: {stats.num_failures}")
    print(f"[LOADTEST] Check GET /products/{RACE_PRODUCT} for the final stock level")

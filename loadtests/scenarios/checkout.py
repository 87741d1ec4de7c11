"""Checkout race scenarios.

Many shoppers fill a cart with the same product and check out at once.
The product comes from the seed file written by `loadtests/data_generators.py`.
Stock is decremented without an availability check, so the interesting
output is the product's final stock level, not the failure count.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import RACE_PRODUCT, RACE_SIZE, shipping_info
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import ShopperState


class CheckoutJourney(SequentialTaskSet):
    """View product -> Add to cart -> Review cart -> Place order -> List orders."""

    def on_start(self):
        self.state = ShopperState()

    @task
    def view_product(self):
        with self.client.get(f"/products/{RACE_PRODUCT}", catch_response=True, name="GET /products/{id}") as resp:
            if resp.status_code != 200:
                resp.failure(f"View product failed: {resp.status_code} {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def add_to_cart(self):
        for _ in range(random.randint(1, 2)):
            with self.client.post(
                "/cart/items",
                json={"product_id": RACE_PRODUCT, "size": RACE_SIZE},
                headers=self.state.headers,
                catch_response=True,
                name="POST /cart/items",
            ) as resp:
                if resp.status_code == 201:
                    self.state.cart_items += 1
                else:
                    resp.failure(f"Add to cart failed: {resp.status_code} {extract_error_detail(resp)}")

    @task
    def review_cart(self):
        self.client.get("/cart", headers=self.state.headers, name="GET /cart")

    @task
    def place_order(self):
        if not self.state.cart_items:
            self.interrupt()
        with self.client.post(
            "/orders",
            json={"shipping_info": shipping_info()},
            headers=self.state.headers,
            catch_response=True,
            name="POST /orders",
        ) as resp:
            if resp.status_code == 201:
                self.state.order_ids.append(resp.json()["order"]["order_id"])
                self.state.cart_items = 0
            else:
                resp.failure(f"Checkout failed: {resp.status_code} {extract_error_detail(resp)}")

    @task
    def list_orders(self):
        self.client.get("/orders", headers=self.state.headers, name="GET /orders")
        self.interrupt()


class CheckoutRaceUser(HttpUser):
    """Shoppers racing each other for the last units of one product."""

    wait_time = between(0.1, 0.5)
    tasks = [CheckoutJourney]


class CashierUser(HttpUser):
    """Point-of-sale cashier selling the same product over the counter."""

    wait_time = between(0.5, 1.5)
    weight = 1

    @task
    def ring_up(self):
        self.client.post(
            "/pos/sales",
            json={"entries": [{"product_id": RACE_PRODUCT, "size": RACE_SIZE, "quantity": 1}]},
            name="POST /pos/sales",
        )

    @task
    def earnings(self):
        self.client.get("/reports/earnings", name="GET /reports/earnings")

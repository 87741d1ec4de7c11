"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance owns its state. Nothing is shared across users.
"""

import uuid
from dataclasses import dataclass, field


@dataclass
class ShopperState:
    """Tracks a signed-in shopper's cart and placed orders."""

    account_id: str = field(default_factory=lambda: f"load-{uuid.uuid4().hex[:12]}")
    cart_items: int = 0
    order_ids: list[str] = field(default_factory=list)

    @property
    def headers(self) -> dict[str, str]:
        return {"X-Account-Id": self.account_id}

"""Identity provider port and the session-scoped adapter.

An identity provider yields either a stable account identifier or None,
which stands for an anonymous visitor. Interested parties subscribe to
transitions of that value instead of reacting to authentication callbacks.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

import structlog

logger = structlog.get_logger(__name__)

IdentityListener = Callable[[str | None], Awaitable[None]]


class IdentityProvider(ABC):
    """Abstract identity provider interface."""

    @abstractmethod
    def current(self) -> str | None:
        """Return the signed-in account id, or None for an anonymous visitor."""
        ...

    @abstractmethod
    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """Register a coroutine called with each new identity. Returns an unsubscribe callable."""
        ...


class SessionIdentity(IdentityProvider):
    """Identity held for one client session, changed by explicit sign-in and sign-out."""

    def __init__(self, account_id: str | None = None) -> None:
        self._account_id = account_id or None
        self._listeners: list[IdentityListener] = []

    def current(self) -> str | None:
        return self._account_id

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def sign_in(self, account_id: str) -> None:
        if not account_id:
            raise ValueError("account_id is required to sign in")
        await self._change(account_id)

    async def sign_out(self) -> None:
        await self._change(None)

    async def _change(self, account_id: str | None) -> None:
        if account_id == self._account_id:
            return

        logger.info("Identity changed", previous=self._account_id, current=account_id)
        self._account_id = account_id
        for listener in list(self._listeners):
            await listener(account_id)

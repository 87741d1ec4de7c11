"""Tests for SessionIdentity transitions and subscriptions."""

import pytest
from shared.identity import SessionIdentity


class TestSessionIdentity:
    def test_starts_anonymous(self):
        assert SessionIdentity().current() is None

    def test_empty_account_id_is_anonymous(self):
        assert SessionIdentity("").current() is None

    async def test_sign_in_notifies_listeners(self):
        identity = SessionIdentity()
        seen = []

        async def listener(account_id):
            seen.append(account_id)

        identity.subscribe(listener)
        await identity.sign_in("acct-1")
        await identity.sign_out()

        assert seen == ["acct-1", None]
        assert identity.current() is None

    async def test_repeated_sign_in_is_not_a_transition(self):
        identity = SessionIdentity("acct-1")
        seen = []

        async def listener(account_id):
            seen.append(account_id)

        identity.subscribe(listener)
        await identity.sign_in("acct-1")

        assert seen == []

    async def test_unsubscribe_stops_notifications(self):
        identity = SessionIdentity()
        seen = []

        async def listener(account_id):
            seen.append(account_id)

        unsubscribe = identity.subscribe(listener)
        unsubscribe()
        await identity.sign_in("acct-1")

        assert seen == []

    async def test_sign_in_requires_an_account(self):
        with pytest.raises(ValueError):
            await SessionIdentity().sign_in("")

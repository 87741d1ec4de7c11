"""Shared BDD fixtures for the Ordering domain."""

import pytest


@pytest.fixture()
def lines():
    """Cart lines collected by Given steps."""
    return []


@pytest.fixture()
def anonymous_cart():
    return {}


@pytest.fixture()
def saved_cart():
    return {}


@pytest.fixture()
def context():
    """Holds the coupon, totals and merged cart produced by When steps."""
    return {"coupon": None}

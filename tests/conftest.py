"""
conftest.py - Shared pytest fixtures for ticketing tests

Provides common fixtures used across unit, conformance and functional tests:
- Basic ledgers (empty, with a ticket type and wallets)
- Policy stores configured with the reference resale policy
- Enforced collections with minted tickets
"""

import pytest

from ticketing import Ledger, PolicyStore, ticket_type, HOUR

from tests.builders import (
    T0, OWNER, GA, VIP,
    reference_parameters, make_collection,
)
from tests.fake_view import FakeView


# =============================================================================
# BASIC FIXTURES
# =============================================================================

@pytest.fixture
def empty_ledger():
    """Fresh ledger with no registrations."""
    return Ledger("test", owner=OWNER, initial_time=T0, verbose=False)


@pytest.fixture
def basic_ledger():
    """Ledger with one ungated ticket type and two wallets."""
    ledger = Ledger("test", owner=OWNER, initial_time=T0, verbose=False)
    ledger.register_unit(ticket_type(GA, "General Admission"))
    ledger.register_wallet("alice")
    ledger.register_wallet("bob")
    return ledger


@pytest.fixture
def stocked_ledger(basic_ledger):
    """Basic ledger with alice holding 10 GA tickets."""
    basic_ledger.mint("alice", GA, 10, caller=OWNER)
    return basic_ledger


@pytest.fixture
def store():
    """Policy store on a frozen clock at T0, nothing configured."""
    return PolicyStore(OWNER, clock=lambda: T0)


@pytest.fixture
def params():
    return reference_parameters()


# =============================================================================
# ENFORCEMENT FIXTURES
# =============================================================================

@pytest.fixture
def collection():
    """(ledger, store, enforcer) with the reference policy configured."""
    return make_collection()


@pytest.fixture
def minted(collection):
    """Collection where alice was minted 4 GA and 1 VIP at T0."""
    ledger, store, enforcer = collection
    enforcer.mint("alice", GA, 4, caller=OWNER)
    enforcer.mint("alice", VIP, 1, caller=OWNER)
    return collection


@pytest.fixture
def tradable(minted):
    """Minted collection advanced past the 72h first-transfer cooldown."""
    ledger, store, enforcer = minted
    ledger.advance_time(T0 + 72 * HOUR)
    return minted


@pytest.fixture
def fake_view():
    return FakeView(balances={"alice": {GA: 2}}, time=T0)

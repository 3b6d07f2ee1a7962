"""
builders.py - Shared constants and builders for ticketing tests

Used by conftest.py fixtures and imported directly by tests that need a
second, independent collection.
"""

from typing import Dict, Tuple

from ticketing import (
    Ledger, Parameters, PolicyStore, PricingEngine, TransferEnforcer, DAY,
)


# =============================================================================
# CONSTANTS
# =============================================================================

T0 = 1_700_000_000          # Logical start time for every fixture
OWNER = "organiser"
COLLECTION = "concert"
GA = 1                      # General admission ticket type
VIP = 2
FACE_VALUE = 100_000


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def reference_parameters(now: int = T0, **overrides) -> Parameters:
    """Parameters used throughout the resale scenarios (event 90 days out)."""
    values = dict(
        event_timestamp=now + 90 * DAY,
        base_fee_bps=500,
        t_long=30 * DAY,
        t_mid=7 * DAY,
        cap_long_bps=1500,
        cap_mid_bps=500,
        fee_long_bps=800,
        fee_mid_bps=300,
        markup_step_bps=1000,
        markup_fee_per_step_bps=200,
        max_fee_bps=2500,
    )
    values.update(overrides)
    return Parameters(**values)


def snapshot(ledger: Ledger, enforcer: TransferEnforcer) -> Dict[str, object]:
    """Capture every piece of observable state for before/after comparisons."""
    return {
        "balances": {w: dict(b) for w, b in ledger.balances.items()},
        "log": len(ledger.transaction_log),
        "cooldowns": dict(enforcer._cooldowns),
        "checked_in": set(enforcer._checked_in),
        "records": list(enforcer.records),
    }


def make_collection(
    now: int = T0,
    wallets: Tuple[str, ...] = ("alice", "bob", "carol"),
    configure: bool = True,
) -> Tuple[Ledger, PolicyStore, TransferEnforcer]:
    """Build an enforced collection with GA and VIP ticket types and face values set."""
    ledger = Ledger(COLLECTION, owner=OWNER, initial_time=now, verbose=False)
    store = PolicyStore(OWNER, clock=lambda: ledger.current_time)
    enforcer = TransferEnforcer(ledger, PricingEngine(store), owner=OWNER, verbose=False)
    enforcer.register_ticket_type(GA, "General Admission", caller=OWNER)
    enforcer.register_ticket_type(VIP, "VIP", caller=OWNER)
    for wallet in wallets:
        ledger.register_wallet(wallet)
    if configure:
        store.set_parameters(COLLECTION, reference_parameters(now), caller=OWNER)
        store.set_face_value(COLLECTION, GA, FACE_VALUE, caller=OWNER)
        store.set_face_value(COLLECTION, VIP, 4 * FACE_VALUE, caller=OWNER)
    return ledger, store, enforcer


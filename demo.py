#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Ticket Resale Enforcement Step by Step

A walkthrough of one concert collection, from the organiser's setup to the
door. Each step builds on the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:   Setup        - Ledger, policy store, enforcer, ticket types
  4-6:   Cooldowns    - Minting, the 72h window, the 24h window
  7-9:   Pricing      - Fee tiers, price caps, validation of parameters
  10-11: Batches      - Atomic gifts, direct ledger moves
  12:    Check-in     - Using a ticket exactly once

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass, replace
import sys

from ticketing import (
    Ledger, Move, ExecuteResult, build_transaction,
    Parameters, PolicyStore, PricingEngine, TransferEnforcer,
    PolicyViolation, ValidationError, AuthorizationError,
    fee_amount, HOUR, DAY,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    start_time: int = 1_767_225_600          # 2026-01-01 00:00 UTC
    collection: str = "concert"
    organiser: str = "organiser"

    general_admission: int = 1
    vip: int = 2
    ga_face_value: int = 100_000
    vip_face_value: int = 400_000

    days_to_event: int = 90


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with learning objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    """Print a section header within a step."""
    print(f"\n--- {text} ---\n")


def attempt(label: str, action):
    """Run an action, printing either its result or the rejection."""
    print(f">>> {label}")
    try:
        result = action()
    except (PolicyViolation, ValidationError, AuthorizationError) as e:
        print(f"    rejected: {e}")
        return None
    print(f"    -> {result}")
    return result


def show_holdings(ledger: Ledger):
    for token_id in ledger.list_units():
        print(f"    {ledger.get_unit(token_id).name:<20} {ledger.get_positions(token_id)}")


# ============================================================================
# PHASE 1: SETUP (Steps 1-3)
# ============================================================================

def step_01_wiring():
    """Create the ledger, policy store and enforcer."""
    step_header(1, "Wiring a Collection",
        "A collection is a Ledger guarded by a TransferEnforcer that asks a PricingPolicy.")

    print("""
    Three objects cooperate:

    LEDGER      - who holds which ticket type, and the transaction log
    POLICYSTORE - the organiser's parameters and face values, per collection
    ENFORCER    - cooldowns, proofs and the pricing decision for each transfer
    """)

    ledger = Ledger(CONFIG.collection, owner=CONFIG.organiser,
                    initial_time=CONFIG.start_time, verbose=False)
    store = PolicyStore(CONFIG.organiser, clock=lambda: ledger.current_time)
    enforcer = TransferEnforcer(ledger, PricingEngine(store), owner=CONFIG.organiser)

    print(f"Ledger:   {ledger.name} at t={ledger.current_time}")
    print(f"Enforcer: {enforcer!r}")
    return ledger, store, enforcer


def step_02_parameters(store: PolicyStore):
    """Configure the resale policy."""
    step_header(2, "Resale Parameters",
        "Caps and fees depend on how far away the event is.")

    now = CONFIG.start_time
    params = Parameters(
        event_timestamp=now + CONFIG.days_to_event * DAY,
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
    store.set_parameters(CONFIG.collection, params, caller=CONFIG.organiser)
    store.set_face_value(CONFIG.collection, CONFIG.general_admission,
                         CONFIG.ga_face_value, caller=CONFIG.organiser)
    store.set_face_value(CONFIG.collection, CONFIG.vip,
                         CONFIG.vip_face_value, caller=CONFIG.organiser)

    print("""
    more than 30 days out:  price <= face + 15%, fee 500 + 800 bps
    7 to 30 days out:       price <= face + 5%,  fee 500 + 300 bps
    last 7 days:            price <= face,       fee 500 bps
    plus 200 bps for every full 10% of markup, never above 2500 bps
    """)

    section_header("Only the organiser may change it")
    attempt("store.set_face_value(..., caller='mallory')",
            lambda: store.set_face_value(CONFIG.collection, 1, 1, caller="mallory"))
    return params


def step_03_ticket_types(ledger: Ledger, enforcer: TransferEnforcer):
    """Register ticket types and holders."""
    step_header(3, "Ticket Types and Holders",
        "Ticket types registered through the enforcer carry its transfer rule.")

    enforcer.register_ticket_type(CONFIG.general_admission, "General Admission",
                                  caller=CONFIG.organiser)
    enforcer.register_ticket_type(CONFIG.vip, "VIP", caller=CONFIG.organiser)
    for wallet in ("alice", "bob", "carol"):
        ledger.register_wallet(wallet)

    print(f"Ticket types: {[ledger.get_unit(t).name for t in ledger.list_units()]}")
    print(f"Wallets:      {sorted(ledger.list_wallets())}")


# ============================================================================
# PHASE 2: COOLDOWNS (Steps 4-6)
# ============================================================================

def step_04_mint(ledger: Ledger, enforcer: TransferEnforcer):
    """Mint tickets to alice."""
    step_header(4, "Minting",
        "A freshly minted ticket waits 72 hours before it can leave the wallet.")

    enforcer.mint("alice", CONFIG.general_admission, 4, caller=CONFIG.organiser)
    enforcer.mint("alice", CONFIG.vip, 1, caller=CONFIG.organiser)
    show_holdings(ledger)

    state = enforcer.cooldown_state("alice", CONFIG.general_admission)
    print(f"\nalice GA cooldown: {state.phase.value}, since t={state.last_transfer_time}")


def step_05_first_cooldown(ledger: Ledger, enforcer: TransferEnforcer):
    """Try to sell before and after 72h."""
    step_header(5, "The 72h Window",
        "Moving exactly at the boundary is allowed; one minute early is not.")

    ledger.advance_time(CONFIG.start_time + 71 * HOUR + 59 * 60)
    attempt("at t0 + 71h59m: alice -> bob, 110000",
            lambda: enforcer.transfer_with_price("alice", "bob", CONFIG.general_admission, 1, 110_000))

    ledger.advance_time(CONFIG.start_time + 72 * HOUR)
    attempt("at t0 + 72h:    alice -> bob, 110000",
            lambda: enforcer.transfer_with_price("alice", "bob", CONFIG.general_admission, 1, 110_000))
    show_holdings(ledger)


def step_06_transfer_cooldown(ledger: Ledger, enforcer: TransferEnforcer):
    """Both sides of a transfer wait 24h."""
    step_header(6, "The 24h Window",
        "After a transfer, sender and recipient both wait 24 hours.")

    ga = CONFIG.general_admission
    attempt("bob -> carol right away", lambda: enforcer.transfer("bob", "carol", ga, 1))
    attempt("alice -> carol right away", lambda: enforcer.transfer("alice", "carol", ga, 1))

    ledger.advance_time(ledger.current_time + 24 * HOUR)
    attempt("bob -> carol 24h later (gift)", lambda: enforcer.transfer("bob", "carol", ga, 1))


# ============================================================================
# PHASE 3: PRICING (Steps 7-9)
# ============================================================================

def step_07_fee_tiers(ledger: Ledger, enforcer: TransferEnforcer, params: Parameters):
    """Preview decisions across the buckets without moving anything."""
    step_header(7, "Fee Tiers",
        "authorize() previews a Decision; nothing moves.")

    ga = CONFIG.general_admission
    for days_out in (60, 10, 3):
        now = params.event_timestamp - days_out * DAY
        for price in (100_000, 105_000, 115_000):
            decision = enforcer.authorize("alice", "bob", ga, 1, price, now=now)
            outcome = f"fee {decision.fee_bps} bps" if decision.allowed else decision.reason
            print(f"    {days_out:>3} days out, price {price}: {outcome}")


def step_08_cap(ledger: Ledger, enforcer: TransferEnforcer):
    """A sale over the cap is refused and leaves no trace."""
    step_header(8, "Price Caps",
        "A rejected sale changes no balance, no cooldown and no record.")

    ga = CONFIG.general_admission
    log_before = len(ledger.transaction_log)
    attempt("alice -> bob, 250000 (150% markup)",
            lambda: enforcer.transfer_with_price("alice", "bob", ga, 1, 250_000))
    print(f"    log entries: {log_before} -> {len(ledger.transaction_log)}")

    section_header("Fees collected so far")
    for record in enforcer.fee_records():
        print(f"    {record.seller} -> {record.buyer}: price {record.price}, "
              f"fee {record.fee} ({record.fee_bps} bps)")
    total = sum(fee_amount(r.price, r.fee_bps) for r in enforcer.fee_records())
    print(f"    total: {total}")


def step_09_validation(store: PolicyStore, params: Parameters):
    """Invalid parameters are refused and the old ones kept."""
    step_header(9, "Parameter Validation",
        "The store only ever holds a consistent policy.")

    attempt("set_parameters with t_long=7d, t_mid=30d",
            lambda: store.set_parameters(CONFIG.collection,
                                         replace(params, t_long=7 * DAY, t_mid=30 * DAY),
                                         caller=CONFIG.organiser))
    attempt("set_parameters with max_fee_bps=12000",
            lambda: store.set_parameters(CONFIG.collection,
                                         replace(params, max_fee_bps=12_000),
                                         caller=CONFIG.organiser))
    kept = store.get_parameters(CONFIG.collection)
    print(f"    still stored: t_long={kept.t_long // DAY}d, t_mid={kept.t_mid // DAY}d")


# ============================================================================
# PHASE 4: BATCHES (Steps 10-11)
# ============================================================================

def step_10_batch(ledger: Ledger, enforcer: TransferEnforcer):
    """Gift several ticket types at once."""
    step_header(10, "Batch Gifts",
        "A batch moves every ticket type or none of them.")

    ga, vip = CONFIG.general_admission, CONFIG.vip
    ledger.advance_time(ledger.current_time + 24 * HOUR)
    attempt("alice gifts 1 GA + 1 VIP to carol",
            lambda: enforcer.batch_transfer("alice", "carol", [ga, vip], [1, 1]))
    show_holdings(ledger)


def step_11_direct_moves(ledger: Ledger, enforcer: TransferEnforcer):
    """Moves sent straight to the ledger are still enforced."""
    step_header(11, "Direct Ledger Moves",
        "The enforcer is the transfer rule of its ticket types, so there is no way around it.")

    tx = build_transaction(ledger, [
        Move(1, CONFIG.general_admission, "carol", "bob", "direct", {"price": 500_000}),
    ])
    result = ledger.execute(tx)
    print(f"    ledger.execute(...) -> {result}")
    assert result == ExecuteResult.REJECTED


# ============================================================================
# PHASE 5: CHECK-IN (Step 12)
# ============================================================================

def step_12_check_in(ledger: Ledger, enforcer: TransferEnforcer, params: Parameters):
    """Use the ticket at the door."""
    step_header(12, "Check-in",
        "Each holder checks in a ticket type once.")

    ledger.advance_time(params.event_timestamp)
    ga = CONFIG.general_admission
    attempt("carol checks in GA", lambda: enforcer.check_in("carol", ga))
    attempt("carol checks in GA again", lambda: enforcer.check_in("carol", ga))
    attempt("alice sells after the event started",
            lambda: enforcer.transfer_with_price("alice", "bob", ga, 1, 100_000))


def main():
    """Run the complete tutorial."""
    print("=" * 70)
    print("       TICKET RESALE - INTERACTIVE TUTORIAL")
    print("=" * 70)

    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    else:
        print("Running in INTERACTIVE mode (press Enter to advance)")

    wait_for_enter()

    ledger, store, enforcer = step_01_wiring()
    wait_for_enter()
    params = step_02_parameters(store)
    wait_for_enter()
    step_03_ticket_types(ledger, enforcer)
    wait_for_enter()

    step_04_mint(ledger, enforcer)
    wait_for_enter()
    step_05_first_cooldown(ledger, enforcer)
    wait_for_enter()
    step_06_transfer_cooldown(ledger, enforcer)
    wait_for_enter()

    step_07_fee_tiers(ledger, enforcer, params)
    wait_for_enter()
    step_08_cap(ledger, enforcer)
    wait_for_enter()
    step_09_validation(store, params)
    wait_for_enter()

    step_10_batch(ledger, enforcer)
    wait_for_enter()
    step_11_direct_moves(ledger, enforcer)
    wait_for_enter()

    step_12_check_in(ledger, enforcer, params)

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    print("""
    Next steps:
      - See ticketing/pricing.py for the fee and cap rules
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()

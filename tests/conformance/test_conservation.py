"""
Conservation Conformance Tests

INVARIANT: Transfers never create or destroy tickets.

    ∀ ticket type u, ∀ sequence of transfers:
        Σ balances(u) over holders == Σ mints(u)

Only the owner's mint changes total supply.
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from ticketing import LedgerError, HOUR
from tests.builders import T0, OWNER, GA, VIP, make_collection

HOLDERS = ("alice", "bob", "carol")

transfer_step = st.tuples(
    st.sampled_from(HOLDERS),
    st.sampled_from(HOLDERS),
    st.sampled_from((GA, VIP)),
    st.integers(min_value=1, max_value=3),
    st.integers(min_value=0, max_value=600_000),
    st.integers(min_value=0, max_value=48 * HOUR),
)


class TestConservationProperties:

    @given(steps=st.lists(transfer_step, min_size=1, max_size=15))
    @settings(max_examples=60, deadline=None)
    def test_supply_constant_under_transfers(self, steps):
        """
        PROPERTY: Whatever mix of sales, gifts and rejections happens,
        total supply per ticket type equals what was minted.
        """
        ledger, store, enforcer = make_collection()
        enforcer.mint("alice", GA, 5, caller=OWNER)
        enforcer.mint("bob", VIP, 2, caller=OWNER)
        ledger.advance_time(T0 + 72 * HOUR)

        for sender, recipient, token_id, amount, price, wait in steps:
            ledger.advance_time(ledger.current_time + wait)
            if sender == recipient:
                continue
            try:
                enforcer.transfer_with_price(sender, recipient, token_id, amount, price)
            except LedgerError:
                pass

            assert ledger.total_supply(GA) == 5
            assert ledger.total_supply(VIP) == 2
            for holder in HOLDERS:
                assert ledger.get_balance(holder, GA) >= 0
                assert ledger.get_balance(holder, VIP) >= 0

    @given(amounts=st.lists(st.integers(min_value=1, max_value=10), min_size=1, max_size=5))
    @settings(max_examples=30, deadline=None)
    def test_mints_add_up(self, amounts):
        ledger, store, enforcer = make_collection()
        for amount in amounts:
            enforcer.mint("carol", GA, amount, caller=OWNER)
        assert ledger.total_supply(GA) == sum(amounts)
        assert ledger.get_balance("carol", GA) == sum(amounts)

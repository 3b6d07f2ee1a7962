"""
Determinism Conformance Tests

INVARIANT: Evaluation is a pure function of its inputs.

    ∀ ctx, params, face_value:
        evaluate_transfer(ctx, params, face_value) is always the same Decision

Plus the bounds every allowing Decision respects:
    fee_bps ≤ max_fee_bps
    price per ticket ≤ face_value × (1 + cap(bucket))
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from ticketing import TransferContext, Decision, evaluate_transfer, fee_amount, DAY, BPS_DENOMINATOR
from tests.builders import T0, COLLECTION, reference_parameters

PARAMS = reference_parameters()

prices = st.integers(min_value=0, max_value=2_000_000)
amounts = st.integers(min_value=1, max_value=10)
face_values = st.integers(min_value=0, max_value=500_000)
times = st.integers(min_value=T0, max_value=T0 + 100 * DAY)


def _ctx(price, amount, now):
    return TransferContext(COLLECTION, "alice", "bob", 1, amount, price, now)


def _cap_bps(now):
    delta = PARAMS.event_timestamp - now
    if delta > PARAMS.t_long:
        return PARAMS.cap_long_bps
    if delta > PARAMS.t_mid:
        return PARAMS.cap_mid_bps
    return 0


class TestDeterminism:

    @given(price=prices, amount=amounts, face=face_values, now=times)
    @settings(max_examples=300)
    def test_same_inputs_same_decision(self, price, amount, face, now):
        ctx = _ctx(price, amount, now)
        assert evaluate_transfer(ctx, PARAMS, face) == evaluate_transfer(ctx, PARAMS, face)

    @given(price=prices, amount=amounts, face=face_values, now=times)
    @settings(max_examples=300)
    def test_allowed_sale_within_bounds(self, price, amount, face, now):
        """
        PROPERTY: An allowed sale never exceeds the cap and never pays more than max fee.
        """
        decision = evaluate_transfer(_ctx(price, amount, now), PARAMS, face)
        if not decision.allowed:
            return
        assert 0 <= decision.fee_bps <= PARAMS.max_fee_bps
        if price > 0:
            assert now < PARAMS.event_timestamp
            cap = face + face * _cap_bps(now) // BPS_DENOMINATOR
            assert price // amount <= cap

    @given(price=prices, amount=amounts, face=face_values, now=times)
    @settings(max_examples=300)
    def test_rejections_carry_no_fee(self, price, amount, face, now):
        decision = evaluate_transfer(_ctx(price, amount, now), PARAMS, face)
        if not decision.allowed:
            assert decision.fee_bps == 0
            assert decision.reason

    @given(amount=amounts, face=face_values, now=times)
    @settings(max_examples=200)
    def test_gifts_always_free(self, amount, face, now):
        assert evaluate_transfer(_ctx(0, amount, now), PARAMS, face) == Decision.allow(0)


class TestFeeMonotonicity:

    @given(
        low=st.integers(min_value=1, max_value=115_000),
        high=st.integers(min_value=1, max_value=115_000),
    )
    @settings(max_examples=200)
    def test_fee_non_decreasing_in_price(self, low, high):
        """
        PROPERTY: Within a bucket, a higher price never earns a lower fee rate.
        """
        low, high = sorted((low, high))
        a = evaluate_transfer(_ctx(low, 1, T0), PARAMS, 100_000)
        b = evaluate_transfer(_ctx(high, 1, T0), PARAMS, 100_000)
        assert a.allowed and b.allowed
        assert a.fee_bps <= b.fee_bps

    @given(price=prices, bps=st.integers(min_value=0, max_value=BPS_DENOMINATOR))
    def test_fee_amount_never_exceeds_price(self, price, bps):
        assert 0 <= fee_amount(price, bps) <= price

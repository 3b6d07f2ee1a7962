"""
pricing.py - Transfer authorization and dynamic resale pricing

Decides, for one attempted transfer, whether it may proceed and which fee
applies. All arithmetic is integer; percentages are basis points.

Classes:
- TransferContext: Everything known about one transfer attempt
- Decision: allowed / fee_bps / reason
- PricingPolicy: Protocol defining the evaluation interface
- PricingEngine: Policy backed by a PolicyStore
- AllowAllPolicy: Allows every transfer at zero fee

=== ALGORITHM (evaluate_transfer) ===

    unconfigured policy          -> allow, fee 0
    total_price == 0 (gift)      -> allow, fee 0
    face value unset             -> reject "face value not set"
    now >= event                 -> reject "event already started"
    delta = event - now
        delta > t_long           -> cap_long_bps, fee_long_bps
        delta > t_mid            -> cap_mid_bps,  fee_mid_bps
        otherwise                -> 0, 0
    per_unit = total_price // amount
    per_unit > face + face * cap // 10000           -> reject "price exceeds cap"
    markup_bps = (per_unit - face) * 10000 // face  (0 when not above face)
    steps = markup_bps // markup_step_bps           (0 when step is 0)
    fee = min(base + time_fee + steps * step_fee, max_fee)

Per-unit price truncates: a 2-ticket sale at 230001 is judged at 115000.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from .core import BPS_DENOMINATOR
from .policy import Parameters, PolicyStore


REASON_FACE_VALUE_NOT_SET = "face value not set"
REASON_EVENT_STARTED = "event already started"
REASON_PRICE_EXCEEDS_CAP = "price exceeds cap"


@dataclass(frozen=True, slots=True)
class TransferContext:
    """
    One transfer attempt, as seen by a pricing policy. Never persisted.

    Attributes:
        collection: Collection (ledger) name
        sender: Wallet giving up the tickets
        recipient: Wallet receiving them
        token_id: Ticket type
        amount: Number of tickets, must be positive
        total_price: Price for all tickets together, 0 for a gift
        timestamp: Ledger time of the attempt (Unix seconds)
        region_proof: Opaque region eligibility proof
        age_proof: Opaque age eligibility proof
    """
    collection: str
    sender: str
    recipient: str
    token_id: int
    amount: int
    total_price: int
    timestamp: int
    region_proof: bytes = b""
    age_proof: bytes = b""

    def __post_init__(self):
        if self.amount <= 0:
            raise ValueError(f"amount must be positive, got {self.amount}")
        if self.total_price < 0:
            raise ValueError(f"total_price cannot be negative, got {self.total_price}")

    @property
    def is_gift(self) -> bool:
        return self.total_price == 0


@dataclass(frozen=True, slots=True)
class Decision:
    """Outcome of a pricing evaluation."""
    allowed: bool
    fee_bps: int = 0
    reason: str = ""

    @classmethod
    def allow(cls, fee_bps: int = 0) -> Decision:
        return cls(True, fee_bps, "")

    @classmethod
    def reject(cls, reason: str) -> Decision:
        return cls(False, 0, reason)


def evaluate_transfer(ctx: TransferContext, params: Parameters, face_value: int) -> Decision:
    """
    Decide whether a transfer may proceed and at which fee. Pure function.

    Args:
        ctx: The transfer attempt
        params: The collection's policy (UNCONFIGURED allows everything)
        face_value: Reference price of the ticket type, 0 if unset

    Returns:
        Decision; rejections carry fee_bps 0 and a reason
    """
    if not params.is_configured:
        return Decision.allow(0)
    if ctx.is_gift:
        return Decision.allow(0)
    if face_value == 0:
        return Decision.reject(REASON_FACE_VALUE_NOT_SET)
    if ctx.timestamp >= params.event_timestamp:
        return Decision.reject(REASON_EVENT_STARTED)

    delta = params.event_timestamp - ctx.timestamp
    if delta > params.t_long:
        cap_bps, time_fee_bps = params.cap_long_bps, params.fee_long_bps
    elif delta > params.t_mid:
        cap_bps, time_fee_bps = params.cap_mid_bps, params.fee_mid_bps
    else:
        cap_bps, time_fee_bps = 0, 0

    price_per_unit = ctx.total_price // ctx.amount
    max_allowed_price = face_value + face_value * cap_bps // BPS_DENOMINATOR
    if price_per_unit > max_allowed_price:
        return Decision.reject(REASON_PRICE_EXCEEDS_CAP)

    markup_bps = 0
    if price_per_unit > face_value:
        markup_bps = (price_per_unit - face_value) * BPS_DENOMINATOR // face_value

    steps = markup_bps // params.markup_step_bps if params.markup_step_bps > 0 else 0
    markup_fee_bps = steps * params.markup_fee_per_step_bps

    total_fee_bps = min(
        params.base_fee_bps + time_fee_bps + markup_fee_bps,
        params.max_fee_bps,
    )
    return Decision.allow(total_fee_bps)


def fee_amount(total_price: int, fee_bps: int) -> int:
    """Fee in price units, rounded down."""
    return total_price * fee_bps // BPS_DENOMINATOR


@runtime_checkable
class PricingPolicy(Protocol):
    """
    Protocol for pricing policies.

    The TransferEnforcer holds one PricingPolicy and calls evaluate() for
    every transfer that has passed its cooldown check. Implementations must
    be deterministic and free of side effects.
    """

    def evaluate(self, ctx: TransferContext) -> Decision:
        """Decide one transfer attempt."""
        ...


class PricingEngine:
    """
    Pricing policy reading Parameters and face values from a PolicyStore.

    The engine never writes to the store.
    """

    def __init__(self, store: PolicyStore):
        self.store = store

    def evaluate(self, ctx: TransferContext) -> Decision:
        params = self.store.get_parameters(ctx.collection)
        face_value = self.store.get_face_value(ctx.collection, ctx.token_id)
        return evaluate_transfer(ctx, params, face_value)

    def __repr__(self):
        return f"PricingEngine({self.store!r})"


class AllowAllPolicy:
    """Pricing policy that allows every transfer at zero fee."""

    def evaluate(self, ctx: TransferContext) -> Decision:
        return Decision.allow(0)

    def __repr__(self):
        return "AllowAllPolicy()"

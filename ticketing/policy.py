"""
policy.py - Per-collection resale policy storage

=== PARAMETERS ===

One Parameters record per collection:
    event_timestamp          - Unix seconds at which the event starts
    base_fee_bps             - Fee charged on every sale
    t_long, t_mid            - Time-to-event thresholds (seconds), t_long > t_mid
    cap_long_bps/cap_mid_bps - Max markup over face value in each bucket
    fee_long_bps/fee_mid_bps - Time-based fee in each bucket
    markup_step_bps          - Markup step size for the surcharge
    markup_fee_per_step_bps  - Surcharge per full markup step
    max_fee_bps              - Ceiling on the total fee, at most 10000

An event_timestamp of 0 means "no policy": transfers are allowed at zero fee.

=== FACE VALUES ===

(collection, token_id) -> reference price. 0 means unset; sales of an
unset ticket type are rejected by the pricing engine.

Only the store owner may mutate either table. A rejected call leaves the
previous configuration untouched.
"""

from __future__ import annotations
from dataclasses import dataclass, fields
import time
from typing import Callable, Dict, Optional, Tuple

from .core import AuthorizationError, ValidationError, BPS_DENOMINATOR


@dataclass(frozen=True, slots=True)
class Parameters:
    """Resale policy for one collection. All values are integers."""
    event_timestamp: int = 0
    base_fee_bps: int = 0
    t_long: int = 0
    t_mid: int = 0
    cap_long_bps: int = 0
    cap_mid_bps: int = 0
    fee_long_bps: int = 0
    fee_mid_bps: int = 0
    markup_step_bps: int = 0
    markup_fee_per_step_bps: int = 0
    max_fee_bps: int = 0

    @property
    def is_configured(self) -> bool:
        return self.event_timestamp != 0


# Returned for collections that were never configured.
UNCONFIGURED = Parameters()


def _require_collection(collection: Optional[str]) -> None:
    if not isinstance(collection, str) or not collection.strip():
        raise ValidationError("collection reference must not be empty")


def validate_parameters(collection: Optional[str], params: Parameters, now: int) -> None:
    """
    Check a Parameters record before it is stored. Pure function.

    Raises:
        ValidationError: on the first violated invariant
    """
    _require_collection(collection)
    for f in fields(params):
        value = getattr(params, f.name)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"{f.name} must be an int, got {value!r}")
        if value < 0:
            raise ValidationError(f"{f.name} must be non-negative")
    if params.t_long <= params.t_mid:
        raise ValidationError("tLong must be greater than tMid")
    if params.max_fee_bps > BPS_DENOMINATOR:
        raise ValidationError(f"maxFeeBps must not exceed {BPS_DENOMINATOR}")
    if params.event_timestamp <= now:
        raise ValidationError("event timestamp must be in the future")


def _wall_clock() -> int:
    return int(time.time())


class PolicyStore:
    """
    Owner-gated store of collection Parameters and face values.

    Example:
        store = PolicyStore(owner="organiser", clock=lambda: ledger.current_time)
        store.set_parameters("concert", params, caller="organiser")
        store.set_face_value("concert", 1, 100_000, caller="organiser")
    """

    def __init__(self, owner: str, clock: Optional[Callable[[], int]] = None):
        """
        Args:
            owner: The only caller allowed to mutate policy
            clock: Returns the current time in Unix seconds (default: wall clock)
        """
        if not owner or not owner.strip():
            raise ValueError("PolicyStore owner cannot be empty")
        self.owner = owner
        self.clock = clock or _wall_clock
        self._clocks: Dict[str, Callable[[], int]] = {}
        self._parameters: Dict[str, Parameters] = {}
        self._face_values: Dict[Tuple[str, int], int] = {}

    def _require_owner(self, caller: str) -> None:
        if caller != self.owner:
            raise AuthorizationError(f"{caller} is not the policy owner")

    def register_clock(self, collection: str, clock: Callable[[], int]) -> None:
        """
        Bind a collection to its own clock, normally its ledger's logical time.

        Event timestamps of that collection are then judged against the same
        time its transfers are evaluated at. A collection is bound at most once.

        Raises:
            ValidationError: If the collection is empty or already has a clock
        """
        _require_collection(collection)
        if collection in self._clocks:
            raise ValidationError(f"collection {collection} already has a clock")
        self._clocks[collection] = clock

    def now(self, collection: str) -> int:
        """Current time for a collection: its registered clock, else the store clock."""
        return self._clocks.get(collection, self.clock)()

    def set_parameters(self, collection: str, params: Parameters, caller: str) -> None:
        """
        Replace a collection's Parameters after validating them.

        Raises:
            AuthorizationError: If caller is not the owner
            ValidationError: If params violate an invariant
        """
        self._require_owner(caller)
        _require_collection(collection)
        validate_parameters(collection, params, self.now(collection))
        self._parameters[collection] = params

    def set_face_value(self, collection: str, token_id: int, price: int, caller: str) -> None:
        """
        Set or overwrite the reference price of a ticket type.

        Raises:
            AuthorizationError: If caller is not the owner
            ValidationError: If the collection is empty or the price is negative
        """
        self._require_owner(caller)
        _require_collection(collection)
        if isinstance(price, bool) or not isinstance(price, int) or price < 0:
            raise ValidationError(f"face value must be a non-negative int, got {price!r}")
        self._face_values[(collection, token_id)] = price

    def get_parameters(self, collection: str) -> Parameters:
        return self._parameters.get(collection, UNCONFIGURED)

    def get_face_value(self, collection: str, token_id: int) -> int:
        return self._face_values.get((collection, token_id), 0)

    def is_configured(self, collection: str) -> bool:
        return self.get_parameters(collection).is_configured

    def __repr__(self):
        return f"PolicyStore({len(self._parameters)} collections, {len(self._face_values)} face values)"

"""
enforcer.py - Transfer enforcement for one ticket collection

=== COOLDOWN MODEL ===

Per (holder, token_id) the enforcer keeps a CooldownState:
    last_transfer_time        - when the holding last changed hands
    awaiting_first_transfer   - set on mint, cleared by any transfer

Phases:
    UNSET                     - never acquired through this collection
    AWAITING_FIRST_TRANSFER   - minted, 72h window before it may move
    POST_TRANSFER_COOLDOWN    - moved at least once, 24h window

The clock starts at acquisition: a ticket minted at t0 may first leave the
wallet at t0 + 72h, and both sides of any transfer restart a 24h window.
Moving exactly at the boundary is allowed.

=== SEQUENCE ===

    authorize      cooldown check -> proofs -> PricingPolicy.evaluate
    ledger         transfer_rule re-runs authorize for every move, then
                   all moves are applied at once
    observer       cooldown state commit, FeeCharged record

A rejection anywhere before the ledger applies the moves leaves balances,
cooldowns and records untouched.

Price and proofs travel on Move.metadata, so each move is judged with its
own price even when a transaction carries several ticket types.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Set, Tuple, Union

from .core import (
    LedgerView, Move, Transaction, TransactionOrigin, OriginType,
    build_transaction, ticket_type,
    SYSTEM_WALLET, FIRST_TRANSFER_COOLDOWN, TRANSFER_COOLDOWN, HOUR,
    META_PRICE, META_REGION_PROOF, META_AGE_PROOF,
    AuthorizationError, PolicyViolation,
)
from .ledger import Ledger
from .pricing import Decision, PricingPolicy, TransferContext, fee_amount
from .proofs import ClaimKind, ProofVerifier, StubProofVerifier


class CooldownPhase(Enum):
    UNSET = "unset"
    AWAITING_FIRST_TRANSFER = "awaiting_first_transfer"
    POST_TRANSFER_COOLDOWN = "post_transfer_cooldown"


@dataclass(frozen=True, slots=True)
class CooldownState:
    """Cooldown bookkeeping for one (holder, token_id)."""
    last_transfer_time: Optional[int] = None
    awaiting_first_transfer: bool = False

    @property
    def phase(self) -> CooldownPhase:
        if self.last_transfer_time is None:
            return CooldownPhase.UNSET
        if self.awaiting_first_transfer:
            return CooldownPhase.AWAITING_FIRST_TRANSFER
        return CooldownPhase.POST_TRANSFER_COOLDOWN

    def required_window(self, first: int, regular: int) -> int:
        return first if self.awaiting_first_transfer else regular

    def ready_at(self, first: int, regular: int) -> Optional[int]:
        """Earliest time an outgoing transfer passes the cooldown, None if unrestricted."""
        if self.last_transfer_time is None:
            return None
        return self.last_transfer_time + self.required_window(first, regular)


UNSET_COOLDOWN = CooldownState()


@dataclass(frozen=True, slots=True)
class FeeCharged:
    """Emitted for every sale (price > 0) that went through."""
    collection: str
    token_id: int
    seller: str
    buyer: str
    amount: int
    price: int
    fee_bps: int
    fee: int
    timestamp: int


@dataclass(frozen=True, slots=True)
class CheckedIn:
    """Emitted once per (holder, token_id) when the ticket is used."""
    collection: str
    token_id: int
    holder: str
    timestamp: int


Record = Union[FeeCharged, CheckedIn]


def _window_label(seconds: int) -> str:
    if seconds % HOUR == 0:
        return f"{seconds // HOUR}h"
    return f"{seconds}s"


class TransferEnforcer:
    """
    Gatekeeper between holders and a collection's Ledger.

    Installs itself as the transfer rule of every ticket type it registers
    and subscribes to the ledger's commits, so moves submitted to the ledger
    directly are held to the same policy as those routed through here.

    Example:
        enforcer = TransferEnforcer(ledger, PricingEngine(store), owner="organiser")
        enforcer.register_ticket_type(1, "General Admission", caller="organiser")
        enforcer.mint("alice", 1, 2, caller="organiser")
        ledger.advance_time(ledger.current_time + 72 * HOUR)
        decision = enforcer.transfer_with_price("alice", "bob", 1, 1, 110_000)
    """

    def __init__(
        self,
        ledger: Ledger,
        policy: PricingPolicy,
        owner: str,
        verifier: Optional[ProofVerifier] = None,
        first_transfer_cooldown: int = FIRST_TRANSFER_COOLDOWN,
        transfer_cooldown: int = TRANSFER_COOLDOWN,
        verbose: bool = True,
    ):
        """
        Args:
            ledger: The collection's ledger
            policy: Pricing policy consulted for every transfer
            owner: Collection owner (policy swaps, ticket types, minting)
            verifier: Eligibility proof verifier (default: StubProofVerifier)
            first_transfer_cooldown: Window after a mint, in seconds
            transfer_cooldown: Window after any transfer, in seconds
            verbose: Print rejections and records
        """
        if first_transfer_cooldown < 0 or transfer_cooldown < 0:
            raise ValueError("cooldown windows cannot be negative")
        self.ledger = ledger
        self.policy = policy
        self.owner = owner
        self.verifier = verifier or StubProofVerifier()
        self.first_transfer_cooldown = first_transfer_cooldown
        self.transfer_cooldown = transfer_cooldown
        self.verbose = verbose
        self.records: List[Record] = []
        self._cooldowns: Dict[Tuple[str, int], CooldownState] = {}
        self._checked_in: Set[Tuple[str, int]] = set()
        ledger.subscribe(self._on_applied)

    @property
    def collection(self) -> str:
        return self.ledger.name

    def _require_owner(self, caller: str) -> None:
        if caller != self.owner:
            raise AuthorizationError(f"{caller} is not the owner of {self.collection}")

    # ========================================================================
    # ADMINISTRATION
    # ========================================================================

    def set_pricing_policy(self, policy: PricingPolicy, caller: str) -> None:
        """Swap the pricing policy. Owner only."""
        self._require_owner(caller)
        if not isinstance(policy, PricingPolicy):
            raise TypeError(f"{policy!r} does not implement evaluate(ctx)")
        self.policy = policy

    def register_ticket_type(self, token_id: int, name: str = "", uri: str = "",
                             caller: str = "") -> None:
        """Register a ticket type on the ledger, gated by this enforcer. Owner only."""
        self._require_owner(caller)
        self.ledger.register_unit(ticket_type(
            token_id, name, uri, transfer_rule=self.enforce_move,
        ))

    def mint(self, to: str, token_id: int, amount: int, caller: str) -> None:
        """Issue tickets; the recipient enters AWAITING_FIRST_TRANSFER. Owner only."""
        self._require_owner(caller)
        self.ledger.mint(to, token_id, amount, caller=caller)

    # ========================================================================
    # QUERIES
    # ========================================================================

    def cooldown_state(self, holder: str, token_id: int) -> CooldownState:
        return self._cooldowns.get((holder, token_id), UNSET_COOLDOWN)

    def is_checked_in(self, holder: str, token_id: int) -> bool:
        return (holder, token_id) in self._checked_in

    def check_cooldown(self, holder: str, token_id: int, now: int) -> Decision:
        """Allow if the holder's cooldown window for this ticket type has elapsed."""
        state = self.cooldown_state(holder, token_id)
        ready_at = state.ready_at(self.first_transfer_cooldown, self.transfer_cooldown)
        if ready_at is not None and now < ready_at:
            window = state.required_window(self.first_transfer_cooldown, self.transfer_cooldown)
            return Decision.reject(f"cooldown {_window_label(window)}")
        return Decision.allow(0)

    def authorize(
        self,
        sender: str,
        recipient: str,
        token_id: int,
        amount: int,
        price: int = 0,
        region_proof: bytes = b"",
        age_proof: bytes = b"",
        now: Optional[int] = None,
    ) -> Decision:
        """
        Run cooldown, proof and pricing checks without moving anything.

        Args:
            now: Evaluation time (default: the ledger's current time)

        Returns:
            The Decision the transfer would receive
        """
        if now is None:
            now = self.ledger.current_time
        decision = self.check_cooldown(sender, token_id, now)
        if not decision.allowed:
            return decision
        if region_proof and not self.verifier.verify(region_proof, ClaimKind.REGION):
            return Decision.reject("invalid region proof")
        if age_proof and not self.verifier.verify(age_proof, ClaimKind.AGE):
            return Decision.reject("invalid age proof")
        ctx = TransferContext(
            collection=self.collection,
            sender=sender,
            recipient=recipient,
            token_id=token_id,
            amount=amount,
            total_price=price,
            timestamp=now,
            region_proof=region_proof,
            age_proof=age_proof,
        )
        return self.policy.evaluate(ctx)

    # ========================================================================
    # LEDGER HOOKS
    # ========================================================================

    def enforce_move(self, view: LedgerView, move: Move) -> None:
        """
        Transfer rule installed on every ticket type of this collection.

        Mints pass through; every other move must be authorized.

        Raises:
            PolicyViolation: If the move breaks policy
        """
        if move.source == SYSTEM_WALLET:
            return
        metadata = move.metadata or {}
        decision = self.authorize(
            move.source, move.dest, move.token_id, move.quantity,
            price=move.price,
            region_proof=metadata.get(META_REGION_PROOF, b""),
            age_proof=metadata.get(META_AGE_PROOF, b""),
            now=view.current_time,
        )
        if not decision.allowed:
            raise PolicyViolation(decision.reason, decision)

    def _on_applied(self, tx: Transaction) -> None:
        """Commit cooldown state and emit fee records for a committed transaction."""
        now = tx.execution_time
        for move in tx.moves:
            unit = self.ledger.units.get(move.token_id)
            if unit is None or unit.transfer_rule != self.enforce_move:
                continue
            if move.source == SYSTEM_WALLET:
                self._cooldowns[(move.dest, move.token_id)] = CooldownState(now, True)
                continue
            self._cooldowns[(move.source, move.token_id)] = CooldownState(now, False)
            self._cooldowns[(move.dest, move.token_id)] = CooldownState(now, False)
            if move.price > 0:
                self._record_fee(move, now)

    def _record_fee(self, move: Move, now: int) -> None:
        # Same inputs as the transfer rule saw, so the same fee.
        ctx = TransferContext(
            collection=self.collection,
            sender=move.source,
            recipient=move.dest,
            token_id=move.token_id,
            amount=move.quantity,
            total_price=move.price,
            timestamp=now,
        )
        fee_bps = self.policy.evaluate(ctx).fee_bps
        record = FeeCharged(
            collection=self.collection,
            token_id=move.token_id,
            seller=move.source,
            buyer=move.dest,
            amount=move.quantity,
            price=move.price,
            fee_bps=fee_bps,
            fee=fee_amount(move.price, fee_bps),
            timestamp=now,
        )
        self.records.append(record)
        if self.verbose:
            print(f"💰 FeeCharged: #{move.token_id} {move.source}→{move.dest} "
                  f"price={move.price} fee={record.fee} ({fee_bps} bps)")

    # ========================================================================
    # TRANSFERS
    # ========================================================================

    def _require_holder_sender(self, sender: str) -> None:
        if sender == SYSTEM_WALLET:
            raise AuthorizationError(f"{SYSTEM_WALLET} cannot send tickets; use mint")

    def _reject(self, decision: Decision) -> None:
        if self.verbose:
            print(f"✗ REJECTED: {decision.reason}")
        raise PolicyViolation(decision.reason, decision)

    def transfer_with_price(
        self,
        sender: str,
        recipient: str,
        token_id: int,
        amount: int,
        price: int,
        region_proof: bytes = b"",
        age_proof: bytes = b"",
    ) -> Decision:
        """
        Sell (or give, when price is 0) tickets of one type.

        Returns:
            The allowing Decision, with the fee applied

        Raises:
            AuthorizationError: If sender is the system wallet (use mint)
            PolicyViolation: cooldown, face value, event start, cap or proof failure
            LedgerError: insufficient tickets or unregistered wallet/ticket type
        """
        self._require_holder_sender(sender)
        if amount <= 0:
            raise ValueError(f"amount must be positive, got {amount}")
        if price < 0:
            raise ValueError(f"price cannot be negative, got {price}")
        decision = self.authorize(sender, recipient, token_id, amount, price,
                                  region_proof, age_proof)
        if not decision.allowed:
            self._reject(decision)

        metadata = {META_PRICE: price}
        if region_proof:
            metadata[META_REGION_PROOF] = region_proof
        if age_proof:
            metadata[META_AGE_PROOF] = age_proof
        event = "RESALE" if price > 0 else "GIFT"
        pending = build_transaction(
            self.ledger,
            [Move(amount, token_id, sender, recipient, f"{event.lower()}:{token_id}", metadata)],
            origin=TransactionOrigin(OriginType.ENFORCER, self.collection, event),
        )
        self.ledger.execute(pending, raise_on_reject=True)
        return decision

    def transfer(self, sender: str, recipient: str, token_id: int, amount: int) -> Decision:
        """Gift tickets (price 0); only the cooldown can stop it."""
        return self.transfer_with_price(sender, recipient, token_id, amount, 0)

    def batch_transfer(
        self,
        sender: str,
        recipient: str,
        token_ids: Sequence[int],
        amounts: Sequence[int],
    ) -> None:
        """
        Gift several ticket types in one atomic transaction.

        Batches never carry a price; sell each ticket type with its own
        transfer_with_price call.

        Raises:
            AuthorizationError: If sender is the system wallet (use mint)
            ValueError: If token_ids and amounts differ in length or are empty
            PolicyViolation: If any ticket type is still cooling down
        """
        self._require_holder_sender(sender)
        if len(token_ids) != len(amounts):
            raise ValueError("token_ids and amounts must have the same length")
        if not token_ids:
            raise ValueError("batch must contain at least one ticket type")
        for token_id, amount in zip(token_ids, amounts):
            decision = self.authorize(sender, recipient, token_id, amount)
            if not decision.allowed:
                self._reject(decision)
        moves = [
            Move(amount, token_id, sender, recipient, f"gift:{token_id}", {META_PRICE: 0})
            for token_id, amount in zip(token_ids, amounts)
        ]
        pending = build_transaction(
            self.ledger, moves,
            origin=TransactionOrigin(OriginType.ENFORCER, self.collection, "BATCH_GIFT"),
        )
        self.ledger.execute(pending, raise_on_reject=True)

    # ========================================================================
    # CHECK-IN
    # ========================================================================

    def check_in(self, holder: str, token_id: int) -> CheckedIn:
        """
        Mark a holder's ticket type as used. Irreversible, at most once.

        Raises:
            AuthorizationError: If the holder has no tickets of this type or
                                already checked in
        """
        if self.ledger.balance_of(holder, token_id) <= 0:
            raise AuthorizationError(f"{holder} holds no #{token_id} tickets")
        if (holder, token_id) in self._checked_in:
            raise AuthorizationError(f"{holder} already checked in #{token_id}")
        self._checked_in.add((holder, token_id))
        record = CheckedIn(self.collection, token_id, holder, self.ledger.current_time)
        self.records.append(record)
        if self.verbose:
            print(f"🎟  CheckedIn: {holder} #{token_id}")
        return record

    def fee_records(self) -> List[FeeCharged]:
        return [r for r in self.records if isinstance(r, FeeCharged)]

    def __repr__(self):
        return f"TransferEnforcer({self.collection}, policy={self.policy!r})"

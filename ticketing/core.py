"""
Core types and pure functions for the ticket resale system.

This module provides the foundational data structures and protocols:
1. Protocols: LedgerView for read-only ledger access
2. Immutable data structures: Move, PendingTransaction, Transaction, TicketType
3. Exceptions: TicketingError and the domain-specific error types
4. Constants: wallets, time units, basis points and cooldown windows

All functions in this module are pure and operate on read-only views.
No function can mutate ledger or policy state directly.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import (
    Dict, List, Set, Optional, Callable, Any, Protocol,
    Tuple, FrozenSet, runtime_checkable,
)


# ============================================================================
# CONSTANTS
# ============================================================================

# Reserved wallet for issuance. Moves out of it are mints.
# The system wallet is exempt from balance validation and from cooldowns.
SYSTEM_WALLET = "system"

# Time is integer Unix seconds throughout.
HOUR = 3600
DAY = 24 * HOUR

# 1 bp = 1/10000. Fees, caps and markups are all expressed in bps.
BPS_DENOMINATOR = 10_000

# Holding periods before a ticket may move onward.
FIRST_TRANSFER_COOLDOWN = 72 * HOUR
TRANSFER_COOLDOWN = 24 * HOUR

# Move.metadata keys used by priced transfers.
META_PRICE = "price"
META_REGION_PROOF = "region_proof"
META_AGE_PROOF = "age_proof"


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Mapping from wallet ID to quantity held by that wallet for a ticket type.
Positions = Dict[str, int]

# Mapping from token id to quantity held in a single wallet.
BalanceMap = Dict[int, int]


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class LedgerView(Protocol):
    """
    Read-only interface to ledger state.

    Transfer rules and the enforcer's checks receive a LedgerView so they
    can query balances and the logical clock without the ability to move
    tickets. The Ledger class implements this protocol but also provides
    mutation methods. For testing, FakeView provides a truly immutable
    implementation.
    """

    @property
    def current_time(self) -> int:
        """Return the current logical time of the ledger (Unix seconds)."""
        ...

    def get_balance(self, wallet_id: str, token_id: int) -> int:
        """
        Return the number of tickets of a type held by a wallet.

        Returns 0 if the wallet holds none.
        """
        ...

    def get_positions(self, token_id: int) -> Positions:
        """Return all non-zero holdings of a ticket type across all wallets."""
        ...

    def list_wallets(self) -> Set[str]:
        """Return the set of all registered wallet IDs."""
        ...

    def get_unit(self, token_id: int) -> 'TicketType':
        """Return the TicketType registered under a token id."""
        ...


# ============================================================================
# ENUMS
# ============================================================================

class ExecuteResult(Enum):
    """
    Outcome of a transaction execution attempt.

    APPLIED: Transaction was validated and applied to the ledger.
    REJECTED: Transaction failed validation due to insufficient tickets,
              balance constraints, or a transfer rule veto.
    """
    APPLIED = "applied"
    REJECTED = "rejected"


class OriginType(Enum):
    """Classification of where a transaction originated."""
    USER_ACTION = "user_action"           # Holder-initiated transfer
    ENFORCER = "enforcer"                 # Routed through the TransferEnforcer
    SYSTEM = "system"                     # Issuance (mint)


# ============================================================================
# EXCEPTIONS
# ============================================================================

class TicketingError(Exception):
    """Base exception for all ticketing errors."""
    pass


class ValidationError(TicketingError, ValueError):
    """Raised when configuration (policy parameters, face values) is invalid."""
    pass


class AuthorizationError(TicketingError):
    """Raised when a caller is not allowed to perform an operation."""
    pass


class LedgerError(TicketingError):
    """Base exception for ledger errors."""
    pass


class InsufficientFunds(LedgerError):
    """Raised when a move would take a wallet's ticket balance below zero."""
    pass


class BalanceConstraintViolation(LedgerError):
    """Raised when a move would push a wallet above a ticket type's max balance."""
    pass


class TransferRuleViolation(LedgerError):
    """Raised when a move is vetoed by the ticket type's transfer rule."""
    pass


class UnauthorizedIssuance(LedgerError):
    """Raised when tickets leave the system wallet outside of a mint."""
    pass


class UnitNotRegistered(LedgerError):
    """Raised when a token id has not been registered with the ledger."""
    pass


class WalletNotRegistered(LedgerError):
    """Raised when a wallet has not been registered with the ledger."""
    pass


class PolicyViolation(TransferRuleViolation):
    """
    Raised when a transfer breaks resale policy.

    Covers cooldowns, unset face values, started events, price caps and
    invalid eligibility proofs. The rejecting Decision is attached so the
    caller can inspect the reason without parsing the message.
    """

    def __init__(self, reason: str, decision: Any = None):
        super().__init__(reason)
        self.reason = reason
        self.decision = decision


# ============================================================================
# TRANSACTION ORIGIN
# ============================================================================

@dataclass(frozen=True, slots=True)
class TransactionOrigin:
    """
    Immutable record of a transaction's origin for audit purposes.

    Attributes:
        origin_type: Classification of the origin source
        source_id: Identifier of the specific source (wallet, collection, ...)
        event_type: Specific event within the source (e.g., "MINT", "RESALE")
    """
    origin_type: OriginType
    source_id: str
    event_type: Optional[str] = None

    def __repr__(self) -> str:
        parts = [f"{self.origin_type.value}:{self.source_id}"]
        if self.event_type:
            parts.append(f"event={self.event_type}")
        return f"Origin({', '.join(parts)})"


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Move:
    """
    A single transfer of tickets between two wallets.

    Attributes:
        quantity: Number of tickets to move (positive int).
        token_id: The ticket type being moved.
        source: The wallet ID from which tickets are debited.
        dest: The wallet ID to which tickets are credited.
        contract_id: Identifier of the operation generating this move.
        metadata: Optional per-move data. Priced transfers put the sale
                  price and eligibility proofs here so the transfer rule
                  sees them without any side channel.

    This class is immutable (frozen=True) and memory-optimized (slots=True).
    All fields are validated in __post_init__.
    """
    quantity: int
    token_id: int
    source: str
    dest: str
    contract_id: str
    metadata: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if not self.source or not self.source.strip():
            raise ValueError("Move source cannot be empty")
        if not self.dest or not self.dest.strip():
            raise ValueError("Move dest cannot be empty")
        if not self.contract_id or not self.contract_id.strip():
            raise ValueError("Move contract_id cannot be empty")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise ValueError(f"Move quantity must be int, got {type(self.quantity)}")
        if isinstance(self.token_id, bool) or not isinstance(self.token_id, int):
            raise ValueError(f"Move token_id must be int, got {type(self.token_id)}")
        if self.quantity <= 0:
            raise ValueError(f"Move quantity must be positive, got {self.quantity}")
        if self.source == self.dest:
            raise ValueError("Source and dest must be different")

    @property
    def price(self) -> int:
        """Total sale price carried by this move (0 for gifts and mints)."""
        if not self.metadata:
            return 0
        return self.metadata.get(META_PRICE, 0)

    def __repr__(self) -> str:
        price = f" @ {self.price}" if self.price else ""
        return f"Move({self.quantity} #{self.token_id}: {self.source}→{self.dest}{price})"


@dataclass(frozen=True, slots=True)
class PendingTransaction:
    """
    A transaction specification before execution - represents INTENT.

    Attributes:
        moves: Tuple of ticket transfers between wallets
        origin: Who/what created this transaction and why
        timestamp: Ledger time at which this pending transaction was built
    """
    moves: Tuple[Move, ...]
    origin: TransactionOrigin
    timestamp: int

    def is_empty(self) -> bool:
        """Return True if this pending transaction has no moves."""
        return not self.moves

    def __repr__(self) -> str:
        return f"PendingTransaction({len(self.moves)} moves, {self.origin})"


def build_transaction(
    view: LedgerView,
    moves: List[Move],
    origin: Optional[TransactionOrigin] = None,
) -> PendingTransaction:
    """
    Build a PendingTransaction from moves.

    This is the standard way to create transactions.

    Args:
        view: Read-only ledger view (provides current_time)
        moves: List of moves to include in the transaction
        origin: Transaction origin (defaults to USER_ACTION origin)

    Returns:
        A PendingTransaction ready for execution

    Example:
        tx = build_transaction(ledger, [Move(2, 1, "alice", "bob", "gift")])
        ledger.execute(tx)
    """
    if origin is None:
        origin = TransactionOrigin(
            origin_type=OriginType.USER_ACTION,
            source_id="user",
        )
    return PendingTransaction(
        moves=tuple(moves),
        origin=origin,
        timestamp=view.current_time,
    )


@dataclass(frozen=True, slots=True)
class Transaction:
    """
    An executed, immutable record of ticket movements - represents FACT.

    Attributes:
        moves: Tuple of ticket transfers between wallets
        origin: Who/what created this transaction and why
        timestamp: When the PendingTransaction was built
        exec_id: Unique execution identifier (ledger + sequence + time)
        ledger_name: Name of the ledger that executed this
        execution_time: When this was executed and logged
        sequence_number: Monotonic sequence within the ledger (for ordering)
        contract_ids: Set of contract IDs from moves (auto-populated)
    """
    moves: Tuple[Move, ...]
    origin: TransactionOrigin
    timestamp: int
    exec_id: str
    ledger_name: str
    execution_time: int
    sequence_number: int
    contract_ids: Optional[FrozenSet[str]] = None

    def __post_init__(self):
        if not self.moves:
            raise ValueError("Transaction must have moves")
        if self.contract_ids is None:
            object.__setattr__(
                self, 'contract_ids',
                frozenset(m.contract_id for m in self.moves)
            )

    def __repr__(self) -> str:
        w = 72  # Inner content width
        bar = "─" * w

        def pad(text: str) -> str:
            """Pad or truncate text to exactly w characters."""
            if len(text) > w:
                return text[:w-3] + "..."
            return text + " " * (w - len(text))

        lines = [
            "",
            f"┌{bar}┐",
            f"│{pad(' Transaction: ' + self.exec_id)}│",
            f"├{bar}┤",
            f"│{pad('   timestamp      : ' + str(self.timestamp))}│",
            f"│{pad('   ledger_name    : ' + self.ledger_name)}│",
            f"│{pad('   sequence       : ' + str(self.sequence_number))}│",
            f"│{pad('   origin         : ' + str(self.origin))}│",
            f"├{bar}┤",
            f"│{pad(' Moves (' + str(len(self.moves)) + '):')}│",
        ]
        for i, move in enumerate(self.moves):
            lines.append(f"│{pad(f'   [{i}] {move!r}')}│")
        lines.append(f"└{bar}┘")
        return "\n".join(lines)


# Type alias for transfer rule functions.
# Transfer rules validate moves and raise TransferRuleViolation if invalid.
TransferRule = Callable[[LedgerView, Move], None]


@dataclass(frozen=True, slots=True)
class TicketType:
    """
    Definition of a ticket type (one token id) within a collection.

    Attributes:
        token_id: Numeric identifier of the ticket type.
        name: Human-readable name (e.g., "General Admission").
        uri: Metadata URI for the ticket type.
        max_balance: Maximum tickets of this type any wallet may hold.
        transfer_rule: Hook run for every move of this type before the ledger
                       applies anything; raising vetoes the whole transaction.
    """
    token_id: int
    name: str
    uri: str = ""
    max_balance: Optional[int] = None
    transfer_rule: Optional[TransferRule] = None


def ticket_type(
    token_id: int,
    name: str = "",
    uri: str = "",
    max_balance: Optional[int] = None,
    transfer_rule: Optional[TransferRule] = None,
) -> TicketType:
    """
    Create a ticket type definition.

    Args:
        token_id: Non-negative numeric id of the ticket type.
        name: Display name (defaults to "Ticket #<id>").
        uri: Metadata URI.
        max_balance: Optional per-wallet holding limit.
        transfer_rule: Optional hook validating every move.

    Returns:
        A TicketType ready to register with a Ledger.
    """
    if isinstance(token_id, bool) or not isinstance(token_id, int) or token_id < 0:
        raise ValueError(f"token_id must be a non-negative int, got {token_id!r}")
    if max_balance is not None and max_balance <= 0:
        raise ValueError(f"max_balance must be positive, got {max_balance}")
    return TicketType(
        token_id=token_id,
        name=name or f"Ticket #{token_id}",
        uri=uri,
        max_balance=max_balance,
        transfer_rule=transfer_rule,
    )

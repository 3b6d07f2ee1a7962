"""
ledger.py - Stateful Multi-Unit Ticket Ledger

The Ledger class holds ticket balances for one collection. It is the only
module that moves tickets, ensuring controlled and auditable changes.

Key responsibilities:
    - Implements LedgerView protocol for safe read-only access by pure functions
    - Executes transactions atomically (all moves succeed or all fail)
    - Runs each ticket type's transfer_rule before applying anything, and
      notifies subscribed observers after a transaction is committed
    - Tracks logical time (integer Unix seconds)
    - Always validates and always logs - no exceptions
"""

from __future__ import annotations
from collections import defaultdict
from typing import Callable, Dict, List, Set, Optional

from .core import (
    # Types
    Move, Transaction, TicketType,
    PendingTransaction, TransactionOrigin, OriginType,
    ExecuteResult, Positions, BalanceMap,
    build_transaction,
    # Constants
    SYSTEM_WALLET,
    # Exceptions
    AuthorizationError, LedgerError, InsufficientFunds, BalanceConstraintViolation,
    UnauthorizedIssuance, UnitNotRegistered, WalletNotRegistered,
)


# Called with every committed Transaction, in subscription order.
Observer = Callable[[Transaction], None]


class Ledger:
    """
    Multi-unit ticket ledger with full validation and audit trail.

    Implements the LedgerView protocol, allowing the ledger to be passed to
    transfer rules that access only read-only methods.

    Design Principles:
        - Always validates: Every transaction is validated against registration,
          transfer rules, and balance limits before any move is applied.
        - Always logs: Every applied transaction is appended to the log and
          handed to observers; rejected ones leave no trace in state.

    Thread Safety:
        Not thread-safe. Transfers are strictly serialized on one ledger.

    Example:
        ledger = Ledger("concert", owner="organiser")
        ledger.register_unit(ticket_type(1, "General Admission"))
        ledger.register_wallet("alice")
        ledger.mint("alice", 1, 2, caller="organiser")
    """

    def __init__(
        self,
        name: str,
        owner: str,
        initial_time: int = 0,
        verbose: bool = True,
    ):
        """
        Create a ledger.

        Args:
            name: Ledger (collection) identifier
            owner: Wallet allowed to mint
            initial_time: Starting logical time in Unix seconds (default: 0)
            verbose: Enable debug output (default: True)
        """
        if not name or not name.strip():
            raise ValueError("Ledger name cannot be empty")
        self.name = name
        self.owner = owner
        self.balances: Dict[str, Dict[int, int]] = {}
        self.units: Dict[int, TicketType] = {}
        self.registered_wallets: Set[str] = set()
        self.transaction_log: List[Transaction] = []
        self._current_time: int = initial_time
        self.verbose = verbose
        self._observers: List[Observer] = []
        # Monotonic sequence counter for execution ordering
        self._next_sequence: int = 0
        # Inverted index mapping token -> {wallet -> quantity}
        self._positions_by_unit: Dict[int, Dict[str, int]] = defaultdict(dict)

        # Auto-register the system wallet (used for issuance)
        self.registered_wallets.add(SYSTEM_WALLET)
        self.balances[SYSTEM_WALLET] = defaultdict(int)

    # ========================================================================
    # LedgerView PROTOCOL IMPLEMENTATION (read-only methods)
    # ========================================================================

    @property
    def current_time(self) -> int:
        """Current logical time of the ledger."""
        return self._current_time

    def get_balance(self, wallet_id: str, token_id: int) -> int:
        """
        Get the number of tickets of a type held by a wallet.

        Raises:
            WalletNotRegistered: If wallet is not registered
            UnitNotRegistered: If the ticket type is not registered
        """
        if wallet_id not in self.registered_wallets:
            raise WalletNotRegistered(f"Wallet {wallet_id} not registered")
        if token_id not in self.units:
            raise UnitNotRegistered(f"Ticket type {token_id} not registered")
        return self.balances[wallet_id].get(token_id, 0)

    def balance_of(self, holder: str, token_id: int) -> int:
        """Balance lookup that treats unknown wallets and ticket types as empty."""
        if holder not in self.registered_wallets or token_id not in self.units:
            return 0
        return self.balances[holder].get(token_id, 0)

    def get_positions(self, token_id: int) -> Positions:
        """Get all non-zero holdings of a ticket type across all wallets."""
        return dict(self._positions_by_unit.get(token_id, {}))

    def list_wallets(self) -> Set[str]:
        """List all registered wallet IDs."""
        return self.registered_wallets.copy()

    def list_units(self) -> List[int]:
        """List all registered token ids."""
        return sorted(self.units.keys())

    def get_unit(self, token_id: int) -> TicketType:
        """Return the TicketType for a given token id."""
        if token_id not in self.units:
            raise UnitNotRegistered(f"Ticket type {token_id} not registered")
        return self.units[token_id]

    def get_wallet_balances(self, wallet_id: str) -> BalanceMap:
        """Get all balances for a wallet."""
        if wallet_id not in self.registered_wallets:
            raise WalletNotRegistered(f"Wallet {wallet_id} not registered")
        return dict(self.balances[wallet_id])

    def total_supply(self, token_id: int) -> int:
        """
        Total tickets of a type held outside the system wallet.

        Raises:
            UnitNotRegistered: If the ticket type is not registered
        """
        if token_id not in self.units:
            raise UnitNotRegistered(f"Ticket type {token_id} not registered")
        return sum(
            self.balances[w].get(token_id, 0)
            for w in sorted(self.registered_wallets)
            if w != SYSTEM_WALLET
        )

    def is_registered(self, wallet_id: str) -> bool:
        """Check if a wallet is registered."""
        return wallet_id in self.registered_wallets

    # ========================================================================
    # TIME MANAGEMENT
    # ========================================================================

    def advance_time(self, new_time: int) -> None:
        """
        Advance the ledger's logical clock to a new time.

        Time can only move forward, never backward.

        Raises:
            ValueError: If new_time is before the current time
        """
        if new_time < self._current_time:
            raise ValueError(
                f"Cannot move time backwards: {new_time} < {self._current_time}"
            )
        self._current_time = new_time

    # ========================================================================
    # REGISTRATION (Mutating)
    # ========================================================================

    def register_wallet(self, wallet_id: str) -> str:
        """
        Register a new wallet in the ledger.

        Raises:
            ValueError: If wallet is already registered or the id is empty
        """
        if not wallet_id or not wallet_id.strip():
            raise ValueError("Wallet id cannot be empty")
        if wallet_id in self.registered_wallets:
            raise ValueError(f"Wallet {wallet_id} already registered")
        self.registered_wallets.add(wallet_id)
        self.balances[wallet_id] = defaultdict(int)
        return wallet_id

    def register_unit(self, unit: TicketType) -> None:
        """
        Register a new ticket type in the ledger.

        Raises:
            ValueError: If the token id is already registered
        """
        if unit.token_id in self.units:
            raise ValueError(f"Ticket type {unit.token_id} already registered")
        self.units[unit.token_id] = unit
        if self.verbose:
            rule_str = f", rule={unit.transfer_rule.__name__}" if unit.transfer_rule else ""
            print(f"📝 Registered: #{unit.token_id} ({unit.name}) in {self.name}{rule_str}")

    def subscribe(self, observer: Observer) -> None:
        """Register a callback invoked with every committed Transaction."""
        self._observers.append(observer)

    # ========================================================================
    # TRANSACTION EXECUTION (Mutating)
    # ========================================================================

    def _generate_exec_id(self, sequence: int) -> str:
        """
        Generate a unique execution ID.

        Format: exec:{ledger_name}:{sequence:012d}:{timestamp}
        """
        return f"exec:{self.name}:{sequence:012d}:{self._current_time}"

    def execute(
        self,
        pending: PendingTransaction,
        raise_on_reject: bool = False,
    ) -> ExecuteResult:
        """
        Execute a PendingTransaction atomically.

        All moves succeed together or all fail together. Every move is
        checked (registration, transfer rule, balance limits) before the
        first one is applied, so a rejection leaves no partial effects.

        Args:
            pending: PendingTransaction to execute
            raise_on_reject: Re-raise the LedgerError that caused a rejection
                             instead of returning REJECTED

        Returns:
            ExecuteResult.APPLIED if successful
            ExecuteResult.REJECTED if validation failed
        """
        if pending.is_empty():
            return ExecuteResult.APPLIED

        try:
            self._validate_pending(pending)
        except LedgerError as e:
            if self.verbose:
                print(f"✗ REJECTED: {e}")
            if raise_on_reject:
                raise
            return ExecuteResult.REJECTED

        sequence = self._next_sequence
        self._next_sequence += 1

        tx = Transaction(
            moves=pending.moves,
            origin=pending.origin,
            timestamp=pending.timestamp,
            exec_id=self._generate_exec_id(sequence),
            ledger_name=self.name,
            execution_time=self._current_time,
            sequence_number=sequence,
        )

        self._execute_moves(tx.moves)

        # Log transaction (always - audit trail is mandatory)
        self.transaction_log.append(tx)

        if self.verbose:
            print(f"{tx!r}\n✓ APPLIED")

        for observer in self._observers:
            observer(tx)
        return ExecuteResult.APPLIED

    def move(
        self,
        source: str,
        dest: str,
        token_id: int,
        amount: int,
        metadata: Optional[dict] = None,
        origin: Optional[TransactionOrigin] = None,
    ) -> ExecuteResult:
        """
        Move tickets between two wallets as a single atomic transaction.

        Raises the underlying LedgerError on rejection.
        """
        pending = build_transaction(
            self,
            [Move(amount, token_id, source, dest, f"move:{source}:{token_id}", metadata)],
            origin=origin,
        )
        return self.execute(pending, raise_on_reject=True)

    def mint(self, to: str, token_id: int, amount: int, caller: str) -> ExecuteResult:
        """
        Issue new tickets from the system wallet. Owner only.

        Raises:
            AuthorizationError: If caller is not the ledger owner
        """
        if caller != self.owner:
            raise AuthorizationError(f"{caller} is not the owner of {self.name}")
        origin = TransactionOrigin(OriginType.SYSTEM, self.name, "MINT")
        pending = build_transaction(
            self,
            [Move(amount, token_id, SYSTEM_WALLET, to, f"mint:{token_id}")],
            origin=origin,
        )
        return self.execute(pending, raise_on_reject=True)

    def _validate_pending(self, pending: PendingTransaction) -> None:
        """
        Validate a pending transaction against all constraints.

        Checks performed:
        1. Timestamp validation (transaction must not be from the future)
        2. Issuance: only SYSTEM-origin transactions (Ledger.mint) draw on SYSTEM_WALLET
        3. Ticket type and wallet registration
        4. Transfer rule enforcement
        5. Balance validation (no negative holdings, max_balance)

        Raises:
            LedgerError subclass describing the first failure
        """
        if pending.timestamp > self._current_time:
            raise LedgerError("future timestamp")

        for move in pending.moves:
            if move.source == SYSTEM_WALLET and pending.origin.origin_type is not OriginType.SYSTEM:
                raise UnauthorizedIssuance(
                    f"#{move.token_id} can only leave {SYSTEM_WALLET} through mint"
                )
            if move.token_id not in self.units:
                raise UnitNotRegistered(f"Ticket type {move.token_id} not registered")
            if not self.is_registered(move.source):
                raise WalletNotRegistered(f"Wallet {move.source} not registered")
            if not self.is_registered(move.dest):
                raise WalletNotRegistered(f"Wallet {move.dest} not registered")

            # Transfer rule check (pass self as LedgerView)
            unit = self.units[move.token_id]
            if unit.transfer_rule:
                unit.transfer_rule(self, move)

        # Net balance changes across all moves of the transaction
        net: Dict[tuple, int] = {}
        for move in pending.moves:
            key_src = (move.source, move.token_id)
            key_dst = (move.dest, move.token_id)
            net[key_src] = net.get(key_src, 0) - move.quantity
            net[key_dst] = net.get(key_dst, 0) + move.quantity

        # SYSTEM_WALLET is exempt from balance validation - it issues tickets
        for (wallet, token_id), delta in net.items():
            if wallet == SYSTEM_WALLET:
                continue
            proposed = self.balances[wallet][token_id] + delta
            unit = self.units[token_id]
            if proposed < 0:
                raise InsufficientFunds(
                    f"{wallet} #{token_id}: holds {self.balances[wallet][token_id]}, needs {-delta}"
                )
            if unit.max_balance is not None and proposed > unit.max_balance:
                raise BalanceConstraintViolation(
                    f"{wallet} #{token_id}: {proposed} > max {unit.max_balance}"
                )

    def _update_position_index(self, wallet_id: str, token_id: int, quantity: int) -> None:
        """Keep the token -> {wallet -> quantity} index in sync; zero holdings are dropped."""
        if quantity != 0:
            self._positions_by_unit[token_id][wallet_id] = quantity
        else:
            self._positions_by_unit[token_id].pop(wallet_id, None)

    def _execute_moves(self, moves) -> None:
        """Apply all moves to wallet balances and update the position index."""
        for move in moves:
            new_src_balance = self.balances[move.source][move.token_id] - move.quantity
            self.balances[move.source][move.token_id] = new_src_balance
            if move.source != SYSTEM_WALLET:
                self._update_position_index(move.source, move.token_id, new_src_balance)
            new_dst_balance = self.balances[move.dest][move.token_id] + move.quantity
            self.balances[move.dest][move.token_id] = new_dst_balance
            if move.dest != SYSTEM_WALLET:
                self._update_position_index(move.dest, move.token_id, new_dst_balance)

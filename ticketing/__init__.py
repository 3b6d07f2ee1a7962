"""
ticketing - Ticket Resale Enforcement

Decides, per attempted ticket transfer, whether it may proceed and which
fee applies: price caps over face value, time-to-event fee tiers, markup
surcharges, and per-holder cooldowns.

Usage:
    from ticketing import (
        Ledger, PolicyStore, Parameters, PricingEngine, TransferEnforcer, DAY,
    )

    ledger = Ledger("concert", owner="organiser", initial_time=now, verbose=False)
    store = PolicyStore("organiser", clock=lambda: ledger.current_time)
    enforcer = TransferEnforcer(ledger, PricingEngine(store), owner="organiser")

    store.set_parameters("concert", Parameters(event_timestamp=now + 90 * DAY, ...),
                         caller="organiser")
    store.set_face_value("concert", 1, 100_000, caller="organiser")

    enforcer.register_ticket_type(1, "General Admission", caller="organiser")
    ledger.register_wallet("alice")
    ledger.register_wallet("bob")
    enforcer.mint("alice", 1, 2, caller="organiser")

    # 72h later
    decision = enforcer.transfer_with_price("alice", "bob", 1, 1, price=110_000)
"""

# Core types
from .core import (
    LedgerView,
    Move,
    Transaction,
    PendingTransaction,
    TransactionOrigin,
    OriginType,
    ExecuteResult,
    TicketType,
    TransferRule,
    build_transaction,
    ticket_type,
    TicketingError,
    ValidationError,
    AuthorizationError,
    LedgerError,
    InsufficientFunds,
    BalanceConstraintViolation,
    TransferRuleViolation,
    UnauthorizedIssuance,
    UnitNotRegistered,
    WalletNotRegistered,
    PolicyViolation,
    SYSTEM_WALLET,
    HOUR,
    DAY,
    BPS_DENOMINATOR,
    FIRST_TRANSFER_COOLDOWN,
    TRANSFER_COOLDOWN,
)

# Ledger
from .ledger import Ledger

# Policy
from .policy import (
    Parameters,
    PolicyStore,
    UNCONFIGURED,
    validate_parameters,
)

# Pricing
from .pricing import (
    TransferContext,
    Decision,
    PricingPolicy,
    PricingEngine,
    AllowAllPolicy,
    evaluate_transfer,
    fee_amount,
    REASON_FACE_VALUE_NOT_SET,
    REASON_EVENT_STARTED,
    REASON_PRICE_EXCEEDS_CAP,
)

# Proofs
from .proofs import (
    ClaimKind,
    ProofVerifier,
    StubProofVerifier,
)

# Enforcement
from .enforcer import (
    TransferEnforcer,
    CooldownState,
    CooldownPhase,
    FeeCharged,
    CheckedIn,
)

# Factory
from .factory import (
    TicketFactory,
    TicketCollection,
)

__all__ = [
    # Core
    'LedgerView', 'Move', 'Transaction', 'PendingTransaction',
    'TransactionOrigin', 'OriginType', 'ExecuteResult',
    'TicketType', 'TransferRule', 'build_transaction', 'ticket_type',
    'TicketingError', 'ValidationError', 'AuthorizationError',
    'LedgerError', 'InsufficientFunds', 'BalanceConstraintViolation',
    'TransferRuleViolation', 'UnauthorizedIssuance', 'UnitNotRegistered', 'WalletNotRegistered',
    'PolicyViolation',
    'SYSTEM_WALLET', 'HOUR', 'DAY', 'BPS_DENOMINATOR',
    'FIRST_TRANSFER_COOLDOWN', 'TRANSFER_COOLDOWN',
    # Ledger
    'Ledger',
    # Policy
    'Parameters', 'PolicyStore', 'UNCONFIGURED', 'validate_parameters',
    # Pricing
    'TransferContext', 'Decision', 'PricingPolicy', 'PricingEngine',
    'AllowAllPolicy', 'evaluate_transfer', 'fee_amount',
    'REASON_FACE_VALUE_NOT_SET', 'REASON_EVENT_STARTED', 'REASON_PRICE_EXCEEDS_CAP',
    # Proofs
    'ClaimKind', 'ProofVerifier', 'StubProofVerifier',
    # Enforcement
    'TransferEnforcer', 'CooldownState', 'CooldownPhase', 'FeeCharged', 'CheckedIn',
    # Factory
    'TicketFactory', 'TicketCollection',
]

__version__ = '0.1.0'

"""
factory.py - Ticket collection factory

Creates collections (one Ledger + TransferEnforcer pair each) that share a
single PolicyStore through one PricingEngine, and keeps them by name. Each
collection's ledger clock is registered with the store, so its event
timestamps are validated against the time its transfers run at.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional

from .core import ValidationError
from .enforcer import TransferEnforcer
from .ledger import Ledger
from .policy import PolicyStore
from .pricing import PricingEngine
from .proofs import ProofVerifier


@dataclass(frozen=True)
class TicketCollection:
    """A named ticket collection and the objects that govern it."""
    name: str
    uri: str
    owner: str
    ledger: Ledger
    enforcer: TransferEnforcer


class TicketFactory:
    """
    Registry of ticket collections priced by one shared PolicyStore.

    Example:
        factory = TicketFactory(store, verbose=False)
        concert = factory.create_ticket("concert", "ipfs://concert/{id}.json", "organiser")
        concert.enforcer.register_ticket_type(1, "GA", caller="organiser")
    """

    def __init__(
        self,
        store: PolicyStore,
        verifier: Optional[ProofVerifier] = None,
        verbose: bool = True,
    ):
        self.store = store
        self.engine = PricingEngine(store)
        self.verifier = verifier
        self.verbose = verbose
        self._collections: Dict[str, TicketCollection] = {}

    def create_ticket(
        self,
        name: str,
        uri: str,
        owner: str,
        start_time: int = 0,
    ) -> TicketCollection:
        """
        Create and register a new collection.

        Args:
            name: Unique collection name, also the PolicyStore key
            uri: Metadata URI template for the collection's ticket types
            owner: Wallet that mints and administers the collection
            start_time: Initial logical time of the collection's ledger

        Raises:
            ValidationError: If the name is empty, already taken, or already
                             bound to a clock in the store
        """
        if not name or not name.strip():
            raise ValidationError("collection name must not be empty")
        if name in self._collections:
            raise ValidationError(f"collection {name} already exists")
        ledger = Ledger(name, owner=owner, initial_time=start_time, verbose=self.verbose)
        self.store.register_clock(name, lambda: ledger.current_time)
        ledger.register_wallet(owner)
        enforcer = TransferEnforcer(
            ledger, self.engine, owner=owner,
            verifier=self.verifier, verbose=self.verbose,
        )
        collection = TicketCollection(name, uri, owner, ledger, enforcer)
        self._collections[name] = collection
        if self.verbose:
            print(f"🏭 Created collection: {name} ({uri}) owned by {owner}")
        return collection

    def get(self, name: str) -> TicketCollection:
        if name not in self._collections:
            raise KeyError(f"Unknown collection {name}")
        return self._collections[name]

    def collections(self) -> List[str]:
        return sorted(self._collections)

    def __repr__(self):
        return f"TicketFactory({len(self._collections)} collections)"

"""
fake_view.py - Test Helper for LedgerView

Provides a minimal LedgerView implementation for testing transfer rules
without requiring a full Ledger instance.
"""

from __future__ import annotations
from typing import Dict, Set, Optional, Any

from ticketing import ticket_type


Positions = Dict[str, int]


class FakeView:
    """
    Minimal LedgerView implementation for testing transfer rules.

    Example:
        view = FakeView(
            balances={'alice': {1: 2}},
            time=1_700_000_000,
        )

        positions = view.get_positions(1)
        # Returns: {'alice': 2}
    """

    def __init__(
        self,
        balances: Dict[str, Dict[int, int]],
        time: int = 0,
        units: Optional[Dict[int, Any]] = None
    ):
        self._balances = balances
        self._time = time
        self._units = units or {}

    @property
    def current_time(self) -> int:
        return self._time

    def get_balance(self, wallet: str, token_id: int) -> int:
        return self._balances.get(wallet, {}).get(token_id, 0)

    def get_positions(self, token_id: int) -> Positions:
        return {
            w: b[token_id]
            for w, b in self._balances.items()
            if token_id in b and b[token_id] != 0
        }

    def list_wallets(self) -> Set[str]:
        return set(self._balances.keys())

    def get_unit(self, token_id: int) -> Any:
        """Return the registered unit or an ungated ticket type."""
        if token_id in self._units:
            return self._units[token_id]
        return ticket_type(token_id)

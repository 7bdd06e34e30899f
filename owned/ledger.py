"""
External ledgers consumed by the ownership guard.

``TokenLedger`` and ``NativeLedger`` are the contracts the guard relies on.
The in-memory implementations back the tests, the CLI and the API.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from .log import get_logger
from .models import Transfer

logger = get_logger(__name__)


class LedgerError(Exception):
    """A ledger could not complete a call. The call had no effect."""


class TokenLedger(ABC):
    """A fungible-token ledger."""

    ledger_id: str

    @abstractmethod
    def balance_of(self, account: str) -> int:
        pass

    @abstractmethod
    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """Move ``amount`` from ``sender`` to ``recipient``. False if refused."""
        pass


class NativeLedger(ABC):
    """The host's native-currency ledger."""

    @abstractmethod
    def balance_of(self, account: str) -> int:
        pass

    @abstractmethod
    def send(self, sender: str, recipient: str, amount: int) -> bool:
        pass


class _Balances:
    def __init__(self, balances: Optional[Dict[str, int]] = None):
        self.balances: Dict[str, int] = {k: int(v) for k, v in (balances or {}).items()}

    def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    def credit(self, account: str, amount: int) -> int:
        if amount < 0:
            raise ValueError("credit amount must be non-negative")
        self.balances[account] = self.balance_of(account) + amount
        return self.balances[account]

    def _move(self, sender: str, recipient: str, amount: int) -> bool:
        if amount < 0 or self.balance_of(sender) < amount:
            logger.debug("refused move of %s from %s to %s", amount, sender, recipient)
            return False
        # single step: debit and credit together
        self.balances[sender] = self.balance_of(sender) - amount
        self.balances[recipient] = self.balance_of(recipient) + amount
        return True


class InMemoryTokenLedger(_Balances, TokenLedger):
    """Dict-backed token ledger that records a Transfer event per movement."""

    def __init__(self, ledger_id: str, balances: Optional[Dict[str, int]] = None):
        super().__init__(balances)
        self.ledger_id = ledger_id
        self.events: List[Transfer] = []

    def mint(self, account: str, amount: int) -> int:
        return self.credit(account, amount)

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        if not self._move(sender, recipient, amount):
            return False
        self.events.append(Transfer(self.ledger_id, sender, recipient, amount))
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {"ledger_id": self.ledger_id, "balances": dict(self.balances)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InMemoryTokenLedger":
        return cls(data["ledger_id"], data.get("balances"))


class InMemoryNativeLedger(_Balances, NativeLedger):
    """Dict-backed native-currency ledger. Invocations cost nothing."""

    def send(self, sender: str, recipient: str, amount: int) -> bool:
        return self._move(sender, recipient, amount)

    def to_dict(self) -> Dict[str, Any]:
        return {"balances": dict(self.balances)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InMemoryNativeLedger":
        return cls(data.get("balances"))

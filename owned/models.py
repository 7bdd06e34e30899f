"""
Owned Data Models

Result type, error codes and events shared by the guard and the ledgers.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from enum import Enum


class GuardError(str, Enum):
    NOT_CURRENT_OWNER = "not_current_owner"
    NOT_PENDING_OWNER = "not_pending_owner"
    INVALID_TARGET = "invalid_target"
    NO_PENDING_TRANSFER = "no_pending_transfer"
    LEDGER_FAILURE = "ledger_failure"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class OwnershipTransferred:
    """Emitted once per successful claim or direct transfer."""
    previous_owner: str
    new_owner: str
    timestamp: str = field(default_factory=_now, compare=False)

    name = "OwnershipTransferred"

    def to_dict(self) -> dict:
        return {
            "event": self.name,
            "previous_owner": self.previous_owner,
            "new_owner": self.new_owner,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class Transfer:
    """A token movement recorded by a token ledger."""
    ledger_id: str
    sender: str
    recipient: str
    value: int
    timestamp: str = field(default_factory=_now, compare=False)

    name = "Transfer"

    def to_dict(self) -> dict:
        return {
            "event": self.name,
            "ledger_id": self.ledger_id,
            "from": self.sender,
            "to": self.recipient,
            "value": self.value,
            "timestamp": self.timestamp,
        }


@dataclass
class GuardResult:
    """Outcome of a guard operation. Falsy when the operation was refused."""
    operation: str
    success: bool
    caller: Optional[str] = None
    error: Optional[GuardError] = None
    amount: int = 0
    events: List[OwnershipTransferred] = field(default_factory=list)
    details: Dict[str, Any] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return self.success

    def to_dict(self) -> dict:
        return {
            "operation": self.operation,
            "success": self.success,
            "caller": self.caller,
            "error": self.error.value if self.error else None,
            "amount": self.amount,
            "events": [e.to_dict() for e in self.events],
            "details": self.details,
        }

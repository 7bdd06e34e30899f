"""
JSON state file for a guard and its in-memory ledgers.

Lets the CLI and the API operate on the same guarded entity across
invocations.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .config import get_state_path
from .guard import OwnershipGuard
from .identity import is_null
from .ledger import InMemoryNativeLedger, InMemoryTokenLedger


class StoreError(Exception):
    pass


@dataclass
class Session:
    guard: OwnershipGuard
    native: InMemoryNativeLedger
    tokens: Dict[str, InMemoryTokenLedger] = field(default_factory=dict)

    def token(self, ledger_id: str) -> InMemoryTokenLedger:
        """Return the token ledger, creating an empty one on first use."""
        if ledger_id not in self.tokens:
            self.tokens[ledger_id] = InMemoryTokenLedger(ledger_id)
        return self.tokens[ledger_id]


class StateStore:
    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path or get_state_path())

    def exists(self) -> bool:
        return self.path.exists()

    def init(self, owner: str, address: Optional[str] = None) -> Session:
        if self.exists():
            raise StoreError(f"guard already initialised at {self.path}")
        if is_null(owner):
            raise StoreError("owner must not be the null identity")
        native = InMemoryNativeLedger()
        session = Session(OwnershipGuard(owner, address=address, native_ledger=native), native)
        self.save(session)
        return session

    def load(self, witness: Any = None) -> Session:
        if not self.exists():
            raise StoreError(f"no guard initialised at {self.path}")
        try:
            state = json.loads(self.path.read_text())
            native = InMemoryNativeLedger.from_dict(state.get("native", {}))
            guard = OwnershipGuard.from_snapshot(state["guard"], native_ledger=native, witness=witness)
            tokens = {
                ledger_id: InMemoryTokenLedger.from_dict(data)
                for ledger_id, data in state.get("tokens", {}).items()
            }
        except (ValueError, KeyError, TypeError) as exc:
            raise StoreError(f"corrupt state file {self.path}: {exc}") from exc
        return Session(guard, native, tokens)

    def save(self, session: Session) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        state = {
            "guard": session.guard.snapshot(),
            "native": session.native.to_dict(),
            "tokens": {ledger_id: ledger.to_dict() for ledger_id, ledger in session.tokens.items()},
        }
        self.path.write_text(json.dumps(state, indent=2))

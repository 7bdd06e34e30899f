"""
OWNED - single-owner guard for an account-like entity

- Direct and two-phase (propose, then claim) ownership transfer
- Owner-only sweeps of the entity's token and native balances
- Refused operations return a falsy result and leave state untouched
- Hash-chained witness log of every successful action

Components:
- guard.py: OwnershipGuard state machine
- ledger.py: token/native ledger contracts and in-memory ledgers
- models.py: GuardResult, GuardError, events
- witness.py: hash-chained audit log
- store.py: JSON state file for the CLI and API
- api.py: FastAPI server
- cli.py: command line
"""

__version__ = "0.1.0"

# Lazy imports - only import what's needed when used
def __getattr__(name):
    if name == "OwnershipGuard":
        from .guard import OwnershipGuard
        return OwnershipGuard
    elif name in ("GuardResult", "GuardError", "OwnershipTransferred", "Transfer"):
        from . import models
        return getattr(models, name)
    elif name in ("TokenLedger", "NativeLedger", "InMemoryTokenLedger", "InMemoryNativeLedger", "LedgerError"):
        from . import ledger
        return getattr(ledger, name)
    elif name in ("NULL_ADDRESS", "is_null"):
        from . import identity
        return getattr(identity, name)
    elif name == "WitnessChain":
        from .witness import WitnessChain
        return WitnessChain
    elif name in ("StateStore", "StoreError"):
        from . import store
        return getattr(store, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = [
    "__version__",
    # Guard
    "OwnershipGuard",
    # Models
    "GuardResult",
    "GuardError",
    "OwnershipTransferred",
    "Transfer",
    # Ledgers
    "TokenLedger",
    "NativeLedger",
    "InMemoryTokenLedger",
    "InMemoryNativeLedger",
    "LedgerError",
    # Identity
    "NULL_ADDRESS",
    "is_null",
    # Audit & persistence
    "WitnessChain",
    "StateStore",
    "StoreError",
]

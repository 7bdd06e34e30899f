"""
Owned Test Configuration — shared accounts, guard and ledgers.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from owned.guard import OwnershipGuard
from owned.identity import NULL_ADDRESS
from owned.ledger import InMemoryNativeLedger, InMemoryTokenLedger

USERS = {
    "contract_owner": "0x" + "a1" * 20,
    "user1": "0x" + "b2" * 20,
    "user2": "0x" + "c3" * 20,
    "user3": "0x" + "d4" * 20,
    "user4": "0x" + "e5" * 20,
}

GUARD_ADDRESS = "0x" + "0f" * 20
GWEI = 10 ** 9


@pytest.fixture
def users():
    return dict(USERS)


@pytest.fixture
def zero_address():
    return NULL_ADDRESS


@pytest.fixture
def native():
    return InMemoryNativeLedger()


@pytest.fixture
def guard(native):
    return OwnershipGuard(USERS["contract_owner"], address=GUARD_ADDRESS, native_ledger=native)


@pytest.fixture
def token():
    ledger = InMemoryTokenLedger("TKN")
    ledger.mint(USERS["contract_owner"], 1_000_000)
    return ledger


@pytest.fixture
def state_paths(tmp_path, monkeypatch):
    """Isolated state file and witness database."""
    state_path = tmp_path / "owned_state.json"
    db_path = tmp_path / "owned.db"
    monkeypatch.setenv("OWNED_STATE_PATH", str(state_path))
    monkeypatch.setenv("OWNED_DB_PATH", str(db_path))
    monkeypatch.delenv("OWNED_CONFIG", raising=False)
    monkeypatch.delenv("OWNED_AUDIT_ENABLED", raising=False)
    return state_path, db_path

"""
Owned API Tests

Tests for:
- POST /init, GET /ownership
- POST /ownership/{propose,claim,transfer}
- POST /sweep/tokens, POST /sweep/native
- GET /audit
- dry runs report refusals without touching state
"""
import inspect

import pytest
from fastapi.routing import APIRoute
from fastapi.testclient import TestClient

from owned.api import create_app


@pytest.fixture
def client(state_paths):
    state_path, db_path = state_paths
    return TestClient(create_app(state_path, db_path))


@pytest.fixture
def initialised(client):
    resp = client.post("/init", json={"owner": "alice", "address": "0xentity"})
    assert resp.status_code == 201
    return client


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["initialised"] is False


def test_uninitialised_is_404(client):
    assert client.get("/ownership").status_code == 404
    assert client.post("/ownership/claim", json={"caller": "bob"}).status_code == 404


def test_double_init_conflicts(initialised):
    assert initialised.post("/init", json={"owner": "bob"}).status_code == 409


def test_null_owner_rejected(client):
    assert client.post("/init", json={"owner": "0x0"}).status_code == 400


def test_two_phase_transfer(initialised):
    client = initialised
    resp = client.post("/ownership/propose", json={"caller": "bob", "candidate": "bob"})
    assert resp.status_code == 200
    assert resp.json()["success"] is False
    assert resp.json()["error"] == "not_current_owner"

    resp = client.post("/ownership/propose", json={"caller": "alice", "candidate": "bob"})
    assert resp.json()["success"] is True
    assert client.get("/ownership").json()["pending_owner"] == "bob"

    resp = client.post("/ownership/claim", json={"caller": "bob"})
    body = resp.json()
    assert body["success"] is True
    assert body["events"][0]["previous_owner"] == "alice"
    assert body["events"][0]["new_owner"] == "bob"

    state = client.get("/ownership").json()
    assert state == {"address": "0xentity", "contract_owner": "bob", "pending_owner": None}


def test_dry_run_leaves_state(initialised):
    client = initialised
    resp = client.post("/ownership/transfer", json={"caller": "alice", "new_owner": "bob", "dry_run": True})
    assert resp.json()["success"] is True
    assert client.get("/ownership").json()["contract_owner"] == "alice"


def test_sweeps(initialised):
    client = initialised
    client.post("/ledger/credit", json={"account": "0xentity", "amount": 1444, "ledger": "TKN"})
    client.post("/ledger/credit", json={"account": "0xentity", "amount": 10000})

    resp = client.post("/sweep/tokens", json={"caller": "bob", "ledgers": ["TKN"]})
    assert resp.json()["success"] is False
    assert client.get("/balances/0xentity", params={"ledger": "TKN"}).json()["balance"] == 1444

    resp = client.post("/sweep/tokens", json={"caller": "alice", "ledgers": ["TKN"]})
    assert resp.json()["amount"] == 1444
    assert client.get("/balances/alice", params={"ledger": "TKN"}).json()["balance"] == 1444

    resp = client.post("/sweep/native", json={"caller": "alice", "dry_run": True})
    assert resp.json()["amount"] == 10000
    resp = client.post("/sweep/native", json={"caller": "alice"})
    assert resp.json()["amount"] == 10000
    assert client.get("/balances/0xentity").json()["balance"] == 0
    assert client.get("/balances/alice").json()["balance"] == 10000


def test_credit_rejects_negative(initialised):
    resp = initialised.post("/ledger/credit", json={"account": "a", "amount": -1})
    assert resp.status_code == 422


def test_audit_trail(initialised):
    client = initialised
    client.post("/ownership/transfer", json={"caller": "alice", "new_owner": "bob"})
    client.post("/ownership/transfer", json={"caller": "alice", "new_owner": "carol"})  # refused

    entries = client.get("/audit").json()
    assert len(entries) == 1
    assert entries[0]["action"] == "ownership_transferred"
    assert entries[0]["subject"] == "0xentity"
    assert client.get("/audit/verify").json() == {"valid": True}


@pytest.mark.parametrize("path, body, error", [
    ("/ownership/propose", {"caller": "bob", "candidate": "bob"}, "not_current_owner"),
    ("/ownership/propose", {"caller": "alice", "candidate": "0x0"}, "invalid_target"),
    ("/ownership/claim", {"caller": "bob"}, "no_pending_transfer"),
    ("/ownership/transfer", {"caller": "bob", "new_owner": "bob"}, "not_current_owner"),
    ("/ownership/transfer", {"caller": "alice", "new_owner": "0x0"}, "invalid_target"),
])
def test_refused_dry_run_reports_error(initialised, path, body, error):
    client = initialised
    resp = client.post(path, json={**body, "dry_run": True})
    assert resp.status_code == 200
    assert resp.json()["success"] is False
    assert resp.json()["error"] == error
    assert client.get("/ownership").json() == {
        "address": "0xentity", "contract_owner": "alice", "pending_owner": None,
    }


def test_dry_run_claim_by_stranger(initialised):
    client = initialised
    client.post("/ownership/propose", json={"caller": "alice", "candidate": "bob"})

    resp = client.post("/ownership/claim", json={"caller": "carol", "dry_run": True})
    assert resp.json()["success"] is False
    assert resp.json()["error"] == "not_pending_owner"
    assert client.get("/ownership").json()["pending_owner"] == "bob"


def test_token_sweep_dry_run(initialised):
    client = initialised
    client.post("/ledger/credit", json={"account": "0xentity", "amount": 1444, "ledger": "TKN"})

    resp = client.post("/sweep/tokens", json={"caller": "alice", "ledgers": ["TKN", "TKN"], "dry_run": True})
    body = resp.json()
    assert body["success"] is True
    assert body["amount"] == 1444
    assert body["details"]["swept"] == {"TKN": 1444}
    assert client.get("/balances/0xentity", params={"ledger": "TKN"}).json()["balance"] == 1444

    resp = client.post("/sweep/tokens", json={"caller": "bob", "ledgers": ["TKN"], "dry_run": True})
    assert resp.json()["error"] == "not_current_owner"

    resp = client.post("/sweep/tokens", json={"caller": "alice", "ledgers": ["TKN", "TKN"]})
    assert resp.json()["amount"] == 1444
    assert client.get("/balances/alice", params={"ledger": "TKN"}).json()["balance"] == 1444


def test_dry_runs_write_no_audit_entries(initialised):
    client = initialised
    client.post("/ownership/transfer", json={"caller": "alice", "new_owner": "bob", "dry_run": True})
    client.post("/sweep/native", json={"caller": "alice", "dry_run": True})
    assert client.get("/audit").json() == []


def test_state_handlers_run_in_threadpool(client):
    # handlers doing file and sqlite I/O must not block the event loop
    blocking = {
        route.path for route in client.app.routes
        if isinstance(route, APIRoute) and route.path != "/"
    }
    assert "/ownership/propose" in blocking
    for route in client.app.routes:
        if isinstance(route, APIRoute) and route.path in blocking:
            assert not inspect.iscoroutinefunction(route.endpoint), route.path

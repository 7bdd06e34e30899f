"""
Owned API Server

FastAPI surface over a persisted ownership guard:
- Ownership state and the propose / claim / transfer protocol
- Owner-only sweeps of token and native balances
- In-memory ledger crediting and balance reads
- Public audit trail (witness chain)

Refused operations answer 200 with ``success: false`` and an error code;
the request was processed and the guard declined it.

Run: uvicorn owned.api:app --reload
"""

import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from . import __version__
from .config import audit_enabled
from .models import GuardResult
from .observability import configure_observability, instrument_app
from .store import Session, StateStore, StoreError
from .witness import WitnessChain

# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class InitRequest(BaseModel):
    owner: str
    address: Optional[str] = None

class OwnershipState(BaseModel):
    address: str
    contract_owner: str
    pending_owner: Optional[str] = None

class ProposeRequest(BaseModel):
    caller: str
    candidate: str
    dry_run: bool = False

class ClaimRequest(BaseModel):
    caller: str
    dry_run: bool = False

class TransferRequest(BaseModel):
    caller: str
    new_owner: str
    dry_run: bool = False

class SweepTokensRequest(BaseModel):
    caller: str
    ledgers: List[str] = Field(..., min_length=1)
    dry_run: bool = False

class SweepNativeRequest(BaseModel):
    caller: str
    dry_run: bool = False

class CreditRequest(BaseModel):
    """Credit an account on the native ledger, or on a token ledger if named."""
    account: str
    amount: int = Field(..., ge=0)
    ledger: Optional[str] = None

class BalanceResponse(BaseModel):
    account: str
    ledger: Optional[str] = None
    balance: int

class ResultResponse(BaseModel):
    operation: str
    success: bool
    caller: Optional[str] = None
    error: Optional[str] = None
    amount: int = 0
    events: List[Dict[str, Any]] = []
    details: Dict[str, Any] = {}

class AuditEntry(BaseModel):
    id: int
    timestamp: str
    action: str
    actor: Optional[str] = None
    subject: Optional[str] = None
    details: Dict[str, Any]
    prev_hash: Optional[str] = None
    hash: str


def _result(result: GuardResult) -> ResultResponse:
    return ResultResponse(**result.to_dict())


# =============================================================================
# APP FACTORY
# =============================================================================

def create_app(state_path: Optional[Path] = None, db_path: Optional[Path] = None) -> FastAPI:
    store = StateStore(state_path)
    lock = threading.Lock()

    configure_observability()
    app = FastAPI(
        title="Owned",
        description="Single-owner guard with two-phase transfer and balance sweeps",
        version=__version__,
    )
    instrument_app(app)

    def _witness() -> Optional[WitnessChain]:
        return WitnessChain(db_path) if audit_enabled() else None

    @contextmanager
    def _session(save: bool = False):
        # one load-operate-save cycle at a time
        with lock:
            try:
                session = store.load(witness=_witness() if save else None)
            except StoreError as e:
                raise HTTPException(status_code=404, detail=str(e))
            yield session
            if save:
                store.save(session)

    def _state(session: Session) -> OwnershipState:
        return OwnershipState(**session.guard.snapshot())

    # -------------------------------------------------------------------------
    # ROOT & HEALTH
    # -------------------------------------------------------------------------

    @app.get("/")
    async def root():
        return {"name": "owned", "version": __version__, "status": "healthy"}

    @app.get("/health")
    def health_check():
        return {
            "status": "healthy",
            "version": __version__,
            "initialised": store.exists(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    # -------------------------------------------------------------------------
    # OWNERSHIP
    # -------------------------------------------------------------------------

    @app.post("/init", response_model=OwnershipState, status_code=201)
    def init_guard(request: InitRequest):
        with lock:
            if store.exists():
                raise HTTPException(status_code=409, detail="guard already initialised")
            try:
                session = store.init(request.owner, address=request.address)
            except StoreError as e:
                raise HTTPException(status_code=400, detail=str(e))
        return _state(session)

    @app.get("/ownership", response_model=OwnershipState)
    def get_ownership():
        with _session() as session:
            return _state(session)

    @app.post("/ownership/propose", response_model=ResultResponse)
    def propose(request: ProposeRequest):
        with _session(save=not request.dry_run) as session:
            if request.dry_run:
                return _result(session.guard.preview_propose(request.caller, request.candidate))
            return _result(session.guard.propose(request.caller, request.candidate))

    @app.post("/ownership/claim", response_model=ResultResponse)
    def claim(request: ClaimRequest):
        with _session(save=not request.dry_run) as session:
            if request.dry_run:
                return _result(session.guard.preview_claim(request.caller))
            return _result(session.guard.claim(request.caller))

    @app.post("/ownership/transfer", response_model=ResultResponse)
    def transfer(request: TransferRequest):
        with _session(save=not request.dry_run) as session:
            if request.dry_run:
                return _result(session.guard.preview_transfer(request.caller, request.new_owner))
            return _result(session.guard.transfer(request.caller, request.new_owner))

    # -------------------------------------------------------------------------
    # SWEEPS
    # -------------------------------------------------------------------------

    @app.post("/sweep/tokens", response_model=ResultResponse)
    def sweep_tokens(request: SweepTokensRequest):
        with _session(save=not request.dry_run) as session:
            ledgers = [session.token(ledger_id) for ledger_id in request.ledgers]
            if request.dry_run:
                return _result(session.guard.preview_sweep_tokens(request.caller, ledgers))
            return _result(session.guard.sweep_tokens(request.caller, ledgers))

    @app.post("/sweep/native", response_model=ResultResponse)
    def sweep_native(request: SweepNativeRequest):
        with _session(save=not request.dry_run) as session:
            if request.dry_run:
                return _result(session.guard.preview_sweep(request.caller))
            return _result(session.guard.sweep_native(request.caller))

    # -------------------------------------------------------------------------
    # LEDGERS
    # -------------------------------------------------------------------------

    @app.post("/ledger/credit", response_model=BalanceResponse)
    def credit(request: CreditRequest):
        with _session(save=True) as session:
            target = session.token(request.ledger) if request.ledger else session.native
            balance = target.credit(request.account, request.amount)
        return BalanceResponse(account=request.account, ledger=request.ledger, balance=balance)

    @app.get("/balances/{account}", response_model=BalanceResponse)
    def get_balance(account: str, ledger: Optional[str] = None):
        with _session() as session:
            if ledger is None:
                balance = session.native.balance_of(account)
            elif ledger in session.tokens:
                balance = session.tokens[ledger].balance_of(account)
            else:
                balance = 0
        return BalanceResponse(account=account, ledger=ledger, balance=balance)

    # -------------------------------------------------------------------------
    # AUDIT
    # -------------------------------------------------------------------------

    @app.get("/audit", response_model=List[AuditEntry])
    def get_audit_trail(
        limit: int = Query(50, ge=1, le=500),
        offset: int = Query(0, ge=0),
    ):
        return WitnessChain(db_path).list_entries(limit=limit, offset=offset)

    @app.get("/audit/verify")
    def verify_audit_trail():
        return {"valid": WitnessChain(db_path).verify_chain()}

    return app


app = create_app()

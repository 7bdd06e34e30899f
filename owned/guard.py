"""
Ownership guard.

Single-admin ownership of an entity, transferable either directly or in two
phases (propose, then claim by the nominee), plus owner-only sweeps of the
entity's token and native balances to the owner.

Every operation takes the caller explicitly and returns a ``GuardResult``.
Refused operations never raise: they leave state untouched and return a
falsy result carrying a ``GuardError``.

Usage:
    from owned.guard import OwnershipGuard

    guard = OwnershipGuard("alice")
    guard.propose("alice", "bob")
    guard.claim("bob")
    assert guard.contract_owner == "bob"
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional

from .identity import derive_address, normalize
from .ledger import InMemoryNativeLedger, LedgerError, NativeLedger, TokenLedger
from .log import get_logger
from .models import GuardError, GuardResult, OwnershipTransferred

logger = get_logger(__name__)

Listener = Callable[[OwnershipTransferred], None]


class OwnershipGuard:
    """Holds the current and pending owner of one guarded entity."""

    def __init__(
        self,
        owner: str,
        *,
        address: Optional[str] = None,
        native_ledger: Optional[NativeLedger] = None,
        witness: Optional[Any] = None,
    ):
        owner = normalize(owner)
        if owner is None:
            raise ValueError("guard owner must not be the null identity")
        self._owner: str = owner
        self._pending: Optional[str] = None
        self.address: str = normalize(address) or derive_address(owner)
        self.native_ledger: NativeLedger = native_ledger or InMemoryNativeLedger()
        self.witness = witness
        self.events: List[OwnershipTransferred] = []
        self._listeners: List[Listener] = []

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def contract_owner(self) -> str:
        return self._owner

    @property
    def pending_owner(self) -> Optional[str]:
        return self._pending

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "contract_owner": self._owner,
            "pending_owner": self._pending,
        }

    @classmethod
    def from_snapshot(cls, data: Dict[str, Any], **kwargs) -> "OwnershipGuard":
        guard = cls(data["contract_owner"], address=data["address"], **kwargs)
        guard._pending = normalize(data.get("pending_owner"))
        return guard

    # ------------------------------------------------------------------
    # Checks (shared by previews and mutating calls)
    # ------------------------------------------------------------------

    def _refuse(self, operation: str, caller: Optional[str], error: GuardError) -> GuardResult:
        logger.info("%s refused for %s: %s", operation, caller, error.value)
        return GuardResult(operation=operation, success=False, caller=caller, error=error)

    def _check_owner(self, operation: str, caller: Optional[str]) -> Optional[GuardResult]:
        if caller != self._owner:
            return self._refuse(operation, caller, GuardError.NOT_CURRENT_OWNER)
        return None

    def _check_propose(self, caller: Optional[str], candidate: Optional[str]) -> Optional[GuardResult]:
        refused = self._check_owner("propose", caller)
        if refused is None and candidate is None:
            refused = self._refuse("propose", caller, GuardError.INVALID_TARGET)
        return refused

    def _check_claim(self, caller: Optional[str]) -> Optional[GuardResult]:
        if self._pending is None:
            return self._refuse("claim", caller, GuardError.NO_PENDING_TRANSFER)
        if caller != self._pending:
            return self._refuse("claim", caller, GuardError.NOT_PENDING_OWNER)
        return None

    def _check_transfer(self, caller: Optional[str], new_owner: Optional[str]) -> Optional[GuardResult]:
        refused = self._check_owner("transfer", caller)
        if refused is None and new_owner is None:
            refused = self._refuse("transfer", caller, GuardError.INVALID_TARGET)
        return refused

    # ------------------------------------------------------------------
    # Dry runs
    # ------------------------------------------------------------------

    def preview_propose(self, caller: str, candidate: str) -> GuardResult:
        caller, candidate = normalize(caller), normalize(candidate)
        refused = self._check_propose(caller, candidate)
        if refused is not None:
            return refused
        return GuardResult("propose", True, caller=caller, details={"pending_owner": candidate})

    def preview_claim(self, caller: str) -> GuardResult:
        caller = normalize(caller)
        refused = self._check_claim(caller)
        if refused is not None:
            return refused
        return GuardResult("claim", True, caller=caller)

    def preview_transfer(self, caller: str, new_owner: str) -> GuardResult:
        caller, new_owner = normalize(caller), normalize(new_owner)
        refused = self._check_transfer(caller, new_owner)
        if refused is not None:
            return refused
        return GuardResult("transfer", True, caller=caller, details={"new_owner": new_owner})

    def preview_sweep(self, caller: str, ledger: Optional[TokenLedger] = None) -> GuardResult:
        """Amount a token sweep (or native sweep when ``ledger`` is None) would move."""
        caller = normalize(caller)
        operation = "sweep_token" if ledger is not None else "sweep_native"
        refused = self._check_owner(operation, caller)
        if refused is not None:
            return refused
        source = ledger if ledger is not None else self.native_ledger
        return GuardResult(operation, True, caller=caller, amount=source.balance_of(self.address))

    def preview_sweep_tokens(self, caller: str, ledgers: Iterable[TokenLedger]) -> GuardResult:
        caller = normalize(caller)
        refused = self._check_owner("sweep_tokens", caller)
        if refused is not None:
            return refused
        swept: Dict[str, int] = {}
        seen = set()
        for ledger in ledgers:
            # a ledger listed twice is drained by its first sweep
            if id(ledger) in seen:
                continue
            seen.add(id(ledger))
            amount = self.preview_sweep(caller, ledger).amount
            swept[ledger.ledger_id] = swept.get(ledger.ledger_id, 0) + amount
        return GuardResult(
            "sweep_tokens", True, caller=caller, amount=sum(swept.values()),
            details={"swept": swept, "failed": []},
        )

    # ------------------------------------------------------------------
    # Ownership transfer
    # ------------------------------------------------------------------

    def propose(self, caller: str, candidate: str) -> GuardResult:
        """Nominate ``candidate`` as the next owner. Owner only."""
        caller, candidate = normalize(caller), normalize(candidate)
        refused = self._check_propose(caller, candidate)
        if refused is not None:
            return refused
        self._pending = candidate
        logger.info("ownership of %s proposed to %s", self.address, candidate)
        return GuardResult("propose", True, caller=caller, details={"pending_owner": candidate})

    def claim(self, caller: str) -> GuardResult:
        """Accept a pending nomination. Pending owner only."""
        caller = normalize(caller)
        refused = self._check_claim(caller)
        if refused is not None:
            return refused
        event = self._change_owner(self._pending)
        return GuardResult("claim", True, caller=caller, events=[event])

    def transfer(self, caller: str, new_owner: str) -> GuardResult:
        """Hand ownership straight to ``new_owner``, cancelling any nomination."""
        caller, new_owner = normalize(caller), normalize(new_owner)
        refused = self._check_transfer(caller, new_owner)
        if refused is not None:
            return refused
        event = self._change_owner(new_owner)
        return GuardResult("transfer", True, caller=caller, events=[event])

    def _change_owner(self, new_owner: str) -> OwnershipTransferred:
        previous = self._owner
        self._owner = new_owner
        self._pending = None
        event = OwnershipTransferred(previous, new_owner)
        self.events.append(event)
        logger.info("ownership of %s transferred from %s to %s", self.address, previous, new_owner)
        self._audit("ownership_transferred", previous, {"previous_owner": previous, "new_owner": new_owner})
        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("ownership listener %r failed", listener)
        return event

    # ------------------------------------------------------------------
    # Sweeps
    # ------------------------------------------------------------------

    def sweep_token(self, caller: str, ledger: TokenLedger) -> GuardResult:
        """Move this entity's whole balance on ``ledger`` to the owner."""
        caller = normalize(caller)
        refused = self._check_owner("sweep_token", caller)
        if refused is not None:
            return refused
        return self._sweep_token(caller, ledger)

    def sweep_tokens(self, caller: str, ledgers: Iterable[TokenLedger]) -> GuardResult:
        """Sweep several token ledgers. Each ledger sweep stands on its own."""
        caller = normalize(caller)
        refused = self._check_owner("sweep_tokens", caller)
        if refused is not None:
            return refused
        swept: Dict[str, int] = {}
        failed: List[str] = []
        for ledger in ledgers:
            result = self._sweep_token(caller, ledger)
            if result:
                swept[ledger.ledger_id] = swept.get(ledger.ledger_id, 0) + result.amount
            else:
                failed.append(ledger.ledger_id)
        return GuardResult(
            "sweep_tokens",
            not failed,
            caller=caller,
            error=GuardError.LEDGER_FAILURE if failed else None,
            amount=sum(swept.values()),
            details={"swept": swept, "failed": failed},
        )

    def _sweep_token(self, caller: str, ledger: TokenLedger) -> GuardResult:
        balance = ledger.balance_of(self.address)
        if balance == 0:
            return GuardResult("sweep_token", True, caller=caller, details={"ledger_id": ledger.ledger_id})
        recipient = self._owner
        try:
            moved = ledger.transfer(self.address, recipient, balance)
        except LedgerError as exc:
            logger.warning("token sweep on %s failed: %s", ledger.ledger_id, exc)
            moved = False
        if not moved:
            return self._refuse("sweep_token", caller, GuardError.LEDGER_FAILURE)
        logger.info("swept %s of %s from %s to %s", balance, ledger.ledger_id, self.address, recipient)
        self._audit("sweep_token", caller, {"ledger_id": ledger.ledger_id, "to": recipient, "amount": balance})
        return GuardResult(
            "sweep_token", True, caller=caller, amount=balance, details={"ledger_id": ledger.ledger_id}
        )

    def sweep_native(self, caller: str) -> GuardResult:
        """Move this entity's whole native balance to the owner."""
        caller = normalize(caller)
        refused = self._check_owner("sweep_native", caller)
        if refused is not None:
            return refused
        balance = self.native_ledger.balance_of(self.address)
        if balance == 0:
            return GuardResult("sweep_native", True, caller=caller)
        recipient = self._owner
        try:
            moved = self.native_ledger.send(self.address, recipient, balance)
        except LedgerError as exc:
            logger.warning("native sweep failed: %s", exc)
            moved = False
        if not moved:
            return self._refuse("sweep_native", caller, GuardError.LEDGER_FAILURE)
        logger.info("swept %s native from %s to %s", balance, self.address, recipient)
        self._audit("sweep_native", caller, {"to": recipient, "amount": balance})
        return GuardResult("sweep_native", True, caller=caller, amount=balance)

    def _audit(self, action: str, actor: str, details: Dict[str, Any]) -> None:
        if self.witness is not None:
            self.witness.record(action, actor, details, subject=self.address)

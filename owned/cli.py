#!/usr/bin/env python3
"""
Owned CLI — operate a persisted ownership guard from the shell.

Usage:
    python -m owned.cli init --owner alice
    python -m owned.cli status
    python -m owned.cli propose --caller alice --candidate bob
    python -m owned.cli claim --caller bob
    python -m owned.cli transfer --caller bob --new-owner carol
    python -m owned.cli credit --account 0xabc... --amount 1444 --ledger TKN
    python -m owned.cli sweep-token --caller carol --ledger TKN
    python -m owned.cli sweep-native --caller carol
    python -m owned.cli balance --account carol [--ledger TKN]
    python -m owned.cli witness
    python -m owned.cli verify-witness

Exit codes: 0 success, 1 refused by the guard, 2 usage or state file error.
"""
from __future__ import annotations

import argparse
import json
from typing import Any, List, Optional

from .config import audit_enabled, get_db_path, get_state_path
from .log import get_logger
from .models import GuardResult
from .store import StateStore, StoreError
from .witness import WitnessChain

logger = get_logger(__name__)

MUTATING = {"propose", "claim", "transfer", "credit", "sweep-token", "sweep-native"}


def _emit(payload: Any, output_format: str) -> None:
    if output_format == "json":
        print(json.dumps(payload, sort_keys=True))
        return
    if isinstance(payload, dict):
        for key, value in payload.items():
            print(f"{key}: {value}")
        return
    print(payload)


def _fail(message: str, output_format: str, *, code: int = 1) -> None:
    payload = {"status": "error", "error": message, "exit_code": code}
    _emit(payload if output_format == "json" else message, output_format)
    raise SystemExit(code)


def _finish(result: GuardResult, output_format: str) -> None:
    _emit(result.to_dict(), output_format)
    if not result:
        raise SystemExit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="owned", description="Single-owner guard with balance sweeps")
    parser.add_argument("--state", default=None, help="State file (default: OWNED_STATE_PATH)")
    parser.add_argument("--db", default=None, help="Witness database (default: OWNED_DB_PATH)")
    parser.add_argument("--format", choices=["json", "text"], default="json")

    sub = parser.add_subparsers(dest="cmd", required=True)

    p_init = sub.add_parser("init", help="Create a guard owned by --owner")
    p_init.add_argument("--owner", required=True)
    p_init.add_argument("--address", default=None)

    sub.add_parser("status", help="Show owner, pending owner and entity address")

    p_propose = sub.add_parser("propose", help="Nominate the next owner")
    p_propose.add_argument("--caller", required=True)
    p_propose.add_argument("--candidate", required=True)
    p_propose.add_argument("--dry-run", action="store_true")

    p_claim = sub.add_parser("claim", help="Accept a pending nomination")
    p_claim.add_argument("--caller", required=True)
    p_claim.add_argument("--dry-run", action="store_true")

    p_transfer = sub.add_parser("transfer", help="Transfer ownership directly")
    p_transfer.add_argument("--caller", required=True)
    p_transfer.add_argument("--new-owner", required=True)
    p_transfer.add_argument("--dry-run", action="store_true")

    p_credit = sub.add_parser("credit", help="Credit an account on a ledger")
    p_credit.add_argument("--account", required=True, help="Account, or 'entity' for the guarded entity")
    p_credit.add_argument("--amount", type=int, required=True)
    p_credit.add_argument("--ledger", default=None, help="Token ledger id (native if omitted)")

    p_sweep = sub.add_parser("sweep-token", help="Sweep token balances to the owner")
    p_sweep.add_argument("--caller", required=True)
    p_sweep.add_argument("--ledger", action="append", required=True, help="Repeatable")
    p_sweep.add_argument("--dry-run", action="store_true")

    p_native = sub.add_parser("sweep-native", help="Sweep the native balance to the owner")
    p_native.add_argument("--caller", required=True)
    p_native.add_argument("--dry-run", action="store_true")

    p_balance = sub.add_parser("balance", help="Show an account balance")
    p_balance.add_argument("--account", required=True)
    p_balance.add_argument("--ledger", default=None)

    p_witness = sub.add_parser("witness", help="Show recent witness chain entries")
    p_witness.add_argument("--limit", type=int, default=20)

    sub.add_parser("verify-witness", help="Check the witness chain for tampering")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    fmt = args.format
    db_path = args.db or get_db_path()
    store = StateStore(args.state or get_state_path())

    if args.cmd == "witness":
        _emit(WitnessChain(db_path).list_entries(limit=args.limit), fmt)
        return
    if args.cmd == "verify-witness":
        valid = WitnessChain(db_path).verify_chain()
        _emit({"valid": valid}, fmt)
        if not valid:
            raise SystemExit(1)
        return

    try:
        if args.cmd == "init":
            session = store.init(args.owner, address=args.address)
            logger.info("initialised guard %s at %s", session.guard.address, store.path)
            _emit(session.guard.snapshot(), fmt)
            return
        witness = WitnessChain(db_path) if args.cmd in MUTATING and audit_enabled() else None
        session = store.load(witness=witness)
    except StoreError as exc:
        _fail(str(exc), fmt, code=2)

    guard = session.guard

    if args.cmd == "status":
        _emit(guard.snapshot(), fmt)
        return
    if args.cmd == "balance":
        account = guard.address if args.account == "entity" else args.account
        ledger = session.tokens.get(args.ledger) if args.ledger else session.native
        balance = ledger.balance_of(account) if ledger is not None else 0
        _emit({"account": account, "ledger": args.ledger, "balance": balance}, fmt)
        return
    if args.cmd == "credit":
        if args.amount < 0:
            _fail("amount must be non-negative", fmt, code=2)
        account = guard.address if args.account == "entity" else args.account
        target = session.token(args.ledger) if args.ledger else session.native
        balance = target.credit(account, args.amount)
        store.save(session)
        _emit({"account": account, "ledger": args.ledger, "balance": balance}, fmt)
        return

    dry_run = getattr(args, "dry_run", False)
    if args.cmd == "propose":
        op = guard.preview_propose if dry_run else guard.propose
        result = op(args.caller, args.candidate)
    elif args.cmd == "claim":
        result = guard.preview_claim(args.caller) if dry_run else guard.claim(args.caller)
    elif args.cmd == "transfer":
        op = guard.preview_transfer if dry_run else guard.transfer
        result = op(args.caller, args.new_owner)
    elif args.cmd == "sweep-token":
        ledgers = [session.token(lid) for lid in args.ledger]
        op = guard.preview_sweep_tokens if dry_run else guard.sweep_tokens
        result = op(args.caller, ledgers)
    elif args.cmd == "sweep-native":
        result = guard.preview_sweep(args.caller) if dry_run else guard.sweep_native(args.caller)
    else:
        _fail(f"unknown cmd: {args.cmd}", fmt, code=2)

    if not dry_run:
        store.save(session)
    _finish(result, fmt)


if __name__ == "__main__":
    main()

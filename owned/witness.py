"""
Owned Witness Chain

Hash-chained audit log of successful guard actions: ownership transfers and
sweeps. Refused operations are never recorded.
"""

from __future__ import annotations

import hashlib
import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import get_db_path

_HASHED_FIELDS = ("timestamp", "action", "actor", "subject", "details", "prev_hash")


def _entry_hash(entry: Dict[str, Any]) -> str:
    check = {k: entry.get(k) for k in _HASHED_FIELDS}
    return hashlib.sha256(json.dumps(check, sort_keys=True, separators=(",", ":")).encode()).hexdigest()


class WitnessChain:
    """Hash-chained audit log. Every entry references the previous hash."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path or get_db_path())
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self) -> None:
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS witness_chain (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp TEXT NOT NULL,
                action TEXT NOT NULL,
                actor TEXT,
                subject TEXT,
                details TEXT NOT NULL,
                prev_hash TEXT,
                hash TEXT NOT NULL
            )
            """
        )
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_witness_subject ON witness_chain(subject)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_witness_action ON witness_chain(action)")
        conn.commit()
        conn.close()

    def attach(self, guard) -> "WitnessChain":
        guard.witness = self
        return self

    def _get_last_hash(self, cursor: sqlite3.Cursor) -> Optional[str]:
        cursor.execute("SELECT hash FROM witness_chain ORDER BY id DESC LIMIT 1")
        row = cursor.fetchone()
        return row[0] if row else None

    def record(
        self,
        action: str,
        actor: Optional[str],
        details: Dict[str, Any],
        subject: Optional[str] = None,
    ) -> Dict[str, Any]:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "action": action,
            "actor": actor,
            "subject": subject,
            "details": details,
            "prev_hash": None,
        }

        conn = sqlite3.connect(self.db_path)
        try:
            cursor = conn.cursor()
            entry["prev_hash"] = self._get_last_hash(cursor)
            entry["hash"] = _entry_hash(entry)
            cursor.execute(
                """
                INSERT INTO witness_chain (timestamp, action, actor, subject, details, prev_hash, hash)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry["timestamp"],
                    entry["action"],
                    entry["actor"],
                    entry["subject"],
                    json.dumps(details, sort_keys=True),
                    entry["prev_hash"],
                    entry["hash"],
                ),
            )
            conn.commit()
        finally:
            conn.close()
        return entry

    def _rows(self, query: str, params: tuple) -> List[Dict[str, Any]]:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            rows = conn.execute(query, params).fetchall()
        finally:
            conn.close()
        out = []
        for row in rows:
            entry = dict(row)
            entry["details"] = json.loads(entry["details"])
            out.append(entry)
        return out

    def list_entries(
        self,
        subject: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """Newest first."""
        if subject is not None:
            return self._rows(
                """
                SELECT * FROM witness_chain
                WHERE subject = ?
                ORDER BY id DESC
                LIMIT ? OFFSET ?
                """,
                (str(subject), limit, offset),
            )
        return self._rows(
            """
            SELECT * FROM witness_chain
            ORDER BY id DESC
            LIMIT ? OFFSET ?
            """,
            (limit, offset),
        )

    def verify_chain(self) -> bool:
        """Verify no entries have been tampered with."""
        prev_hash = None
        for entry in self._rows("SELECT * FROM witness_chain ORDER BY id ASC", ()):
            if entry.get("prev_hash") != prev_hash:
                return False
            if entry.get("hash") != _entry_hash(entry):
                return False
            prev_hash = entry.get("hash")
        return True

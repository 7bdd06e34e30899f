"""
Account identities.

Identities are opaque strings. The null identity is ``None``, the empty
string, or any all-zero hex string such as ``0x000...0``.
"""
from __future__ import annotations

import hashlib
import re
import secrets
from typing import Any, Optional

NULL_ADDRESS = "0x" + "0" * 40

_ZERO_HEX = re.compile(r"^(0x)?0+$", re.IGNORECASE)


def normalize(identity: Any) -> Optional[str]:
    """Strip an identity; returns None for the null identity."""
    if identity is None:
        return None
    value = str(identity).strip()
    if not value or _ZERO_HEX.match(value):
        return None
    return value


def is_null(identity: Any) -> bool:
    return normalize(identity) is None


def derive_address(creator: str, salt: Optional[str] = None) -> str:
    """Generate an entity address from its creator and a salt (random if omitted)."""
    salt = salt if salt is not None else secrets.token_hex(8)
    data = f"{creator}:{salt}"
    return "0x" + hashlib.sha256(data.encode()).hexdigest()[:40]

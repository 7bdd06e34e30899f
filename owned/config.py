"""
Owned configuration — all environment-driven settings in one place.

An optional YAML file (``OWNED_CONFIG``) supplies defaults; environment
variables always win over it.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DATA_DIR = Path(__file__).parent.parent / "data"
DEFAULT_DB_PATH = DATA_DIR / "owned.db"
DEFAULT_STATE_PATH = DATA_DIR / "owned_state.json"
DEFAULT_API_HOST = "127.0.0.1"
DEFAULT_API_PORT = 8000


def _bool(raw: Any, default: bool) -> bool:
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() in {"1", "true", "yes", "on"}


# --- YAML file ---
def get_config_path() -> Optional[Path]:
    raw = os.environ.get("OWNED_CONFIG")
    return Path(raw) if raw else None


def load_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the optional YAML settings file. Missing or malformed -> {}."""
    path = path or get_config_path()
    if path is None or not path.exists():
        return {}
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        return {}
    return raw


# --- Storage ---
def get_db_path() -> Path:
    raw = os.environ.get("OWNED_DB_PATH") or load_settings().get("db_path")
    return Path(raw) if raw else DEFAULT_DB_PATH


def get_state_path() -> Path:
    raw = os.environ.get("OWNED_STATE_PATH") or load_settings().get("state_path")
    return Path(raw) if raw else DEFAULT_STATE_PATH


# --- Audit ---
def audit_enabled() -> bool:
    raw = os.environ.get("OWNED_AUDIT_ENABLED")
    if raw is None:
        raw = load_settings().get("audit_enabled")
    return _bool(raw, True)


# --- API ---
def get_api_bind() -> tuple:
    api = load_settings().get("api") or {}
    if not isinstance(api, dict):
        api = {}
    host = os.environ.get("OWNED_API_HOST") or api.get("host") or DEFAULT_API_HOST
    port = int(os.environ.get("OWNED_API_PORT") or api.get("port") or DEFAULT_API_PORT)
    return host, port

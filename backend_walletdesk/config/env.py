"""
Environment variable loading for Wallet Desk.

- XRPL_NETWORK: TESTNET | MAINNET (default: TESTNET)
- STORAGE_BACKEND: local | blob (default: local)
- Boolean flags accept 1/true/yes/on.
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is backend_walletdesk/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

NETWORKS = ("TESTNET", "MAINNET")
STORAGE_BACKENDS = ("local", "blob")

_TRUE_VALUES = ("1", "true", "yes", "on")


def load_desk_env() -> None:
    """Load .env from project root. Safe to call multiple times; existing env wins."""
    if _ENV_PATH.exists():
        load_dotenv(_ENV_PATH, override=False)


def env_str(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def env_flag(name: str, default: bool = False) -> bool:
    """Return True when the variable is set to a truthy token."""
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    return raw in _TRUE_VALUES


def env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def get_xrpl_network() -> str:
    """
    Return XRPL_NETWORK upper-cased. Unknown values are returned as-is so that
    wallet initialization can report them; callers needing a valid network use
    the Settings fallback.
    """
    return env_str("XRPL_NETWORK", "TESTNET").upper()


def get_storage_backend() -> str:
    """Return STORAGE_BACKEND: local | blob. Default: local."""
    raw = env_str("STORAGE_BACKEND", "local").lower()
    return raw if raw in STORAGE_BACKENDS else "local"

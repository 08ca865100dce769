"""
Environment variable loading and validation for HiveWatch.

- HIVE_NODES: comma-separated API node URLs (default: public Hive nodes)
- RPC_TIMEOUT_SEC / FAILOVER_THRESHOLD: per-call timeout and node rotation threshold
- *_INTERVAL_SEC: refresh interval per subsystem
- HIVE_USERNAME: optional account to track from startup
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is backend_hivewatch/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_HIVE_NODES = (
    "https://api.hive.blog",
    "https://api.hivekings.com",
    "https://anyx.io",
    "https://api.openhive.network",
)
DEFAULT_RPC_TIMEOUT_SEC = 8.0
DEFAULT_FAILOVER_THRESHOLD = 3


def load_hivewatch_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides the process env."""
    load_dotenv(_ENV_PATH, override=False)


def get_env_str(name: str, default: str) -> str:
    load_hivewatch_env()
    return (os.getenv(name) or "").strip() or default


def get_env_float(name: str, default: float) -> float:
    raw = get_env_str(name, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def get_env_int(name: str, default: int) -> int:
    raw = get_env_str(name, "")
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def get_hive_nodes() -> list[str]:
    """
    Return HIVE_NODES from env as a list of URLs.
    Falls back to the default public node list when unset or empty.
    """
    raw = get_env_str("HIVE_NODES", "")
    nodes = [n.strip().rstrip("/") for n in raw.split(",") if n.strip()]
    return nodes or list(DEFAULT_HIVE_NODES)


def get_tracked_username() -> str | None:
    """Return HIVE_USERNAME (lowercased, leading @ stripped) or None."""
    raw = get_env_str("HIVE_USERNAME", "")
    name = raw.lstrip("@").lower()
    return name or None

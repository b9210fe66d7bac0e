"""
Environment variable loading for TFUEL Rewards.

- EXPLORER_API_URL: Theta explorer API base
- COINGECKO_API_URL / SIMPLESWAP_API_URL: market data bases
- SIMPLESWAP_API_KEY: SimpleSwap key (optional; price/quote fall back to CoinGecko)
- Loads .env from project root when available.
"""

from __future__ import annotations

import math
import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is tfuel_rewards/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_EXPLORER_API_URL = "https://explorer-api.thetatoken.org/api"
DEFAULT_COINGECKO_API_URL = "https://api.coingecko.com/api/v3"
DEFAULT_SIMPLESWAP_API_URL = "https://api.simpleswap.io"
DEFAULT_DASHBOARD_API_URL = "http://127.0.0.1:8000"


def load_rewards_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides real env."""
    load_dotenv(_ENV_PATH, override=False)


def env_str(name: str, default: str = "") -> str:
    return (os.getenv(name) or "").strip() or default


def env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if math.isfinite(value) else default


def env_list(name: str) -> list[str]:
    """Comma-separated env var as a list of non-empty, stripped entries."""
    raw = os.getenv(name) or ""
    return [s.strip() for s in raw.split(",") if s.strip()]

"""
Application settings and environment configuration.

Settings are read once per process from environment variables (after loading
.env) into a frozen dataclass. Tests call get_settings.cache_clear() after
changing the environment.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass, field

from tfuel_rewards.config.env import (
    DEFAULT_COINGECKO_API_URL,
    DEFAULT_DASHBOARD_API_URL,
    DEFAULT_EXPLORER_API_URL,
    DEFAULT_SIMPLESWAP_API_URL,
    env_float,
    env_int,
    env_list,
    env_str,
    load_rewards_env,
)


@dataclass(frozen=True)
class Settings:
    """Typed service and client settings; field names mirror the env vars."""

    explorer_api_url: str = DEFAULT_EXPLORER_API_URL
    coingecko_api_url: str = DEFAULT_COINGECKO_API_URL
    coingecko_api_key: str | None = None
    simpleswap_api_url: str = DEFAULT_SIMPLESWAP_API_URL
    simpleswap_api_key: str | None = None
    request_timeout_sec: float = 30.0

    rewards_cache_ttl_sec: float = 45.0
    earned_cache_ttl_sec: float = 120.0
    tx_page_limit: int = 50
    rewards_max_pages: int = 25
    earned_max_pages: int = 40
    token_decimals: int = 18

    dashboard_api_url: str = DEFAULT_DASHBOARD_API_URL
    tracking_db_path: str = "tracking.db"
    tracked_addresses: tuple[str, ...] = field(default_factory=tuple)

    api_host: str = "0.0.0.0"
    api_port: int = 8000


def load_settings() -> Settings:
    """Build Settings from the current environment (no caching)."""
    load_rewards_env()
    return Settings(
        explorer_api_url=env_str("EXPLORER_API_URL", DEFAULT_EXPLORER_API_URL).rstrip("/"),
        coingecko_api_url=env_str("COINGECKO_API_URL", DEFAULT_COINGECKO_API_URL).rstrip("/"),
        coingecko_api_key=env_str("COINGECKO_API_KEY") or None,
        simpleswap_api_url=env_str("SIMPLESWAP_API_URL", DEFAULT_SIMPLESWAP_API_URL).rstrip("/"),
        simpleswap_api_key=env_str("SIMPLESWAP_API_KEY") or None,
        request_timeout_sec=env_float("REQUEST_TIMEOUT_SEC", 30.0),
        rewards_cache_ttl_sec=env_float("REWARDS_CACHE_TTL_SEC", 45.0),
        earned_cache_ttl_sec=env_float("EARNED_CACHE_TTL_SEC", 120.0),
        tx_page_limit=env_int("TX_PAGE_LIMIT", 50),
        rewards_max_pages=env_int("REWARDS_MAX_PAGES", 25),
        earned_max_pages=env_int("EARNED_MAX_PAGES", 40),
        token_decimals=env_int("TOKEN_DECIMALS", 18),
        dashboard_api_url=env_str("DASHBOARD_API_URL", DEFAULT_DASHBOARD_API_URL).rstrip("/"),
        tracking_db_path=env_str("TRACKING_DB_PATH", "tracking.db"),
        tracked_addresses=tuple(env_list("TRACKED_ADDRESSES")),
        api_host=env_str("API_HOST", "0.0.0.0"),
        api_port=env_int("API_PORT", 8000),
    )


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings (cached)."""
    return load_settings()

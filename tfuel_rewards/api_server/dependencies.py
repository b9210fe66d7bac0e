"""
Per-app service container and FastAPI dependencies.

Everything shared across requests (HTTP client, upstream clients, response
caches) is built once per app instance, never at module scope, so each test
can construct its own app or override get_services.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx
from fastapi import Request

from tfuel_rewards.config import Settings
from tfuel_rewards.core.cache import ResponseCache
from tfuel_rewards.explorer import ExplorerClient
from tfuel_rewards.market.coingecko import CoinGeckoClient
from tfuel_rewards.market.service import MarketService
from tfuel_rewards.market.simpleswap import SimpleSwapClient
from tfuel_rewards.rewards.service import WalkLimits


@dataclass
class Services:
    settings: Settings
    http: httpx.AsyncClient
    explorer: ExplorerClient
    market: MarketService
    rewards_cache: ResponseCache
    earned_cache: ResponseCache
    owns_http: bool = True

    @property
    def rewards_limits(self) -> WalkLimits:
        return WalkLimits(
            page_limit=self.settings.tx_page_limit,
            max_pages=self.settings.rewards_max_pages,
            decimals=self.settings.token_decimals,
        )

    @property
    def earned_limits(self) -> WalkLimits:
        return WalkLimits(
            page_limit=self.settings.tx_page_limit,
            max_pages=self.settings.earned_max_pages,
            decimals=self.settings.token_decimals,
        )

    async def aclose(self) -> None:
        if self.owns_http:
            await self.http.aclose()


def build_services(settings: Settings, http: httpx.AsyncClient | None = None) -> Services:
    """Wire clients and caches. A caller-supplied http client is not closed on shutdown."""
    owns_http = http is None
    if http is None:
        http = httpx.AsyncClient(timeout=settings.request_timeout_sec)
    timeout = settings.request_timeout_sec
    return Services(
        settings=settings,
        http=http,
        explorer=ExplorerClient(http, settings.explorer_api_url, timeout=timeout),
        market=MarketService(
            CoinGeckoClient(http, settings.coingecko_api_url, settings.coingecko_api_key, timeout=timeout),
            SimpleSwapClient(http, settings.simpleswap_api_url, settings.simpleswap_api_key, timeout=timeout),
        ),
        rewards_cache=ResponseCache(settings.rewards_cache_ttl_sec),
        earned_cache=ResponseCache(settings.earned_cache_ttl_sec),
        owns_http=owns_http,
    )


def get_services(request: Request) -> Services:
    """Dependency: the app's service container."""
    return request.app.state.services

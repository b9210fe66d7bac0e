"""
Async Theta explorer API client.

Wraps a shared httpx.AsyncClient (owned by the app lifespan or injected by
tests) and returns boundary-validated models from explorer.schemas.
"""

from __future__ import annotations

import httpx

from tfuel_rewards.core.http import fetch_json
from tfuel_rewards.explorer.schemas import (
    AccountResponse,
    AccountTxPage,
    StakeResponse,
    parse_account,
    parse_account_tx_page,
    parse_stake,
)

EXPLORER_SERVICE = "Theta Explorer"

# Coinbase (reward) transactions
COINBASE_TX_TYPE = 0


class ExplorerClient:
    """Account, stake and paginated coinbase-transaction lookups."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str,
        timeout: float | None = 30.0,
    ) -> None:
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def _get(self, path: str, params: dict[str, str] | None = None) -> object:
        return await fetch_json(
            self.http,
            EXPLORER_SERVICE,
            f"{self.base_url}{path}",
            params=params,
            timeout=self.timeout,
        )

    async def get_account(self, address: str) -> AccountResponse:
        payload = await self._get(f"/account/{address}")
        return parse_account(payload, EXPLORER_SERVICE)

    async def get_stake(self, address: str) -> StakeResponse:
        payload = await self._get(f"/stake/{address}")
        return parse_stake(payload, EXPLORER_SERVICE)

    async def get_coinbase_page(self, address: str, page: int, limit: int) -> AccountTxPage:
        """One page of the newest-first coinbase feed (pageNumber is 1-based)."""
        payload = await self._get(
            f"/accounttx/{address}",
            params={
                "type": str(COINBASE_TX_TYPE),
                "pageNumber": str(page),
                "limitNumber": str(limit),
                "isEqualType": "true",
            },
        )
        return parse_account_tx_page(payload, EXPLORER_SERVICE)

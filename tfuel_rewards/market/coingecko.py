"""CoinGecko client: simple/price spot quotes and coins/{id}/market_chart history."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

import httpx

from tfuel_rewards.core.exceptions import UpstreamDataError, UpstreamError
from tfuel_rewards.core.http import fetch_json
from tfuel_rewards.rewards_logging import get_logger

logger = get_logger(__name__)

COINGECKO_SERVICE = "CoinGecko"
USER_AGENT = "tfuel-rewards/0.1"

COINGECKO_IDS = {
    "tfuel": "theta-fuel",
    "theta": "theta-token",
}


def coingecko_id(symbol: str) -> str | None:
    return COINGECKO_IDS.get((symbol or "").strip().lower())


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if math.isfinite(value) else None


@dataclass
class SpotPrice:
    usdc: float | None = None
    usd: float | None = None
    error: str | None = None

    @property
    def usdc_or_usd(self) -> float | None:
        return self.usdc if self.usdc is not None else self.usd


@dataclass
class PricePoint:
    t: float
    price: float

    def to_dict(self) -> dict[str, float]:
        return {"t": self.t, "price": self.price}


class CoinGeckoClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str,
        api_key: str | None = None,
        timeout: float | None = 30.0,
    ) -> None:
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers = {"user-agent": USER_AGENT}
        if self.api_key:
            headers["x-cg-demo-api-key"] = self.api_key
        return headers

    async def spot(self, symbol: str) -> SpotPrice:
        """USD/USDC spot price. Never raises; failures come back in .error."""
        cg_id = coingecko_id(symbol)
        if cg_id is None:
            return SpotPrice(error="Unsupported token")
        try:
            data = await fetch_json(
                self.http,
                COINGECKO_SERVICE,
                f"{self.base_url}/simple/price",
                params={"ids": cg_id, "vs_currencies": "usd,usdc"},
                headers=self._headers(),
                timeout=self.timeout,
            )
        except UpstreamDataError:
            return SpotPrice(error="Unexpected CoinGecko response")
        except UpstreamError as e:
            if e.status_code is not None:
                return SpotPrice(error=f"CoinGecko HTTP {e.status_code}")
            return SpotPrice(error=str(e))

        row = data.get(cg_id) if isinstance(data, dict) else None
        if not isinstance(row, dict):
            return SpotPrice(error="Unexpected CoinGecko response")
        usd = _number(row.get("usd"))
        usdc = _number(row.get("usdc"))
        return SpotPrice(usdc=usdc if usdc is not None else usd, usd=usd)

    async def spot_usdc(self, symbol: str) -> float | None:
        return (await self.spot(symbol)).usdc_or_usd

    async def market_chart(self, symbol: str, days: int) -> list[PricePoint]:
        """
        Hourly-ish USD prices for the last `days` days. Raises UpstreamError.

        interval=hourly is not passed: CoinGecko reserves it for enterprise
        plans and returns hourly points automatically for 2..90 days.
        """
        cg_id = coingecko_id(symbol)
        if cg_id is None:
            raise ValueError(f"unsupported symbol: {symbol}")
        data = await fetch_json(
            self.http,
            COINGECKO_SERVICE,
            f"{self.base_url}/coins/{cg_id}/market_chart",
            params={"vs_currency": "usd", "days": str(days)},
            headers=self._headers(),
            timeout=self.timeout,
        )
        prices = data.get("prices") if isinstance(data, dict) else None
        points: list[PricePoint] = []
        for pair in prices if isinstance(prices, list) else []:
            if not isinstance(pair, (list, tuple)) or len(pair) < 2:
                continue
            t, price = _number(pair[0]), _number(pair[1])
            if t is None or price is None:
                continue
            points.append(PricePoint(t=t, price=price))
        logger.debug("coingecko_market_chart", symbol=symbol, days=days, points=len(points))
        return points

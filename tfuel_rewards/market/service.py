"""
Price, swap-quote, fee-comparison, history and currency-list services.

SimpleSwap is the primary quote source; CoinGecko spot is the fallback and
the reference for implied swap fees. Each call returns a MarketResult
(status code + JSON body) for the API server to send as-is.
"""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass
from typing import Any

from tfuel_rewards.core.clock import epoch_ms
from tfuel_rewards.core.exceptions import InputValidationError, UpstreamDataError, UpstreamError
from tfuel_rewards.market.coingecko import CoinGeckoClient, coingecko_id
from tfuel_rewards.market.simpleswap import MISSING_KEY_ERROR, SimpleSwapClient
from tfuel_rewards.rewards_logging import get_logger

logger = get_logger(__name__)

FALLBACK_NOTE = "(using CoinGecko spot as fallback)"
DEFAULT_FEE_AMOUNT = 100.0
DEFAULT_HISTORY_DAYS = 30
MAX_HISTORY_DAYS = 90
MAX_CURRENCIES = 200
FEE_TARGETS = ("usdc-sol", "usdc-eth")


@dataclass
class MarketResult:
    status_code: int
    body: dict[str, Any]


# -----------------------------------------------------------------------------
# Parameter normalization
# -----------------------------------------------------------------------------


def normalize_symbol(raw: str | None) -> str:
    return (raw or "").strip().lower()


def require_symbol(raw: str | None) -> str:
    symbol = normalize_symbol(raw)
    if not symbol:
        raise InputValidationError("Missing symbol")
    return symbol


def parse_amount(raw: str | None, default: float | None = None) -> float:
    """Positive finite amount; blank uses `default` when given. Raises InputValidationError."""
    text = (raw or "").strip()
    if not text and default is not None:
        return default
    try:
        amount = float(text)
    except ValueError:
        raise InputValidationError("Invalid amount") from None
    if not math.isfinite(amount) or amount <= 0:
        raise InputValidationError("Invalid amount")
    return amount


def quote_target(network: str | None) -> str:
    """SimpleSwap target code for a payout network: Solana USDC or Ethereum USDC."""
    n = (network or "").strip().lower()
    if n in ("sol", "solana", "usdc-sol"):
        return "usdcspl"
    return "usdc"


def fee_target(code: str) -> str:
    c = code.strip().lower()
    if c in ("usdc", "usdc-eth"):
        return "usdc"
    if c == "usdc-sol":
        return "usdcspl"
    return c


def clamp_days(raw: str | None) -> int:
    """Round to nearest day and clamp to [1, 90]; blank or non-numeric means 30."""
    text = (raw or "").strip()
    if not text:
        return DEFAULT_HISTORY_DAYS
    try:
        n = float(text)
    except ValueError:
        return DEFAULT_HISTORY_DAYS
    if not math.isfinite(n):
        return DEFAULT_HISTORY_DAYS
    return min(MAX_HISTORY_DAYS, max(1, math.floor(n + 0.5)))


def implied_fee(spot_total: float | None, received: float | None) -> tuple[float | None, float | None]:
    """(fee, fee percent of spot) with the fee floored at zero."""
    if spot_total is None or received is None:
        return None, None
    fee = max(0.0, spot_total - received)
    pct = (fee / spot_total) * 100 if spot_total > 0 else None
    return fee, pct


# -----------------------------------------------------------------------------
# Service
# -----------------------------------------------------------------------------


class MarketService:
    def __init__(self, coingecko: CoinGeckoClient, simpleswap: SimpleSwapClient) -> None:
        self.coingecko = coingecko
        self.simpleswap = simpleswap

    async def price(self, raw_symbol: str | None) -> MarketResult:
        """USDC/USD price of one token: SimpleSwap first, CoinGecko spot fallback."""
        symbol = require_symbol(raw_symbol)
        quote = await self.simpleswap.estimate(symbol, "usdc", 1)

        usdc = quote.amount
        usd = usdc
        source = "simpleswap"
        error = quote.error

        if usdc is None:
            fallback = await self.coingecko.spot(symbol)
            usdc, usd = fallback.usdc, fallback.usd
            if usdc is not None or usd is not None:
                source = "coingecko"
                error = f"{quote.error} {FALLBACK_NOTE}" if quote.error else fallback.error
            else:
                error = error or fallback.error

        if usdc is None and usd is None:
            logger.warning("price_unavailable", symbol=symbol, error=error)
            return MarketResult(502, {
                "symbol": symbol,
                "usdc": None,
                "usd": None,
                "error": error or "Failed to fetch price",
                "source": source,
                "fetchedAt": epoch_ms(),
            })

        body: dict[str, Any] = {
            "symbol": symbol,
            "usdc": usdc,
            "usd": usd,
            "source": source,
            "fetchedAt": epoch_ms(),
        }
        if error:
            body["error"] = error
        return MarketResult(200, body)

    async def quote(self, raw_symbol: str | None, raw_amount: str | None, raw_network: str | None) -> MarketResult:
        """What selling `amount` tokens for USDC on a network yields, and the implied fee vs spot."""
        symbol = require_symbol(raw_symbol)
        amount = parse_amount(raw_amount)
        to = quote_target(raw_network or "sol")
        network = "sol" if to == "usdcspl" else "eth"

        estimate = await self.simpleswap.estimate(symbol, to, amount)
        body: dict[str, Any] = {"symbol": symbol, "amount": amount, "network": network}

        if estimate.amount is None:
            spot = await self.coingecko.spot_usdc(symbol)
            if spot is not None:
                estimated = spot * amount
                body.update({
                    "estimatedUsdc": estimated,
                    "totalUsd": estimated,
                    "effectiveUsdPerToken": estimated / amount,
                    "spotTotalUsd": estimated,
                    "impliedFeeUsd": 0,
                    "impliedFeePct": 0,
                    "minAmount": estimate.min_amount,
                    "error": f"{estimate.error} {FALLBACK_NOTE}" if estimate.error
                    else "Using CoinGecko spot as fallback",
                    "source": "coingecko",
                    "fetchedAt": epoch_ms(),
                })
                return MarketResult(200, body)

            body.update({
                "estimatedUsdc": None,
                "totalUsd": None,
                "effectiveUsdPerToken": None,
                "spotTotalUsd": None,
                "impliedFeeUsd": None,
                "impliedFeePct": None,
                "minAmount": estimate.min_amount,
                "error": estimate.error or "Failed to fetch quote",
                "source": "simpleswap",
                "fetchedAt": epoch_ms(),
            })
            return MarketResult(502, body)

        total = estimate.amount
        spot = await self.coingecko.spot_usdc(symbol)
        spot_total = None if spot is None else spot * amount
        fee, fee_pct = implied_fee(spot_total, total)
        body.update({
            "estimatedUsdc": total,
            "totalUsd": total,
            "effectiveUsdPerToken": total / amount,
            "spotTotalUsd": spot_total,
            "impliedFeeUsd": fee,
            "impliedFeePct": fee_pct,
            "minAmount": None,
            "source": "simpleswap",
            "fetchedAt": epoch_ms(),
        })
        return MarketResult(200, body)

    async def fees(self, raw_symbol: str | None, raw_amount: str | None) -> MarketResult:
        """Compare swap payout (and implied fee) for Solana vs Ethereum USDC."""
        symbol = require_symbol(raw_symbol)
        amount = parse_amount(raw_amount, default=DEFAULT_FEE_AMOUNT)
        spot = await self.coingecko.spot_usdc(symbol)

        if not self.simpleswap.has_key:
            estimated = None if spot is None else spot * amount
            rows = [
                {
                    "to": to,
                    "estimatedUsdc": estimated,
                    "impliedFeeUsdc": None if estimated is None else 0,
                    "impliedFeePct": None if estimated is None else 0,
                    "error": f"{MISSING_KEY_ERROR} {FALLBACK_NOTE}",
                }
                for to in FEE_TARGETS
            ]
        else:
            estimates = await asyncio.gather(
                *(self.simpleswap.estimate(symbol, fee_target(to), amount) for to in FEE_TARGETS)
            )
            spot_value = None if spot is None else spot * amount
            rows = []
            for to, estimate in zip(FEE_TARGETS, estimates):
                fee, fee_pct = implied_fee(spot_value, estimate.amount)
                rows.append({
                    "to": to,
                    "estimatedUsdc": estimate.amount,
                    "impliedFeeUsdc": fee,
                    "impliedFeePct": fee_pct,
                    "error": estimate.error,
                })

        now = epoch_ms()
        return MarketResult(200, {
            "symbol": symbol,
            "amount": amount,
            "spotUsdc": spot,
            "rows": rows,
            "quoteFetchedAt": now,
            "fetchedAt": now,
        })

    async def history(self, raw_symbol: str | None, raw_days: str | None) -> MarketResult:
        symbol = normalize_symbol(raw_symbol)
        days = clamp_days(raw_days)
        if coingecko_id(symbol) is None:
            raise InputValidationError("Invalid symbol")
        try:
            points = await self.coingecko.market_chart(symbol, days)
        except UpstreamError as e:
            logger.warning("history_fetch_failed", symbol=symbol, days=days, error=str(e))
            return MarketResult(502, {
                "error": "history_fetch_failed",
                "message": str(e),
                "symbol": symbol,
                "days": days,
            })
        return MarketResult(200, {
            "symbol": symbol,
            "days": days,
            "prices": [p.to_dict() for p in points],
            "fetchedAt": epoch_ms(),
        })

    async def currencies(self, raw_query: str | None) -> MarketResult:
        """SimpleSwap currency list filtered by substring over any string field."""
        q = (raw_query or "").strip().lower()
        if not self.simpleswap.has_key:
            return MarketResult(500, {"error": MISSING_KEY_ERROR})
        try:
            data = await self.simpleswap.all_currencies()
        except UpstreamDataError:
            return MarketResult(502, {"error": "Unexpected response"})
        except UpstreamError as e:
            if e.status_code is None:
                return MarketResult(502, {"error": str(e)})
            body: dict[str, Any] = {"error": f"SimpleSwap HTTP {e.status_code}"}
            if e.body_snippet:
                body["details"] = e.body_snippet
            return MarketResult(502, body)

        currencies: list[Any] = []
        for c in data:
            if q and not (
                isinstance(c, dict)
                and any(isinstance(v, str) and q in v.lower() for v in c.values())
            ):
                continue
            if isinstance(c, dict):
                c = {k: c.get(k) for k in ("symbol", "name", "network", "code")}
            currencies.append(c)
            if len(currencies) >= MAX_CURRENCIES:
                break
        return MarketResult(200, {"q": q, "count": len(currencies), "currencies": currencies})

"""
SimpleSwap client: get_estimated swap quotes and get_all_currencies.

Estimates never raise: a missing key, an HTTP error or an odd payload comes
back as an Estimate with amount=None and an error string.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from typing import Any

import httpx

from tfuel_rewards.core.exceptions import UpstreamDataError, UpstreamError
from tfuel_rewards.core.http import JSON_HEADERS
from tfuel_rewards.rewards_logging import get_logger

logger = get_logger(__name__)

SIMPLESWAP_SERVICE = "SimpleSwap"
MISSING_KEY_ERROR = "Missing SIMPLESWAP_API_KEY"
UNEXPECTED_RESPONSE = "Unexpected SimpleSwap response"
ERROR_DETAILS_LEN = 300
CURRENCY_DETAILS_LEN = 500

_MIN_RE = re.compile(r"Min:\s*([0-9.]+)", re.IGNORECASE)


@dataclass
class Estimate:
    amount: float | None = None
    min_amount: float | None = None
    error: str | None = None


def format_amount(amount: float) -> str:
    """100.0 -> "100", 0.5 -> "0.5"."""
    return str(int(amount)) if float(amount).is_integer() else repr(float(amount))


def parse_min_from_description(description: str) -> float | None:
    m = _MIN_RE.search(description or "")
    if not m:
        return None
    try:
        value = float(m.group(1))
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _finite(raw: Any) -> float | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw) if math.isfinite(raw) else None
    if isinstance(raw, str):
        try:
            value = float(raw.strip())
        except ValueError:
            return None
        return value if math.isfinite(value) else None
    return None


def parse_estimate(data: Any) -> Estimate:
    """Accept a number, a numeric string, or {"estimated_amount": number|numeric string}."""
    if isinstance(data, dict) and "estimated_amount" in data:
        data = data["estimated_amount"]
        if not isinstance(data, (int, float, str)) or isinstance(data, bool):
            return Estimate(error=UNEXPECTED_RESPONSE)
    elif not isinstance(data, (int, float, str)) or isinstance(data, bool):
        return Estimate(error=UNEXPECTED_RESPONSE)
    value = _finite(data)
    if value is None:
        return Estimate(error=UNEXPECTED_RESPONSE)
    return Estimate(amount=value)


class SimpleSwapClient:
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

    @property
    def has_key(self) -> bool:
        return bool(self.api_key)

    async def estimate(self, currency_from: str, currency_to: str, amount: float) -> Estimate:
        """Floating-rate estimate of `amount` currency_from in currency_to."""
        if not self.api_key:
            return Estimate(error=MISSING_KEY_ERROR)
        params = {
            "currency_from": currency_from,
            "currency_to": currency_to,
            "amount": format_amount(amount),
            "fixed": "false",
            "api_key": self.api_key,
        }
        try:
            r = await self.http.get(
                f"{self.base_url}/get_estimated",
                params=params,
                headers=JSON_HEADERS,
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            logger.warning("simpleswap_request_failed", error=str(e))
            return Estimate(error=f"{SIMPLESWAP_SERVICE} request failed: {e}")

        if not r.is_success:
            text = r.text
            min_amount = None
            try:
                parsed = json.loads(text) if text else None
            except ValueError:
                parsed = None
            if isinstance(parsed, dict) and isinstance(parsed.get("description"), str):
                min_amount = parse_min_from_description(parsed["description"])
            error = f"{SIMPLESWAP_SERVICE} HTTP {r.status_code}"
            if text:
                error = f"{error}: {text[:ERROR_DETAILS_LEN]}"
            logger.info("simpleswap_estimate_rejected", status=r.status_code, min_amount=min_amount)
            return Estimate(min_amount=min_amount, error=error)

        try:
            data = r.json()
        except ValueError:
            return Estimate(error=UNEXPECTED_RESPONSE)
        return parse_estimate(data)

    async def all_currencies(self) -> list[Any]:
        """Raw currency list. Raises UpstreamError (status + details) or UpstreamDataError."""
        try:
            r = await self.http.get(
                f"{self.base_url}/get_all_currencies",
                params={"api_key": self.api_key or ""},
                headers=JSON_HEADERS,
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            raise UpstreamError(SIMPLESWAP_SERVICE, reason=f"request failed: {e}") from e
        if not r.is_success:
            raise UpstreamError(
                SIMPLESWAP_SERVICE, r.status_code, r.text, snippet_len=CURRENCY_DETAILS_LEN
            )
        try:
            data = r.json()
        except ValueError as e:
            raise UpstreamDataError(SIMPLESWAP_SERVICE, "Unexpected response") from e
        if not isinstance(data, list):
            raise UpstreamDataError(SIMPLESWAP_SERVICE, "Unexpected response")
        return data

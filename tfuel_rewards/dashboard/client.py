"""Client for the rewards service's own HTTP API (what the dashboard polls)."""

from __future__ import annotations

from typing import Any, Iterable

import requests

from tfuel_rewards.core.exceptions import DashboardRequestError
from tfuel_rewards.rewards_logging import get_logger

logger = get_logger(__name__)


class DashboardClient:
    """Thin wrapper over GET /rewards, /earned, /price and /history."""

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8000",
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def close(self) -> None:
        self._session.close()

    def _get(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        resp = self._session.get(
            f"{self.base_url}{path}",
            params=params,
            headers={"cache-control": "no-store"},
            timeout=self.timeout,
        )
        if not resp.ok:
            is_json = resp.headers.get("content-type", "").startswith("application/json")
            payload = resp.json() if is_json else resp.text
            logger.warning("dashboard_request_failed", path=path, status_code=resp.status_code)
            raise DashboardRequestError(path, resp.status_code, payload)
        return resp.json()

    def rewards(self, addresses: Iterable[str]) -> dict[str, Any]:
        return self._get("/rewards", {"addresses": ",".join(addresses)})

    def earned(self, addresses: Iterable[str], since_sec: int) -> dict[str, Any]:
        return self._get("/earned", {"addresses": ",".join(addresses), "since": since_sec})

    def price(self, symbol: str) -> dict[str, Any]:
        return self._get("/price", {"symbol": symbol})

    def history(self, symbol: str, days: int = 30) -> dict[str, Any]:
        return self._get("/history", {"symbol": symbol, "days": days})

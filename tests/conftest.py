"""
Pytest fixtures for tfuel_rewards tests.

Upstream APIs (explorer, CoinGecko, SimpleSwap) are served by FakeUpstream via
httpx.MockTransport; every test gets a fresh app with its own caches.
"""

from __future__ import annotations

import time

import httpx
import pytest

from tfuel_rewards.config import Settings

EXPLORER_URL = "https://explorer.test/api"
COINGECKO_URL = "https://cg.test/api/v3"
SIMPLESWAP_URL = "https://swap.test"

ADDR_A = "0x" + "a" * 40
ADDR_B = "0x" + "b" * 40
DAY = 24 * 60 * 60
ONE_TFUEL = 10**18


def tx(address: str, ts: float, tfuelwei: int | str = ONE_TFUEL) -> dict:
    """One coinbase record paying `address`."""
    return {
        "timestamp": str(int(ts)),
        "type": 0,
        "data": {
            "proposer": {"address": "0x" + "f" * 40},
            "outputs": [
                {"address": "0x" + "c" * 40, "coins": {"tfuelwei": "5", "thetawei": "0"}},
                {"address": address.upper().replace("0X", "0x"), "coins": {"tfuelwei": str(tfuelwei), "thetawei": "0"}},
            ],
        },
    }


class FakeUpstream:
    """In-memory explorer/CoinGecko/SimpleSwap; records every request."""

    def __init__(self) -> None:
        self.accounts: dict[str, str] = {}
        self.stakes: dict[str, list[dict]] = {}
        self.tx_pages: dict[str, list[list[dict]]] = {}
        self.total_pages: dict[str, int] = {}
        self.explorer_status: dict[str, int] = {}
        # per-kind 200 reply overrides, as httpx.Response kwargs (json=... or text=...)
        self.explorer_replies: dict[str, dict] = {}
        self.spot: dict[str, dict] = {
            "theta-fuel": {"usd": 0.05, "usdc": 0.0499},
            "theta-token": {"usd": 1.2, "usdc": 1.19},
        }
        self.spot_status = 200
        self.chart: dict[str, list] = {}
        self.chart_status = 200
        self.estimates: dict[tuple[str, str], tuple[int, object]] = {}
        self.currencies: list[dict] = []
        self.requests: list[httpx.Request] = []

    def pages_requested(self, address: str) -> list[int]:
        return [
            int(r.url.params["pageNumber"])
            for r in self.requests
            if r.url.path.endswith(f"/accounttx/{address}")
        ]

    def explorer_calls(self) -> int:
        return sum(1 for r in self.requests if r.url.host == "explorer.test")

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host, path = request.url.host, request.url.path
        if host == "explorer.test":
            return self._explorer(request, path)
        if host == "cg.test":
            return self._coingecko(request, path)
        if host == "swap.test":
            return self._simpleswap(request, path)
        return httpx.Response(404)

    def _explorer(self, request: httpx.Request, path: str) -> httpx.Response:
        kind, address = path.split("/")[-2:]
        status = self.explorer_status.get(kind)
        if status is not None:
            return httpx.Response(status, text="explorer unavailable")
        if kind in self.explorer_replies:
            return httpx.Response(200, **self.explorer_replies[kind])
        if kind == "account":
            balance = {"tfuelwei": self.accounts.get(address, "0"), "thetawei": "0"}
            return httpx.Response(200, json={"type": "account", "body": {"address": address, "balance": balance}})
        if kind == "stake":
            return httpx.Response(200, json={"type": "stake", "body": {"sourceRecords": self.stakes.get(address, [])}})
        pages = self.tx_pages.get(address, [])
        n = int(request.url.params["pageNumber"])
        body = pages[n - 1] if n <= len(pages) else []
        return httpx.Response(200, json={
            "type": "account_tx_list",
            "body": body,
            "totalPageNumber": self.total_pages.get(address, len(pages)),
            "currentPageNumber": n,
        })

    def _coingecko(self, request: httpx.Request, path: str) -> httpx.Response:
        if path.endswith("/simple/price"):
            if self.spot_status != 200:
                return httpx.Response(self.spot_status, text="rate limited")
            cg_id = request.url.params["ids"]
            return httpx.Response(200, json={cg_id: self.spot[cg_id]} if cg_id in self.spot else {})
        if path.endswith("/market_chart"):
            if self.chart_status != 200:
                return httpx.Response(self.chart_status, text="chart unavailable")
            cg_id = path.split("/")[-2]
            return httpx.Response(200, json={"prices": self.chart.get(cg_id, [])})
        return httpx.Response(404)

    def _simpleswap(self, request: httpx.Request, path: str) -> httpx.Response:
        if path == "/get_estimated":
            key = (request.url.params["currency_from"], request.url.params["currency_to"])
            status, body = self.estimates.get(key, (400, {"description": "Pair is not supported"}))
            return httpx.Response(status, json=body)
        if path == "/get_all_currencies":
            return httpx.Response(200, json=self.currencies)
        return httpx.Response(404)


@pytest.fixture
def now_sec():
    return int(time.time())


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def settings():
    return Settings(
        explorer_api_url=EXPLORER_URL,
        coingecko_api_url=COINGECKO_URL,
        simpleswap_api_url=SIMPLESWAP_URL,
        simpleswap_api_key="test-key",
        tx_page_limit=50,
        rewards_max_pages=25,
        earned_max_pages=40,
    )


@pytest.fixture
def mock_http(upstream):
    return httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))


@pytest.fixture
def explorer(mock_http):
    from tfuel_rewards.explorer import ExplorerClient

    return ExplorerClient(mock_http, EXPLORER_URL)


@pytest.fixture
def app(settings, mock_http):
    from tfuel_rewards.api_server.server import create_app

    return create_app(settings, http=mock_http)


@pytest.fixture
def client(app):
    """FastAPI TestClient over a fresh app wired to FakeUpstream."""
    from fastapi.testclient import TestClient

    with TestClient(app) as c:
        yield c

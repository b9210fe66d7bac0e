"""
One dashboard refresh tick.

Fetches /rewards (and /earned for the lifetime window when a lifetime start
exists), merges balances into the incremental tracker, samples spot prices
into the price history and evaluates the USD alert.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from tfuel_rewards.dashboard.client import DashboardClient
from tfuel_rewards.rewards_logging import get_logger
from tfuel_rewards.tracking.alerts import UsdAlert
from tfuel_rewards.tracking.price_history import BACKFILL_DAYS, PriceHistoryRecorder
from tfuel_rewards.tracking.tracker import IncrementalTracker, lifetime_earned_total

logger = get_logger(__name__)


@dataclass
class RefreshSnapshot:
    rewards: dict[str, Any]
    earned: dict[str, Any] | None = None
    prices: dict[str, dict[str, Any]] = field(default_factory=dict)
    earned_since_start: float | None = None
    earned_usd: float | None = None
    lifetime_earned: float | None = None
    alert_message: str | None = None

    @property
    def results(self) -> list[dict[str, Any]]:
        return list(self.rewards.get("results") or [])

    def usd(self, symbol: str) -> float | None:
        row = self.prices.get(symbol) or {}
        value = row.get("usd")
        return value if isinstance(value, (int, float)) else None


class DashboardSession:
    def __init__(
        self,
        client: DashboardClient,
        addresses: Sequence[str],
        tracker: IncrementalTracker,
        prices: PriceHistoryRecorder | None = None,
        alert: UsdAlert | None = None,
    ) -> None:
        self.client = client
        self.addresses = list(addresses)
        self.tracker = tracker
        self.prices = prices
        self.alert = alert

    def refresh(self, with_prices: bool = True) -> RefreshSnapshot:
        # another process (e.g. `tfuel-rewards track stop`) may have changed the state
        self.tracker.reload()
        snap = RefreshSnapshot(rewards=self.client.rewards(self.addresses))
        self.tracker.record_refresh(snap.results)
        snap.earned_since_start = self.tracker.earned_since_start(snap.results)

        since = self.tracker.lifetime.since_sec()
        if since is not None:
            snap.earned = self.client.earned(self.addresses, since)
            snap.lifetime_earned = lifetime_earned_total(snap.earned.get("results") or [])

        if with_prices:
            snap.prices = {s: self.client.price(s) for s in ("tfuel", "theta")}
            tfuel_usd = snap.usd("tfuel")
            if self.prices is not None:
                self.prices.observe(tfuel_usd, snap.usd("theta"))
            if tfuel_usd is not None and snap.earned_since_start is not None:
                snap.earned_usd = snap.earned_since_start * tfuel_usd
            if self.alert is not None:
                snap.alert_message = self.alert.evaluate(snap.earned_usd, self.tracker.is_running)

        logger.info(
            "dashboard_refreshed",
            address_count=len(self.addresses),
            tracking=self.tracker.is_running,
            alert_fired=snap.alert_message is not None,
        )
        return snap

    def backfill_prices(self, days: int = BACKFILL_DAYS) -> bool:
        if self.prices is None:
            return False
        tfuel = self.client.history("tfuel", days)
        theta = self.client.history("theta", days)
        return self.prices.backfill(tfuel.get("prices"), theta.get("prices"))

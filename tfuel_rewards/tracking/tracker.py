"""
Local incremental earnings tracker.

Two states: idle (no rewardsTracking.v1 entry) and running. Starting records
each address's current TFUEL balance as its baseline and seeds today's
snapshot with 0. Every refresh overwrites today's snapshot with
max(0, balance - baseline), a cumulative-for-the-day value; daily deltas are
derived along the sorted day keys and floored at zero, so a balance drop
(withdrawal, transfer out) reads as no earnings rather than negative ones.
Stopping discards baselines and the whole series.

The lifetime tracker is independent: it only persists a start time (epoch
ms), is set once when tracking first starts, and is never cleared by stop.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping

from tfuel_rewards.core.clock import epoch_ms
from tfuel_rewards.core.exceptions import TrackingError
from tfuel_rewards.rewards_logging import get_logger
from tfuel_rewards.tracking.store import KeyValueStore

logger = get_logger(__name__)

TRACKING_KEY = "rewardsTracking.v1"
LIFETIME_KEY = "lifetimeStartedAt.v1"
MS_PER_DAY = 24 * 60 * 60 * 1000
CHART_DAYS = 30

Clock = Callable[[], int]


def day_key(ms: int | float) -> str:
    """Local calendar day, YYYY-MM-DD."""
    return datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d")


def days_between(start_ms: int | float, end_ms: int | float) -> int:
    return max(0, math.floor((end_ms - start_ms) / MS_PER_DAY))


def daily_deltas(series: Mapping[str, float], limit: int | None = CHART_DAYS) -> list[tuple[str, float]]:
    """
    Per-day earnings from cumulative day snapshots.

    delta(k0) = series[k0]; delta(ki) = series[ki] - series[ki-1]; floored at 0.
    """
    keys = sorted(series)
    out: list[tuple[str, float]] = []
    prev = 0.0
    for k in keys:
        cur = series[k]
        out.append((k, max(0.0, cur - prev)))
        prev = cur
    if limit is not None:
        out = out[-limit:]
    return out


def _finite_number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if math.isfinite(value) else None


def balances_from_results(results: Iterable[Mapping[str, Any]]) -> dict[str, float | None]:
    """address -> tfuelBalance from /rewards result rows."""
    out: dict[str, float | None] = {}
    for row in results:
        address = row.get("address")
        if isinstance(address, str):
            out[address] = _finite_number(row.get("tfuelBalance"))
    return out


@dataclass
class TrackingState:
    started_at: int
    baselines: dict[str, float | None] = field(default_factory=dict)
    series: dict[str, dict[str, float]] = field(default_factory=dict)

    def to_json(self) -> dict[str, Any]:
        return {"startedAt": self.started_at, "baselines": self.baselines, "series": self.series}

    @classmethod
    def from_json(cls, obj: Any) -> "TrackingState | None":
        """Validate a persisted value; anything malformed reads as idle."""
        if not isinstance(obj, dict):
            return None
        started_at = _finite_number(obj.get("startedAt"))
        baselines = obj.get("baselines")
        series = obj.get("series")
        if started_at is None or not isinstance(baselines, dict) or not isinstance(series, dict):
            return None
        clean_series: dict[str, dict[str, float]] = {}
        for address, days in series.items():
            if not isinstance(days, dict):
                continue
            clean_series[address] = {
                k: v for k, v in ((k, _finite_number(v)) for k, v in days.items()) if v is not None
            }
        return cls(
            started_at=int(started_at),
            baselines={a: _finite_number(b) for a, b in baselines.items()},
            series=clean_series,
        )


@dataclass
class DailyChart:
    keys: list[str]
    values: list[float]
    max: float


class LifetimeTracker:
    """Persisted lifetime start (epoch ms) feeding GET /earned?since=."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    @property
    def started_at(self) -> int | None:
        raw = self.store.get(LIFETIME_KEY)
        if not raw:
            return None
        try:
            value = float(raw)
        except ValueError:
            return None
        return int(value) if math.isfinite(value) else None

    def ensure_started(self, now_ms: int) -> int:
        """Set the start time only if none is recorded yet; return the effective value."""
        current = self.started_at
        if current is not None:
            return current
        self.store.set(LIFETIME_KEY, str(now_ms))
        logger.info("lifetime_tracking_started", started_at=now_ms)
        return now_ms

    def reset(self) -> None:
        self.store.delete(LIFETIME_KEY)
        logger.info("lifetime_tracking_reset")

    def since_sec(self) -> int | None:
        started = self.started_at
        return None if started is None else started // 1000


def lifetime_earned_total(results: Iterable[Mapping[str, Any]]) -> float | None:
    """Sum of finite `earned` values across /earned rows; None when there are no rows."""
    rows = list(results)
    if not rows:
        return None
    return sum(v for v in (_finite_number(r.get("earned")) for r in rows) if v is not None)


class IncrementalTracker:
    """Earnings-since-start tracker over a KeyValueStore."""

    def __init__(
        self,
        store: KeyValueStore,
        clock: Clock = epoch_ms,
        lifetime: LifetimeTracker | None = None,
    ) -> None:
        self.store = store
        self.clock = clock
        self.lifetime = lifetime or LifetimeTracker(store)
        self._state = self._load()
        self._unsubscribe = store.subscribe(self._on_store_change)

    # -- persistence ---------------------------------------------------------

    def _load(self) -> TrackingState | None:
        return TrackingState.from_json(self.store.get_json(TRACKING_KEY))

    def _on_store_change(self, key: str) -> None:
        if key == TRACKING_KEY:
            self._state = self._load()

    def reload(self) -> None:
        self._state = self._load()

    def _save(self, state: TrackingState | None) -> None:
        if state is None:
            self.store.delete(TRACKING_KEY)
        else:
            self.store.set_json(TRACKING_KEY, state.to_json())
        self._state = state

    def close(self) -> None:
        self._unsubscribe()

    # -- state machine -------------------------------------------------------

    @property
    def state(self) -> TrackingState | None:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is not None

    def start(self, results: Iterable[Mapping[str, Any]]) -> TrackingState:
        """Idle -> running from a fresh /rewards snapshot."""
        if self._state is not None:
            raise TrackingError("tracking is already running")
        balances = balances_from_results(results)
        if not balances:
            raise TrackingError("a balance snapshot is required to start tracking")
        now = self.clock()
        self.lifetime.ensure_started(now)
        today = day_key(now)
        state = TrackingState(
            started_at=now,
            baselines=dict(balances),
            series={address: {today: 0.0} for address in balances},
        )
        self._save(state)
        logger.info("tracking_started", address_count=len(balances), started_at=now)
        return state

    def stop(self) -> None:
        """Running -> idle. Baselines and the full series are discarded."""
        if self._state is None:
            return
        self._save(None)
        logger.info("tracking_stopped")

    def record_refresh(self, results: Iterable[Mapping[str, Any]]) -> TrackingState | None:
        """Overwrite today's snapshot per address with max(0, balance - baseline)."""
        if self._state is None:
            return None
        today = day_key(self.clock())
        series = {a: dict(days) for a, days in self._state.series.items()}
        for address, balance in balances_from_results(results).items():
            base = self._state.baselines.get(address)
            if base is None or balance is None:
                continue
            series.setdefault(address, {})[today] = max(0.0, balance - base)
        state = TrackingState(
            started_at=self._state.started_at,
            baselines=dict(self._state.baselines),
            series=series,
        )
        self._save(state)
        return state

    # -- derived readings ----------------------------------------------------

    def earned_since_start(self, results: Iterable[Mapping[str, Any]]) -> float | None:
        if self._state is None:
            return None
        total = 0.0
        for address, balance in balances_from_results(results).items():
            base = self._state.baselines.get(address)
            if base is None or balance is None:
                continue
            total += max(0.0, balance - base)
        return total

    def earned_on(self, key: str) -> float | None:
        """Sum over addresses of that day's floored delta."""
        if self._state is None:
            return None
        total = 0.0
        for days in self._state.series.values():
            if key not in days:
                continue
            total += dict(daily_deltas(days, limit=None))[key]
        return total

    def earned_today(self) -> float | None:
        return self.earned_on(day_key(self.clock()))

    def earned_yesterday(self) -> float | None:
        return self.earned_on(day_key(self.clock() - MS_PER_DAY))

    def daily_deltas(self, address: str, limit: int = CHART_DAYS) -> list[tuple[str, float]] | None:
        if self._state is None or address not in self._state.series:
            return None
        return daily_deltas(self._state.series[address], limit=limit)

    def chart(self, limit: int = CHART_DAYS) -> DailyChart | None:
        """Total daily earnings across addresses for the last `limit` day keys."""
        if self._state is None:
            return None
        per_day: dict[str, float] = {}
        for days in self._state.series.values():
            for k, delta in daily_deltas(days, limit=None):
                per_day[k] = per_day.get(k, 0.0) + delta
        keys = sorted(per_day)[-limit:]
        values = [per_day[k] for k in keys]
        return DailyChart(keys=keys, values=values, max=max(values, default=0.0))

    def days_tracked(self) -> int | None:
        if self._state is None:
            return None
        return days_between(self._state.started_at, self.clock())

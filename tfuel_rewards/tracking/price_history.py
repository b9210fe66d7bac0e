"""
Persisted TFUEL/THETA USD price samples for charting.

Stored under priceHistory.v2 as {"tfuel": [{t, price}], "theta": [{t, price}]}
with t in epoch ms. A legacy priceHistory.v1 list of {t, tfuelUsd, thetaUsd}
is migrated on load when no v2 entry exists.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from tfuel_rewards.core.clock import epoch_ms
from tfuel_rewards.market.coingecko import PricePoint
from tfuel_rewards.rewards_logging import get_logger
from tfuel_rewards.tracking.store import KeyValueStore

logger = get_logger(__name__)

HISTORY_KEY = "priceHistory.v2"
LEGACY_HISTORY_KEY = "priceHistory.v1"
SAMPLE_INTERVAL_MS = 15 * 60 * 1000
MAX_SAMPLES = 8 * 24 * 4
MIN_SAMPLE_GAP_MS = 1000
BACKFILL_CAP = 900
BACKFILL_DAYS = 30


@dataclass
class PriceHistory:
    tfuel: list[PricePoint] = field(default_factory=list)
    theta: list[PricePoint] = field(default_factory=list)

    def to_json(self) -> dict[str, list[dict[str, float]]]:
        return {
            "tfuel": [p.to_dict() for p in self.tfuel],
            "theta": [p.to_dict() for p in self.theta],
        }


def _number(v: Any) -> float | None:
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return None
    return v if math.isfinite(v) else None


def parse_series(raw: Any) -> list[PricePoint]:
    """Valid {t, price} points sorted by t; anything else is dropped."""
    if not isinstance(raw, list):
        return []
    points = []
    for p in raw:
        if not isinstance(p, dict):
            continue
        t, price = _number(p.get("t")), _number(p.get("price"))
        if t is None or price is None:
            continue
        points.append(PricePoint(t, price))
    return sorted(points, key=lambda p: p.t)


def migrate_v1(raw: Any) -> PriceHistory:
    if not isinstance(raw, list):
        return PriceHistory()
    tfuel: list[PricePoint] = []
    theta: list[PricePoint] = []
    for p in raw:
        if not isinstance(p, dict):
            continue
        t = _number(p.get("t"))
        tfuel_usd = _number(p.get("tfuelUsd"))
        theta_usd = _number(p.get("thetaUsd"))
        if t is None or tfuel_usd is None or theta_usd is None:
            continue
        tfuel.append(PricePoint(t, tfuel_usd))
        theta.append(PricePoint(t, theta_usd))
    return PriceHistory(
        tfuel=sorted(tfuel, key=lambda p: p.t),
        theta=sorted(theta, key=lambda p: p.t),
    )


def merge_series(current: Iterable[PricePoint], incoming: Iterable[PricePoint], cap: int) -> list[PricePoint]:
    """Union by timestamp; incoming wins on collision; newest `cap` points kept."""
    by_t = {p.t: p for p in current}
    for p in incoming:
        by_t[p.t] = p
    merged = sorted(by_t.values(), key=lambda p: p.t)
    return merged[-cap:]


class PriceHistoryRecorder:
    def __init__(self, store: KeyValueStore, clock: Callable[[], int] = epoch_ms) -> None:
        self.store = store
        self.clock = clock
        self.history = self.load()

    def load(self) -> PriceHistory:
        v2 = self.store.get_json(HISTORY_KEY)
        if isinstance(v2, dict):
            return PriceHistory(tfuel=parse_series(v2.get("tfuel")), theta=parse_series(v2.get("theta")))
        v1 = self.store.get_json(LEGACY_HISTORY_KEY)
        if v1 is None:
            return PriceHistory()
        history = migrate_v1(v1)
        logger.info("price_history_migrated", points=len(history.tfuel))
        self._save(history)
        return history

    def _save(self, history: PriceHistory) -> None:
        self.store.set_json(HISTORY_KEY, history.to_json())

    def _append(self, t: float, tfuel_usd: float, theta_usd: float) -> None:
        h = self.history
        self.history = PriceHistory(
            tfuel=(h.tfuel + [PricePoint(t, tfuel_usd)])[-MAX_SAMPLES:],
            theta=(h.theta + [PricePoint(t, theta_usd)])[-MAX_SAMPLES:],
        )
        self._save(self.history)

    def observe(self, tfuel_usd: float | None, theta_usd: float | None) -> bool:
        """
        Record a sample from the latest spot prices if cadence allows.

        First sample is taken immediately; while fewer than two exist a second
        one is allowed once at least a second has passed; after that one
        sample per 15 minutes. Returns True when a sample was stored.
        """
        tfuel_usd, theta_usd = _number(tfuel_usd), _number(theta_usd)
        if tfuel_usd is None or theta_usd is None:
            return False
        now = self.clock()
        h = self.history
        if not h.tfuel or not h.theta:
            self._append(now, tfuel_usd, theta_usd)
            return True
        gap = now - h.tfuel[-1].t
        if len(h.tfuel) < 2 or len(h.theta) < 2:
            if gap < MIN_SAMPLE_GAP_MS:
                return False
        elif gap < SAMPLE_INTERVAL_MS:
            return False
        self._append(now, tfuel_usd, theta_usd)
        return True

    def backfill(self, tfuel_prices: Any, theta_prices: Any) -> bool:
        """Merge /history price lists for both tokens; skipped unless each has >= 2 valid points."""
        tfuel, theta = parse_series(tfuel_prices), parse_series(theta_prices)
        if len(tfuel) < 2 or len(theta) < 2:
            logger.info("price_backfill_skipped", tfuel_points=len(tfuel), theta_points=len(theta))
            return False
        self.history = PriceHistory(
            tfuel=merge_series(self.history.tfuel, tfuel, BACKFILL_CAP),
            theta=merge_series(self.history.theta, theta, BACKFILL_CAP),
        )
        self._save(self.history)
        logger.info("price_backfill_applied", tfuel_points=len(self.history.tfuel))
        return True

"""
Time-window reward accumulators.

A RewardWindow sums the queried address's self-output amounts over one or
more named lower bounds (e.g. "7d" and "30d", or a single "since"). A record
counts toward every window whose bound it clears; records below the lowest
bound, with unusable timestamps, or with non-positive/unparseable amounts are
skipped without failing the aggregation.
"""

from __future__ import annotations

import math
from typing import Mapping

from tfuel_rewards.core.units import wei_to_number
from tfuel_rewards.explorer.schemas import AccountTxPage, StakeResponse, TransactionRecord

SECONDS_PER_DAY = 24 * 60 * 60
WINDOW_7D = "7d"
WINDOW_30D = "30d"
WINDOW_SINCE = "since"


def trailing_windows(now_sec: float) -> dict[str, float]:
    """Lower bounds for the trailing 7-day and 30-day windows."""
    return {
        WINDOW_7D: now_sec - 7 * SECONDS_PER_DAY,
        WINDOW_30D: now_sec - 30 * SECONDS_PER_DAY,
    }


def since_window(since_sec: float) -> dict[str, float]:
    return {WINDOW_SINCE: since_sec}


def reward_amount(record: TransactionRecord, address: str, decimals: int) -> float | None:
    """Positive display amount paid to `address` by this record, else None."""
    raw = record.self_output_tfuelwei(address)
    if raw is None:
        return None
    amount = wei_to_number(raw, decimals)
    if amount is None or amount <= 0:
        return None
    return amount


def as_json_number(value: float | None) -> int | float | None:
    """Integral floats render as ints (UNIX seconds)."""
    if value is None:
        return None
    return int(value) if float(value).is_integer() else value


class RewardWindow:
    """Running totals for one address across named time windows."""

    def __init__(self, address: str, bounds: Mapping[str, float], decimals: int = 18) -> None:
        if not bounds:
            raise ValueError("at least one window bound is required")
        self.address = address
        self.bounds = dict(bounds)
        self.decimals = decimals
        self.totals: dict[str, float] = {name: 0.0 for name in self.bounds}
        self.last_reward_at: float | None = None
        self.records_counted = 0
        self._lowest_bound = min(self.bounds.values())

    def ingest(self, page: AccountTxPage) -> None:
        for record in page.records:
            ts = record.timestamp_sec()
            if ts is None or ts < self._lowest_bound:
                continue
            amount = reward_amount(record, self.address, self.decimals)
            if amount is None:
                continue
            self.records_counted += 1
            if self.last_reward_at is None or ts > self.last_reward_at:
                self.last_reward_at = ts
            for name, bound in self.bounds.items():
                if ts >= bound:
                    self.totals[name] += amount

    def total(self, name: str) -> float | None:
        """Window sum with zero (or an overflowed sum) normalized to None ("no signal")."""
        total = self.totals[name]
        return total if total and math.isfinite(total) else None

    @property
    def last_reward_at_json(self) -> int | float | None:
        return as_json_number(self.last_reward_at)


def staked_amount(stake: StakeResponse, decimals: int = 18) -> float | None:
    """Sum of non-withdrawn stake records; zero normalized to None."""
    total = 0.0
    for record in stake.records:
        if record.withdrawn is not False or record.amount is None:
            continue
        amount = wei_to_number(record.amount, decimals)
        if amount is not None:
            total += amount
    return total if total and math.isfinite(total) else None

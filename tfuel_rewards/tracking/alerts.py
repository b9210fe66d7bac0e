"""USD threshold alert on earnings since tracking started (stakingUsdAlert.v1)."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from tfuel_rewards.dashboard.formatting import format_money
from tfuel_rewards.rewards_logging import get_logger
from tfuel_rewards.tracking.store import KeyValueStore

logger = get_logger(__name__)

ALERT_KEY = "stakingUsdAlert.v1"
DEFAULT_THRESHOLD_USD = 200.0


@dataclass
class AlertConfig:
    enabled: bool = False
    threshold_usd: float | None = DEFAULT_THRESHOLD_USD
    notify: bool = False
    armed: bool = True

    def to_json(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "thresholdUsd": self.threshold_usd,
            "notify": self.notify,
            "armed": self.armed,
        }

    @classmethod
    def from_json(cls, obj: Any) -> "AlertConfig":
        cfg = cls()
        if not isinstance(obj, dict):
            return cfg
        if isinstance(obj.get("enabled"), bool):
            cfg.enabled = obj["enabled"]
        threshold = obj.get("thresholdUsd")
        if isinstance(threshold, (int, float)) and not isinstance(threshold, bool) and math.isfinite(threshold):
            cfg.threshold_usd = float(threshold)
        for name in ("notify", "useBrowserNotifications"):
            if isinstance(obj.get(name), bool):
                cfg.notify = obj[name]
                break
        if isinstance(obj.get("armed"), bool):
            cfg.armed = obj["armed"]
        return cfg


class UsdAlert:
    def __init__(self, store: KeyValueStore) -> None:
        self.store = store
        self.config = AlertConfig.from_json(store.get_json(ALERT_KEY))

    def save(self) -> None:
        self.store.set_json(ALERT_KEY, self.config.to_json())

    def configure(self, *, enabled: bool | None = None, threshold_usd: float | None = None,
                  notify: bool | None = None) -> AlertConfig:
        if enabled is not None:
            self.config.enabled = enabled
        if threshold_usd is not None:
            self.config.threshold_usd = threshold_usd
        if notify is not None:
            self.config.notify = notify
        self.save()
        return self.config

    @property
    def threshold(self) -> float | None:
        t = self.config.threshold_usd
        if t is None or not math.isfinite(t) or t <= 0:
            return None
        return t

    def evaluate(self, earned_usd: float | None, tracking: bool) -> str | None:
        """Returns the alert message when it fires, else None. Fires once per arming."""
        if not self.config.enabled:
            return None
        threshold = self.threshold
        if not self.config.armed:
            if threshold is not None and earned_usd is not None and earned_usd < threshold:
                self.config.armed = True
                self.save()
                logger.info("usd_alert_rearmed", threshold_usd=threshold)
            return None
        if threshold is None or earned_usd is None or earned_usd < threshold or not tracking:
            return None
        self.config.armed = False
        self.save()
        message = f"Staking rewards reached {format_money(earned_usd)} (target {format_money(threshold)})."
        logger.info("usd_alert_fired", earned_usd=earned_usd, threshold_usd=threshold)
        return message

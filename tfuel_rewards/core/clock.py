"""Wall-clock helpers. Epoch milliseconds for fetchedAt/startedAt, seconds for feed timestamps."""

from __future__ import annotations

import time


def epoch_ms() -> int:
    return int(time.time() * 1000)


def epoch_sec() -> float:
    return time.time()

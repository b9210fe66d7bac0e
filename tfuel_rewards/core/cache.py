"""
Short-TTL response memoizer shared by concurrent requests.

One ResponseCache instance per endpoint, owned by the app (app.state) and
handed to routes through a dependency so tests can inject a fresh one.
No eviction beyond TTL staleness; key cardinality is bounded by callers.
Unlocked: concurrent writers for one key store equivalent payloads.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable

KEY_SEPARATOR = "|"


@dataclass
class CacheEntry:
    written_at: float
    payload: Any


def build_cache_key(addresses: list[str], **discriminators: object) -> str:
    """addresses:<a,b>|since:<v>, built from normalized parameters only."""
    parts = [f"addresses:{','.join(addresses)}"]
    for name in sorted(discriminators):
        parts.append(f"{name}:{discriminators[name]}")
    return KEY_SEPARATOR.join(parts)


class ResponseCache:
    """Key -> (written_at, payload) mapping served only while now - written_at < ttl."""

    def __init__(self, ttl_sec: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_sec = ttl_sec
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.written_at >= self.ttl_sec:
            return None
        return entry.payload

    def set(self, key: str, payload: Any) -> None:
        self._entries[key] = CacheEntry(written_at=self._clock(), payload=payload)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

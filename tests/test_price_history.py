"""Tests for persisted price samples: cadence, caps, v1 migration and backfill."""

from __future__ import annotations

from tfuel_rewards.tracking.price_history import (
    BACKFILL_CAP,
    HISTORY_KEY,
    LEGACY_HISTORY_KEY,
    MAX_SAMPLES,
    SAMPLE_INTERVAL_MS,
    PriceHistoryRecorder,
)
from tfuel_rewards.tracking.store import MemoryStore

T0 = 1_700_000_000_000


class Clock:
    def __init__(self) -> None:
        self.ms = T0

    def __call__(self) -> int:
        return self.ms


def test_sampling_cadence():
    clock = Clock()
    recorder = PriceHistoryRecorder(MemoryStore(), clock=clock)

    assert recorder.observe(0.05, 1.2) is True
    clock.ms += 500
    assert recorder.observe(0.05, 1.2) is False
    clock.ms += 600
    assert recorder.observe(0.051, 1.21) is True
    clock.ms += SAMPLE_INTERVAL_MS - 1
    assert recorder.observe(0.052, 1.22) is False
    clock.ms += 1
    assert recorder.observe(0.052, 1.22) is True

    assert [p.price for p in recorder.history.tfuel] == [0.05, 0.051, 0.052]
    assert len(recorder.history.theta) == 3


def test_missing_price_is_not_sampled():
    recorder = PriceHistoryRecorder(MemoryStore(), clock=Clock())
    assert recorder.observe(None, 1.2) is False
    assert recorder.observe(float("nan"), 1.2) is False
    assert recorder.history.tfuel == []


def test_samples_are_capped():
    clock = Clock()
    recorder = PriceHistoryRecorder(MemoryStore(), clock=clock)
    for i in range(MAX_SAMPLES + 5):
        clock.ms = T0 + i * SAMPLE_INTERVAL_MS
        recorder.observe(float(i), float(i))

    assert len(recorder.history.tfuel) == MAX_SAMPLES
    assert recorder.history.tfuel[0].price == 5.0


def test_history_persists_as_v2():
    store = MemoryStore()
    PriceHistoryRecorder(store, clock=Clock()).observe(0.05, 1.2)

    assert store.get_json(HISTORY_KEY) == {
        "tfuel": [{"t": T0, "price": 0.05}],
        "theta": [{"t": T0, "price": 1.2}],
    }
    assert PriceHistoryRecorder(store).history.theta[0].price == 1.2


def test_v1_history_is_migrated():
    store = MemoryStore()
    store.set_json(LEGACY_HISTORY_KEY, [
        {"t": T0 + 2000, "tfuelUsd": 0.06, "thetaUsd": 1.3},
        {"t": T0, "tfuelUsd": 0.05, "thetaUsd": 1.2},
        {"t": T0 + 1000, "tfuelUsd": None, "thetaUsd": 1.25},
    ])

    history = PriceHistoryRecorder(store).history

    assert [p.t for p in history.tfuel] == [T0, T0 + 2000]
    assert [p.price for p in history.theta] == [1.2, 1.3]
    assert store.get_json(HISTORY_KEY)["tfuel"][0] == {"t": T0, "price": 0.05}


def test_v2_takes_precedence_over_v1():
    store = MemoryStore()
    store.set_json(LEGACY_HISTORY_KEY, [{"t": T0, "tfuelUsd": 0.05, "thetaUsd": 1.2}])
    store.set_json(HISTORY_KEY, {"tfuel": [], "theta": "bad"})

    history = PriceHistoryRecorder(store).history

    assert history.tfuel == [] and history.theta == []


def test_backfill_merges_and_caps():
    store = MemoryStore()
    clock = Clock()
    recorder = PriceHistoryRecorder(store, clock=clock)
    recorder.observe(0.05, 1.2)

    hourly = 3_600_000
    tfuel = [{"t": T0 - i * hourly, "price": 0.04} for i in range(1000)]
    theta = [{"t": T0 - i * hourly, "price": 1.0} for i in range(1000)]

    assert recorder.backfill(tfuel, theta) is True
    assert len(recorder.history.tfuel) == BACKFILL_CAP
    # backfilled point wins on the shared timestamp
    assert recorder.history.tfuel[-1].t == T0
    assert recorder.history.tfuel[-1].price == 0.04


def test_backfill_needs_two_points_per_series():
    recorder = PriceHistoryRecorder(MemoryStore(), clock=Clock())
    assert recorder.backfill([{"t": 1, "price": 1.0}, {"t": 2, "price": 1.0}], [{"t": 1, "price": 2.0}]) is False
    assert recorder.backfill(None, None) is False
    assert recorder.history.tfuel == []

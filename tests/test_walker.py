"""
Tests for the paginated coinbase walker and the batch reward services.

Explorer traffic goes through FakeUpstream (conftest), which records every
page request so stop decisions can be asserted exactly.
"""

from __future__ import annotations

import pytest

from tfuel_rewards.core.exceptions import UpstreamError
from tfuel_rewards.rewards.service import WalkLimits, compute_earned, compute_rewards
from tfuel_rewards.rewards.walker import StopReason, StopRule, TransactionWalker

from conftest import ADDR_A, ADDR_B, DAY, ONE_TFUEL, tx


async def _drain(walker: TransactionWalker) -> list:
    return [page async for page in walker.pages()]


@pytest.mark.asyncio
async def test_windowed_walk_stops_when_page_crosses_30d(explorer, upstream, now_sec):
    """Two pages; page 2's oldest record is 35 days old, so page 3 is never requested."""
    page1 = [tx(ADDR_A, now_sec - (1 + i * 19 / 49) * DAY) for i in range(50)]
    page2 = [tx(ADDR_A, now_sec - d * DAY) for d in (25, 26, 27, 28, 29, 31, 32, 33, 34, 35)]
    page3 = [tx(ADDR_A, now_sec - 40 * DAY)]
    upstream.tx_pages[ADDR_A] = [page1, page2, page3]
    upstream.accounts[ADDR_A] = str(100 * ONE_TFUEL)

    [result] = await compute_rewards(explorer, [ADDR_A], WalkLimits(), now_sec=now_sec)

    assert upstream.pages_requested(ADDR_A) == [1, 2]
    assert result.rewards_30d == pytest.approx(55.0)
    assert result.rewards_7d == pytest.approx(16.0)
    assert result.rewards_30d >= result.rewards_7d
    assert result.tfuel_balance == 100.0
    assert result.last_reward_at == int(now_sec - DAY)


@pytest.mark.asyncio
async def test_since_walk_stops_after_page_with_older_record(explorer, upstream):
    """Page 3 holds a record below `since`: page 3 is counted, page 4 is never fetched."""
    since = 1_700_000_000
    fresh = [tx(ADDR_A, since + 10_000 + i) for i in range(5)]
    page3 = [
        tx(ADDR_A, since + 500),
        tx(ADDR_A, since + 100),
        tx(ADDR_A, since - 10),
        tx(ADDR_A, since),
    ]
    upstream.tx_pages[ADDR_A] = [fresh, fresh, page3, fresh]
    upstream.total_pages[ADDR_A] = 10

    [result] = await compute_earned(explorer, [ADDR_A], since, WalkLimits(max_pages=40))

    assert upstream.pages_requested(ADDR_A) == [1, 2, 3]
    assert result.pages_fetched == 3
    # 5 + 5 fresh records, plus the three page-3 records at or after since
    assert result.earned == pytest.approx(13.0)
    assert result.last_reward_at == since + 10_004


@pytest.mark.asyncio
async def test_walk_never_exceeds_max_pages(explorer, upstream, now_sec):
    upstream.tx_pages[ADDR_A] = [[tx(ADDR_A, now_sec - 60)] for _ in range(10)]
    upstream.total_pages[ADDR_A] = 100
    walker = TransactionWalker(
        explorer, ADDR_A, boundary_sec=now_sec - 30 * DAY, stop_rule=StopRule.OLDEST_ON_PAGE, max_pages=3
    )

    pages = await _drain(walker)

    assert len(pages) == 3
    assert walker.pages_fetched == 3
    assert walker.stop_reason is StopReason.MAX_PAGES
    assert upstream.pages_requested(ADDR_A) == [1, 2, 3]


@pytest.mark.asyncio
async def test_empty_first_page_is_no_data(explorer, upstream):
    """An empty feed yields nothing and is not an error."""
    [result] = await compute_earned(explorer, [ADDR_A], 1_700_000_000, WalkLimits())

    assert result.earned is None
    assert result.last_reward_at is None
    assert result.pages_fetched == 1


@pytest.mark.asyncio
async def test_walk_stops_on_reported_last_page(explorer, upstream, now_sec):
    upstream.tx_pages[ADDR_A] = [[tx(ADDR_A, now_sec - 60)], [tx(ADDR_A, now_sec - 120)]]
    upstream.total_pages[ADDR_A] = 1
    walker = TransactionWalker(explorer, ADDR_A, boundary_sec=now_sec - DAY, stop_rule=StopRule.ANY_RECORD)

    await _drain(walker)

    assert walker.stop_reason is StopReason.LAST_PAGE
    assert upstream.pages_requested(ADDR_A) == [1]


@pytest.mark.asyncio
async def test_malformed_records_are_skipped(explorer, upstream, now_sec):
    bad_amount = tx(ADDR_A, now_sec - 100, "-1")
    bad_timestamp = tx(ADDR_A, now_sec - 100)
    bad_timestamp["timestamp"] = "not-a-number"
    other_address = tx(ADDR_B, now_sec - 100)
    upstream.tx_pages[ADDR_A] = [[
        tx(ADDR_A, now_sec - 50, 2 * ONE_TFUEL),
        "junk",
        {"timestamp": "1", "data": {"outputs": "bad"}},
        bad_amount,
        bad_timestamp,
        other_address,
        tx(ADDR_A, now_sec - 200, "0"),
    ]]

    [result] = await compute_earned(explorer, [ADDR_A], now_sec - DAY, WalkLimits())

    assert result.earned == pytest.approx(2.0)


@pytest.mark.asyncio
async def test_oversized_amount_is_skipped(explorer, upstream, now_sec):
    """An amount too large for a float drops that record only."""
    upstream.tx_pages[ADDR_A] = [[
        tx(ADDR_A, now_sec - 50, 2 * ONE_TFUEL),
        tx(ADDR_A, now_sec - 60, "1" + "0" * 400),
        tx(ADDR_A, now_sec - 70, "9" * 5000),
    ]]

    [result] = await compute_earned(explorer, [ADDR_A], now_sec - DAY, WalkLimits())

    assert result.earned == pytest.approx(2.0)
    assert result.last_reward_at == now_sec - 50


@pytest.mark.asyncio
async def test_page_of_invalid_records_does_not_end_the_walk(explorer, upstream):
    """Only an empty upstream body stops the walk; invalid entries still count as a page."""
    since = 1_700_000_000
    invalid = [{"timestamp": str(since + 1000 - i), "data": {"outputs": "bad"}} for i in range(3)]
    upstream.tx_pages[ADDR_A] = [invalid, [tx(ADDR_A, since + 10, 3 * ONE_TFUEL)]]
    upstream.total_pages[ADDR_A] = 2

    [result] = await compute_earned(explorer, [ADDR_A], since, WalkLimits())

    assert upstream.pages_requested(ADDR_A) == [1, 2]
    assert result.earned == pytest.approx(3.0)
    assert result.pages_fetched == 2


@pytest.mark.asyncio
async def test_oldest_timestamp_comes_from_last_raw_entry(explorer, upstream, now_sec):
    """A trailing invalid entry still sets the oldest timestamp; an unparseable one keeps the previous value."""
    old_invalid = {"timestamp": str(int(now_sec - 40 * DAY)), "data": {"outputs": "bad"}}
    upstream.tx_pages[ADDR_A] = [[tx(ADDR_A, now_sec - DAY), old_invalid], [tx(ADDR_A, now_sec - 50 * DAY)]]
    upstream.total_pages[ADDR_A] = 10
    walker = TransactionWalker(
        explorer, ADDR_A, boundary_sec=now_sec - 30 * DAY, stop_rule=StopRule.OLDEST_ON_PAGE
    )

    await _drain(walker)

    assert walker.stop_reason is StopReason.BOUNDARY
    assert upstream.pages_requested(ADDR_A) == [1]

    no_timestamp = {"data": {"outputs": "bad"}}
    upstream.tx_pages[ADDR_B] = [
        [tx(ADDR_B, now_sec - 35 * DAY)],
        [tx(ADDR_B, now_sec - 36 * DAY), no_timestamp],
    ]
    upstream.total_pages[ADDR_B] = 10
    walker = TransactionWalker(
        explorer, ADDR_B, boundary_sec=now_sec - 40 * DAY, stop_rule=StopRule.OLDEST_ON_PAGE, max_pages=2
    )

    await _drain(walker)

    assert walker.stop_reason is StopReason.MAX_PAGES
    assert walker._oldest_seen == now_sec - 35 * DAY

@pytest.mark.asyncio
async def test_batch_keeps_input_order(explorer, upstream, now_sec):
    upstream.accounts[ADDR_A] = str(ONE_TFUEL)
    upstream.accounts[ADDR_B] = str(2 * ONE_TFUEL)
    upstream.stakes[ADDR_B] = [
        {"amount": str(1000 * ONE_TFUEL), "withdrawn": False},
        {"amount": str(500 * ONE_TFUEL), "withdrawn": True},
    ]

    results = await compute_rewards(explorer, [ADDR_B, ADDR_A], WalkLimits(), now_sec=now_sec)

    assert [r.address for r in results] == [ADDR_B, ADDR_A]
    assert results[0].staked_theta == 1000.0
    assert results[1].staked_theta is None
    assert results[1].rewards_7d is None


@pytest.mark.asyncio
async def test_one_failing_address_fails_the_batch(explorer, upstream, now_sec):
    upstream.explorer_status["stake"] = 503

    with pytest.raises(UpstreamError, match="Theta Explorer HTTP 503"):
        await compute_rewards(explorer, [ADDR_A, ADDR_B], WalkLimits(), now_sec=now_sec)

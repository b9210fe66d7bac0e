"""
Batch reward services behind GET /rewards and GET /earned.

Addresses in a batch are processed concurrently (asyncio.gather keeps input
order); each address's feed walk is sequential. A failure for any address
fails the whole batch.
"""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass

from tfuel_rewards.core.clock import epoch_sec
from tfuel_rewards.core.exceptions import InputValidationError
from tfuel_rewards.core.units import wei_to_number
from tfuel_rewards.explorer.client import ExplorerClient
from tfuel_rewards.rewards.models import AddressEarned, AddressRewards
from tfuel_rewards.rewards.walker import StopRule, TransactionWalker
from tfuel_rewards.rewards.windower import (
    WINDOW_7D,
    WINDOW_30D,
    WINDOW_SINCE,
    RewardWindow,
    as_json_number,
    since_window,
    staked_amount,
    trailing_windows,
)
from tfuel_rewards.rewards_logging import bind_address


@dataclass(frozen=True)
class WalkLimits:
    page_limit: int = 50
    max_pages: int = 25
    decimals: int = 18


async def _walk_into(walker: TransactionWalker, window: RewardWindow) -> None:
    async for page in walker.pages():
        window.ingest(page)


async def address_rewards(
    explorer: ExplorerClient,
    address: str,
    now_sec: float,
    limits: WalkLimits,
) -> AddressRewards:
    """Balance, stake and 7d/30d rewards for one address."""
    bounds = trailing_windows(now_sec)
    window = RewardWindow(address, bounds, decimals=limits.decimals)
    walker = TransactionWalker(
        explorer,
        address,
        boundary_sec=bounds[WINDOW_30D],
        stop_rule=StopRule.OLDEST_ON_PAGE,
        page_limit=limits.page_limit,
        max_pages=limits.max_pages,
    )
    account, stake, _ = await asyncio.gather(
        explorer.get_account(address),
        explorer.get_stake(address),
        _walk_into(walker, window),
    )

    tfuelwei = account.tfuelwei
    tfuel_balance = wei_to_number(tfuelwei, limits.decimals) if tfuelwei else None

    bind_address(address).info(
        "rewards_computed",
        pages_fetched=walker.pages_fetched,
        records_counted=window.records_counted,
    )
    return AddressRewards(
        address=address,
        tfuel_balance=tfuel_balance,
        staked_theta=staked_amount(stake, limits.decimals),
        rewards_7d=window.total(WINDOW_7D),
        rewards_30d=window.total(WINDOW_30D),
        last_reward_at=window.last_reward_at_json,
    )


async def compute_rewards(
    explorer: ExplorerClient,
    addresses: list[str],
    limits: WalkLimits,
    now_sec: float | None = None,
) -> list[AddressRewards]:
    now = now_sec if now_sec is not None else epoch_sec()
    return list(
        await asyncio.gather(*(address_rewards(explorer, a, now, limits) for a in addresses))
    )


async def address_earned(
    explorer: ExplorerClient,
    address: str,
    since_sec: float,
    limits: WalkLimits,
) -> AddressEarned:
    """Coinbase rewards paid to `address` at or after since_sec."""
    window = RewardWindow(address, since_window(since_sec), decimals=limits.decimals)
    walker = TransactionWalker(
        explorer,
        address,
        boundary_sec=since_sec,
        stop_rule=StopRule.ANY_RECORD,
        page_limit=limits.page_limit,
        max_pages=limits.max_pages,
    )
    await _walk_into(walker, window)

    bind_address(address).info(
        "earned_computed",
        since_sec=since_sec,
        pages_fetched=walker.pages_fetched,
        stop_reason=walker.stop_reason.value if walker.stop_reason else None,
    )
    return AddressEarned(
        address=address,
        earned=window.total(WINDOW_SINCE),
        last_reward_at=window.last_reward_at_json,
        pages_fetched=walker.pages_fetched,
    )


async def compute_earned(
    explorer: ExplorerClient,
    addresses: list[str],
    since_sec: float,
    limits: WalkLimits,
) -> list[AddressEarned]:
    return list(
        await asyncio.gather(*(address_earned(explorer, a, since_sec, limits) for a in addresses))
    )


def parse_since(raw: str | None) -> int | float:
    """
    Parse the `since` query value (UNIX seconds). Must be finite and > 0.

    Raises InputValidationError("Invalid since").
    """
    try:
        value = float((raw or "").strip())
    except ValueError:
        raise InputValidationError("Invalid since") from None
    if not math.isfinite(value) or value <= 0:
        raise InputValidationError("Invalid since")
    return as_json_number(value)

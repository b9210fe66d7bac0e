"""
FastAPI router: GET /rewards, GET /earned.

Validation happens before the cache lookup; a cached payload is served while
younger than the endpoint's TTL (45s /rewards, 120s /earned by default).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from tfuel_rewards.api_server.dependencies import Services, get_services
from tfuel_rewards.core.addresses import validate_address_batch
from tfuel_rewards.core.cache import build_cache_key
from tfuel_rewards.core.clock import epoch_ms
from tfuel_rewards.rewards.models import EarnedResponse, RewardsResponse
from tfuel_rewards.rewards.service import compute_earned, compute_rewards, parse_since
from tfuel_rewards.rewards_logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["rewards"])


@router.get("/rewards", response_model=RewardsResponse)
async def get_rewards(
    addresses: str | None = Query(None, description="Comma-separated 0x addresses"),
    services: Services = Depends(get_services),
) -> RewardsResponse:
    """
    TFUEL balance, staked THETA and trailing 7d/30d coinbase rewards per address.

    Zero sums come back as null. Any upstream failure fails the whole batch (502).
    """
    address_list = validate_address_batch(addresses)
    key = build_cache_key(address_list)
    cached = services.rewards_cache.get(key)
    if cached is not None:
        logger.info("rewards_cache_hit", address_count=len(address_list))
        return cached

    results = await compute_rewards(services.explorer, address_list, services.rewards_limits)
    payload = RewardsResponse(addresses=address_list, results=results, fetched_at=epoch_ms())
    services.rewards_cache.set(key, payload)
    logger.info("rewards_served", address_count=len(address_list), cache_hit=False)
    return payload


@router.get("/earned", response_model=EarnedResponse)
async def get_earned(
    addresses: str | None = Query(None, description="Comma-separated 0x addresses"),
    since: str | None = Query(None, description="UNIX seconds"),
    services: Services = Depends(get_services),
) -> EarnedResponse:
    """Coinbase rewards per address since a UNIX timestamp, with pages walked."""
    address_list = validate_address_batch(addresses)
    since_sec = parse_since(since)
    key = build_cache_key(address_list, since=since_sec)
    cached = services.earned_cache.get(key)
    if cached is not None:
        logger.info("earned_cache_hit", address_count=len(address_list), since_sec=since_sec)
        return cached

    results = await compute_earned(services.explorer, address_list, since_sec, services.earned_limits)
    payload = EarnedResponse(
        since_sec=since_sec,
        addresses=address_list,
        results=results,
        fetched_at=epoch_ms(),
    )
    services.earned_cache.set(key, payload)
    logger.info(
        "earned_served",
        address_count=len(address_list),
        since_sec=since_sec,
        pages_fetched=sum(r.pages_fetched for r in results),
    )
    return payload

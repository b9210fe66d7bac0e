"""Response models for GET /rewards and GET /earned (camelCase on the wire)."""

from __future__ import annotations

from typing import Union

from pydantic import BaseModel, ConfigDict, Field

JsonNumber = Union[int, float]


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class AddressRewards(WireModel):
    """Windowed rewards for one address; null means "no signal"."""

    address: str
    tfuel_balance: float | None = Field(None, alias="tfuelBalance")
    staked_theta: float | None = Field(None, alias="stakedTheta")
    rewards_7d: float | None = Field(None, alias="rewards7d")
    rewards_30d: float | None = Field(None, alias="rewards30d")
    last_reward_at: JsonNumber | None = Field(None, alias="lastRewardAt", description="UNIX seconds")


class RewardsResponse(WireModel):
    addresses: list[str]
    results: list[AddressRewards]
    fetched_at: int = Field(..., alias="fetchedAt", description="Epoch milliseconds")


class AddressEarned(WireModel):
    """Rewards earned since a timestamp for one address."""

    address: str
    earned: float | None = None
    last_reward_at: JsonNumber | None = Field(None, alias="lastRewardAt")
    pages_fetched: int = Field(0, alias="pagesFetched")


class EarnedResponse(WireModel):
    since_sec: JsonNumber = Field(..., alias="sinceSec")
    addresses: list[str]
    results: list[AddressEarned]
    fetched_at: int = Field(..., alias="fetchedAt")

"""
Pydantic models for Theta explorer payloads.

    GET /account/{address}   -> {body: {balance: {tfuelwei, thetawei}}}
    GET /stake/{address}     -> {body: {sourceRecords: [{amount, withdrawn}]}}
    GET /accounttx/{address} -> {body: [{timestamp, data: {outputs: [...]}}],
                                 totalPageNumber, currentPageNumber}

Amounts stay as raw base-unit strings here; conversion happens in the windower.
"""

from __future__ import annotations

import math
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tfuel_rewards.core.exceptions import UpstreamDataError
from tfuel_rewards.rewards_logging import get_logger

logger = get_logger(__name__)

RawAmount = Union[str, int, None]


class ExplorerModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# -----------------------------------------------------------------------------
# Account / stake
# -----------------------------------------------------------------------------


class Balance(ExplorerModel):
    tfuelwei: RawAmount = None
    thetawei: RawAmount = None


class AccountBody(ExplorerModel):
    address: str | None = None
    balance: Balance | None = None


class AccountResponse(ExplorerModel):
    type: str | None = None
    body: AccountBody | None = None

    @property
    def tfuelwei(self) -> RawAmount:
        if self.body is None or self.body.balance is None:
            return None
        return self.body.balance.tfuelwei


class StakeRecord(ExplorerModel):
    type: str | None = None
    amount: RawAmount = None
    withdrawn: bool | None = None


class StakeResponse(ExplorerModel):
    type: str | None = None
    records: list[StakeRecord] = Field(default_factory=list)


# -----------------------------------------------------------------------------
# Account transactions (coinbase feed)
# -----------------------------------------------------------------------------


def parse_timestamp_sec(raw: Any) -> float | None:
    """Positive finite UNIX seconds, or None (missing, zero, non-numeric)."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        ts = float(raw)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(ts) or ts <= 0:
        return None
    return ts


class Coins(ExplorerModel):
    tfuelwei: RawAmount = None
    thetawei: RawAmount = None


class TxOutput(ExplorerModel):
    address: str | None = None
    coins: Coins | None = None


class TxData(ExplorerModel):
    outputs: list[TxOutput] | None = None


class TransactionRecord(ExplorerModel):
    timestamp: Union[str, int, float, None] = None
    type: Union[int, str, None] = None
    data: TxData | None = None

    def timestamp_sec(self) -> float | None:
        return parse_timestamp_sec(self.timestamp)

    def self_output_tfuelwei(self, address: str) -> RawAmount:
        """tfuelwei of the first output paying `address` (already lowercase)."""
        outputs = self.data.outputs if self.data and self.data.outputs else []
        for out in outputs:
            if out.address is not None and out.address.lower() == address:
                return out.coins.tfuelwei if out.coins else None
        return None


class AccountTxPage(ExplorerModel):
    records: list[TransactionRecord] = Field(default_factory=list)
    total_pages: int | None = None
    current_page: int | None = None
    skipped_records: int = 0
    # entries in the upstream body before per-record validation
    raw_count: int = 0
    last_raw_timestamp: float | None = None

    def is_empty(self) -> bool:
        return self.raw_count == 0

    def oldest_timestamp(self) -> float | None:
        """Timestamp of the last (oldest) body entry, valid or not, when parseable."""
        return self.last_raw_timestamp


# -----------------------------------------------------------------------------
# Boundary parsing
# -----------------------------------------------------------------------------


def _require_object(payload: Any, service: str, what: str) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise UpstreamDataError(service, f"unexpected {what} payload ({type(payload).__name__})")
    return payload


def _optional_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        n = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return int(n) if math.isfinite(n) else None


def parse_account(payload: Any, service: str) -> AccountResponse:
    """Top-level must be an object; a malformed body only nulls the balance."""
    obj = _require_object(payload, service, "account")
    try:
        return AccountResponse.model_validate(obj)
    except ValidationError as e:
        logger.warning("explorer_account_shape_invalid", errors=e.error_count())
        return AccountResponse(type=obj.get("type") if isinstance(obj.get("type"), str) else None)


def parse_stake(payload: Any, service: str) -> StakeResponse:
    """Keep every well-formed source record; drop the rest."""
    obj = _require_object(payload, service, "stake")
    body = obj.get("body")
    raw_records = body.get("sourceRecords") if isinstance(body, dict) else None
    records: list[StakeRecord] = []
    for raw in raw_records if isinstance(raw_records, list) else []:
        try:
            records.append(StakeRecord.model_validate(raw))
        except ValidationError:
            continue
    return StakeResponse(type=obj.get("type") if isinstance(obj.get("type"), str) else None, records=records)


def _raw_timestamp(raw: Any) -> float | None:
    return parse_timestamp_sec(raw.get("timestamp")) if isinstance(raw, dict) else None


def parse_account_tx_page(payload: Any, service: str) -> AccountTxPage:
    """
    Parse one feed page. Record order is preserved (newest first).

    A missing/non-list body is an empty page; malformed records are counted and skipped.
    """
    obj = _require_object(payload, service, "accounttx")
    body = obj.get("body")
    entries = body if isinstance(body, list) else []
    records: list[TransactionRecord] = []
    skipped = 0
    for raw in entries:
        try:
            records.append(TransactionRecord.model_validate(raw))
        except ValidationError:
            skipped += 1
    if skipped:
        logger.debug("explorer_tx_records_skipped", skipped=skipped)
    return AccountTxPage(
        records=records,
        total_pages=_optional_int(obj.get("totalPageNumber")),
        current_page=_optional_int(obj.get("currentPageNumber")),
        skipped_records=skipped,
        raw_count=len(entries),
        last_raw_timestamp=_raw_timestamp(entries[-1]) if entries else None,
    )

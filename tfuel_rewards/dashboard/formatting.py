"""Display formatting for dashboard and CLI output. Null metrics render as an em dash."""

from __future__ import annotations

import math
from datetime import datetime

NULL_DISPLAY = "—"


def _is_missing(v: float | None) -> bool:
    return v is None or (isinstance(v, float) and math.isnan(v))


def format_money(v: float | None, currency: str = "USD") -> str:
    """$1,234.56 for USD, `1,234.56 USDC` otherwise; values below 1 keep up to 6 decimals."""
    if _is_missing(v):
        return NULL_DISPLAY
    digits = 6 if v < 1 else 2
    text = f"{v:,.{digits}f}"
    if digits == 6:
        text = text.rstrip("0")
        if text.endswith("."):
            text += "00"
    if currency.upper() == "USD":
        return f"-${text[1:]}" if text.startswith("-") else f"${text}"
    return f"{text} {currency.upper()}"


def format_token(v: float | None, symbol: str = "TFUEL", digits: int = 4) -> str:
    if _is_missing(v):
        return NULL_DISPLAY
    return f"{v:,.{digits}f} {symbol}"


def format_timestamp_sec(ts: float | None) -> str:
    if _is_missing(ts):
        return NULL_DISPLAY
    return datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M")

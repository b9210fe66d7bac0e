"""Hex account address parsing and validation (0x + 40 lowercase hex)."""

from __future__ import annotations

import re

from tfuel_rewards.core.exceptions import InputValidationError

ADDRESS_RE = re.compile(r"^0x[a-f0-9]{40}$")


def parse_address_list(raw: str | None) -> list[str]:
    """Split a comma list, trim, drop empties and lowercase. Order and duplicates are kept."""
    return [s.strip().lower() for s in (raw or "").split(",") if s.strip()]


def is_valid_address(s: str) -> bool:
    """True when s already has the canonical lowercase shape."""
    return bool(ADDRESS_RE.match(s))


def validate_address_batch(raw: str | None) -> list[str]:
    """
    Parse and validate the whole batch. All-or-nothing: one bad entry rejects the request.

    Raises InputValidationError("Missing addresses") / ("Invalid address").
    """
    addresses = parse_address_list(raw)
    if not addresses:
        raise InputValidationError("Missing addresses")
    if not all(is_valid_address(a) for a in addresses):
        raise InputValidationError("Invalid address")
    return addresses

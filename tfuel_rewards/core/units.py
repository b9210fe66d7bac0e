"""
Base-unit ("wei") to display-number conversion.

Display values keep 6 fractional digits, truncated (not rounded):
floor(base / 10**d) + floor((base % 10**d) * 10**6 / 10**d) / 10**6.
"""

from __future__ import annotations

import re

FRACTION_SCALE = 1_000_000

_DIGITS_RE = re.compile(r"^[0-9]+$")


def parse_base_units(raw: object) -> int | None:
    """Parse a non-negative integer amount from str/int; None when unparseable."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw if raw >= 0 else None
    if not isinstance(raw, str):
        return None
    s = raw.strip()
    if not _DIGITS_RE.match(s):
        return None
    try:
        return int(s)
    except ValueError:
        # past the interpreter's int string conversion limit
        return None


def wei_to_number(base_units: object, decimals: int = 18) -> float | None:
    """
    Convert an arbitrary-precision base-unit amount to a float display value.

    Returns None when base_units is not a non-negative integer (str or int)
    or the result does not fit in a float.
    """
    value = parse_base_units(base_units)
    if value is None or decimals < 0:
        return None
    denom = 10 ** decimals
    whole, frac = divmod(value, denom)
    frac6 = (frac * FRACTION_SCALE) // denom
    try:
        return float(whole) + frac6 / FRACTION_SCALE
    except OverflowError:
        return None

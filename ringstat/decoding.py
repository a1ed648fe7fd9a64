"""
Scaled integer decoding for RingStat.

The scoring hardware stores every measurement as an integer whose last
digit(s) are the fractional part:

    Ring01    105   -> 10.5 rings      (scale 10)
    Teiler01  1751  -> 175.1 mm        (scale 10)
    x / y     -1234 -> -12.34 mm       (scale 100)

Missing values decode to 0 rather than raising.
"""

import math
from decimal import Decimal
from typing import Optional, Union

from ringstat.utils.constants import COORDINATE_SCALE, RING_SCALE, TEILER_SCALE

RawValue = Optional[Union[int, float, str, Decimal]]


def decode(raw: RawValue, scale: int) -> float:
    """Convert a scaled integer to its physical value.

    Args:
        raw: Scaled value as delivered by the database driver.
        scale: Scale factor (10 or 100).

    Returns:
        raw / scale, or 0.0 when raw is None or falsy.
    """
    if not raw:
        return 0.0
    return float(raw) / scale


def encode(value: float, scale: int) -> int:
    """Convert a physical value back to its scaled integer."""
    return int(round(value * scale))


def decode_ring01(raw: RawValue) -> float:
    return decode(raw, RING_SCALE)


def decode_teiler01(raw: RawValue) -> float:
    return decode(raw, TEILER_SCALE)


def decode_coordinate(raw: RawValue) -> float:
    return decode(raw, COORDINATE_SCALE)


def truncate_ring(raw: RawValue) -> int:
    """Integer ring from a tenths-scaled field (2580 -> 258, 105 -> 10)."""
    return int(math.floor(decode(raw, RING_SCALE)))

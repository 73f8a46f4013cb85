"""Normalization helpers.

Centralizes strict numeric parsing, coordinate conversion, and unit handling
for sentence fields. Every helper raises :class:`MalformedSentenceError`
instead of guessing, so one bad field drops the whole sentence.
"""

from __future__ import annotations

import math
import re

from nmeabridge._constants import KMH_TO_KNOTS, MPS_TO_KNOTS
from nmeabridge.exceptions import MalformedSentenceError

_HEMISPHERES: dict[str, tuple[str, str]] = {
    "latitude": ("N", "S"),
    "longitude": ("E", "W"),
}
_LIMITS: dict[str, float] = {"latitude": 90.0, "longitude": 180.0}
_DECIMAL = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)", re.ASCII)


def field(parts: list[str], index: int) -> str | None:
    """Return field *index* stripped, or ``None`` when absent or empty."""
    if index >= len(parts):
        return None
    value = parts[index].strip()
    return value if value else None


def optional_float(value: str | None) -> float | None:
    """Parse a present field as a finite float; ``None`` stays ``None``."""
    if value is None or value == "":
        return None
    # Plain decimal only: float() would also take "1_0", "1e3", " 1" and "nan".
    if not _DECIMAL.fullmatch(value):
        raise MalformedSentenceError(f"non-numeric field {value!r}")
    result = float(value)
    if math.isinf(result):
        raise MalformedSentenceError(f"non-finite field {value!r}")
    return result


def parse_coordinate(raw: str | None, hemisphere: str | None, *, axis: str) -> float:
    """Convert ``DDDMM.MMMM`` plus hemisphere to signed decimal degrees.

    Degrees are all digits before the last two preceding the decimal point;
    the remainder is minutes. ``S`` and ``W`` negate the result.
    """
    if not raw or not hemisphere:
        raise MalformedSentenceError(f"missing {axis}")
    positive, negative = _HEMISPHERES[axis]
    if hemisphere not in (positive, negative):
        raise MalformedSentenceError(f"bad {axis} hemisphere {hemisphere!r}")

    dot = raw.find(".")
    if dot <= 2:
        raise MalformedSentenceError(f"bad {axis} field {raw!r}")
    degrees_text = raw[: dot - 2]
    if not degrees_text.isdigit():
        raise MalformedSentenceError(f"bad {axis} degrees {raw!r}")
    degrees = int(degrees_text)
    minutes = optional_float(raw[dot - 2 :])
    if minutes is None or not 0.0 <= minutes < 60.0:
        raise MalformedSentenceError(f"bad {axis} minutes {raw!r}")

    decimal = degrees + minutes / 60.0
    if decimal > _LIMITS[axis]:
        raise MalformedSentenceError(f"{axis} out of range: {decimal}")
    return -decimal if hemisphere == negative else decimal


def to_knots(value: float, unit: str | None) -> float:
    """Convert a speed to knots. ``N`` or no unit means knots already."""
    if unit is None or unit == "N":
        return value
    if unit == "M":
        return value * MPS_TO_KNOTS
    if unit == "K":
        return value * KMH_TO_KNOTS
    # An unknown unit is not read as knots; the sentence is dropped instead.
    raise MalformedSentenceError(f"unknown speed unit {unit!r}")

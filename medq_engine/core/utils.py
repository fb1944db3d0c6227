"""Numeric and timestamp helpers shared by the engine components."""

from __future__ import annotations

import math
from datetime import datetime, timezone

SECONDS_PER_DAY = 86_400


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp value to [lo, hi]; when lo > hi the ceiling wins."""
    return min(hi, max(lo, value))


def clamp_int(value: float, lo: int, hi: int) -> int:
    """Floor value and clamp it to [lo, hi]. Non-finite input maps to lo."""
    if value is None or not math.isfinite(value):
        return lo
    return int(min(hi, max(lo, math.floor(value))))


def finite_or(value: float, fallback: float) -> float:
    """Return value unless it is NaN or infinite."""
    if value is None or not math.isfinite(value):
        return fallback
    return value


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive timestamps as UTC; aware ones pass through."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


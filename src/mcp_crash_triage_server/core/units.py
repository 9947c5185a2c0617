"""Exact size, percentage and date arithmetic used by the crash model and report."""

from __future__ import annotations

import logging
import re
import sys
from datetime import datetime
from decimal import ROUND_HALF_EVEN, Decimal

from .regex import OPTION_SIZE_BYTES

LOGGER = logging.getLogger(__name__)

_UNIT_POWERS = {"b": 0, "k": 1, "m": 2, "g": 3, "t": 4}
_SIZE_RE = re.compile(r"(?P<value>\d+(?:[.,]\d+)?)(?P<units>[bBkKmMgGtT])")
_OPTION_SIZE_RE = re.compile(OPTION_SIZE_BYTES)

_MONTHS = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

MILLIS_PER_DAY = 86_400_000

# Returned by calc_percent when a non-zero part is divided by zero.
PERCENT_OVERFLOW = sys.maxsize


def _unit_power(units: str) -> int:
    try:
        return _UNIT_POWERS[units.lower()]
    except KeyError as e:
        raise ValueError(f"Unexpected size units: {units!r}") from e


def convert_size(value: int | Decimal, from_units: str, to_units: str) -> int:
    """Convert a size between b/k/m/g/t (1024 per step), rounding half-even to an int."""
    step = _unit_power(from_units) - _unit_power(to_units)
    size = Decimal(value) * (Decimal(1024) ** step)
    return int(size.quantize(Decimal(1), rounding=ROUND_HALF_EVEN))


def parse_size(text: str, to_units: str = "b") -> int:
    """Parse "512k" / "7.6G" into the requested units (bytes by default)."""
    m = _SIZE_RE.fullmatch(text.strip())
    if not m:
        raise ValueError(f"Invalid size: {text!r}")
    value = Decimal(m.group("value").replace(",", "."))
    return convert_size(value, m.group("units"), to_units)


def option_size_bytes(value: str | None) -> int | None:
    """Return the byte count for a JVM option value such as "2g", "1t" or "1048576"."""
    if value is None:
        return None
    m = _OPTION_SIZE_RE.fullmatch(value)
    if not m:
        return None
    return convert_size(int(m.group("value")), m.group("units") or "b", "b")


def calc_percent(part: int, whole: int) -> int:
    """Whole-number percentage of part in whole, rounded half-even."""
    if whole == 0:
        return 100 if part == 0 else PERCENT_OVERFLOW
    percent = Decimal(part) * 100 / Decimal(whole)
    return int(percent.quantize(Decimal(1), rounding=ROUND_HALF_EVEN))


def parse_build_date(
    month: str, day: str | int, year: str | int, hour: str | int, minute: str | int, second: str | int
) -> datetime | None:
    """Build a naive datetime from "Jan 18 2021 00:04:32" parts.

    Returns None for an unknown month or an impossible date/time ("Feb 31", hour 99).
    """
    month_no = _MONTHS.get(month.lower())
    if month_no is None:
        return None
    try:
        return datetime(int(year), month_no, int(day), int(hour), int(minute), int(second))
    except ValueError:
        LOGGER.debug("Ignoring invalid build date: %s %s %s %s:%s:%s", month, day, year, hour, minute, second)
        return None


def day_diff(start: datetime | None, end: datetime | None) -> int:
    """Whole days from start to end, truncating toward zero (0 if either is missing)."""
    if start is None or end is None:
        return 0
    delta = end - start
    millis = (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000
    if millis < 0:
        return -((-millis) // MILLIS_PER_DAY)
    return millis // MILLIS_PER_DAY

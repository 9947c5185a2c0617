from __future__ import annotations

from datetime import datetime

import pytest

from mcp_crash_triage_server.core.units import (
    PERCENT_OVERFLOW,
    calc_percent,
    convert_size,
    day_diff,
    option_size_bytes,
    parse_build_date,
    parse_size,
)


def test_convert_size_rounds_half_even() -> None:
    assert convert_size(1, "g", "m") == 1024
    assert convert_size(1536, "k", "m") == 2
    assert convert_size(2560, "k", "m") == 2
    assert convert_size(3, "M", "k") == 3072


def test_convert_size_rejects_unknown_units() -> None:
    with pytest.raises(ValueError, match="Unexpected size units"):
        convert_size(1, "x", "b")


def test_parse_size_handles_decimal_and_comma() -> None:
    assert parse_size("512k") == 524288
    assert parse_size("7.6G", "m") == 7782
    assert parse_size("7,6G", "m") == 7782
    assert parse_size("16266068k", "m") == 15885


def test_parse_size_megabytes() -> None:
    assert parse_size("2048m") == 2048 * 1024 * 1024
    assert parse_size("2048M", "g") == 2


def test_parse_size_invalid() -> None:
    with pytest.raises(ValueError, match="Invalid size"):
        parse_size("lots")


def test_option_size_bytes() -> None:
    assert option_size_bytes("2g") == 2 * 1024**3
    assert option_size_bytes("1048576") == 1048576
    assert option_size_bytes("128K") == 131072
    assert option_size_bytes("abc") is None
    assert option_size_bytes(None) is None


def test_option_size_bytes_suffixes() -> None:
    assert option_size_bytes("2048m") == 2048 * 1024**2
    assert option_size_bytes("1g") == 1024**3
    assert option_size_bytes("1G") == 1024**3
    assert option_size_bytes("1t") == 1024**4
    assert option_size_bytes("1T") == 1024**4
    assert option_size_bytes("512") == 512
    assert option_size_bytes("512b") == 512


def test_calc_percent() -> None:
    assert calc_percent(1, 3) == 33
    assert calc_percent(1, 8) == 12
    assert calc_percent(3, 8) == 38
    assert calc_percent(0, 0) == 100
    assert calc_percent(5, 0) == PERCENT_OVERFLOW


def test_parse_build_date() -> None:
    assert parse_build_date("Nov", "6", "2020", "00", "00", "00") == datetime(2020, 11, 6)
    assert parse_build_date("jan", 18, 2021, 0, 4, 32) == datetime(2021, 1, 18, 0, 4, 32)
    assert parse_build_date("Foo", 1, 2020, 0, 0, 0) is None


def test_parse_build_date_impossible_values() -> None:
    assert parse_build_date("Feb", "31", "2020", "00", "00", "00") is None
    assert parse_build_date("Nov", "6", "2020", "99", "00", "00") is None
    assert parse_build_date("Nov", "0", "2020", "00", "00", "00") is None


def test_day_diff() -> None:
    assert day_diff(datetime(2020, 11, 6), datetime(2021, 1, 18)) == 73
    assert day_diff(datetime(2019, 3, 5), datetime(2019, 5, 22)) == 78
    assert day_diff(datetime(2021, 1, 3, 12), datetime(2021, 1, 2)) == -1
    assert day_diff(datetime(2021, 1, 1), datetime(2021, 1, 1, 23, 59)) == 0
    assert day_diff(None, datetime(2021, 1, 1)) == 0

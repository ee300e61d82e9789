from __future__ import annotations

import pytest

from am_lyrics.ttml.errors import TimestampParseError
from am_lyrics.ttml.timestamp import parse_timestamp


@pytest.mark.parametrize(
    "value, expected",
    [
        ("0", 0),
        ("12", 12_000),
        ("1.5", 1_500),
        ("1.05", 1_050),
        ("75.123", 75_123),
        ("2.1234", 2_123),
        ("0:01.000", 1_000),
        ("1:02.345", 62_345),
        ("03:04.5", 184_500),
        ("1:00:00.000", 3_600_000),
        ("1:02:03.004", 3_723_004),
        ("4.5s", 4_500),
        (" 0:02.000 ", 2_000),
    ],
)
def test_parse_timestamp(value, expected):
    assert parse_timestamp(value) == expected


@pytest.mark.parametrize("value", ["", "abc", "1:", ":30", "1:60.0", "1:61:00.0", "-1.0", "1.2.3", "1,5"])
def test_parse_timestamp_rejects(value):
    with pytest.raises(TimestampParseError):
        parse_timestamp(value)

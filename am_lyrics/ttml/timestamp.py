from __future__ import annotations

import re

from .errors import TimestampParseError

# [[hh:]mm:]ss[.fff][s]
_TS_RE = re.compile(r"^(?:(?:(\d+):)?(\d+):)?(\d+)(?:\.(\d+))?s?$")


def parse_timestamp(value: str) -> int:
    """
    Parse a TTML/LRC style clock value into milliseconds.

    "12" -> 12000, "1.5" -> 1500, "1:02.345" -> 62345, "1:00:00.000" -> 3600000.
    Fractions are decimal, extra digits past milliseconds are truncated.
    """
    m = _TS_RE.match(value.strip())
    if not m:
        raise TimestampParseError(f"Invalid timestamp: {value!r}")

    hours_s, minutes_s, seconds_s, frac = m.groups()
    hours = int(hours_s) if hours_s is not None else 0
    minutes = int(minutes_s) if minutes_s is not None else 0
    seconds = int(seconds_s)

    # the leading field may overflow ("75.5" or "75:00.0"), the following ones may not
    if minutes_s is not None and not (0 <= seconds <= 59):
        raise TimestampParseError(f"Invalid seconds in timestamp: {value!r}")
    if hours_s is not None and not (0 <= minutes <= 59):
        raise TimestampParseError(f"Invalid minutes in timestamp: {value!r}")

    # "5" -> 500ms, "12" -> 120ms, "1234" -> 123ms
    ms = int(frac.ljust(3, "0")[:3]) if frac else 0
    return ((hours * 60 + minutes) * 60 + seconds) * 1000 + ms

"""Conversion between Windows FILETIME ticks and readable UTC date-times."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

TICKS_PER_SECOND = 10_000_000
FILETIME_EPOCH = 116_444_736_000_000_000
"""FILETIME value of 1970-01-01 00:00:00 UTC."""
MAX_FILETIME = 200_000_000_000_000_000

_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_DATETIME_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2}) (\d{2}):(\d{2}):(\d{2})")
_INTEGER_RE = re.compile(r"\s*[+-]?\d+\s*")


def filetime_to_string(filetime: int) -> str:
    """Format FILETIME ticks as ``YYYY-MM-DD hh:mm:ss.fffffff`` in UTC.

    Raises ValueError for values before the Unix epoch or implausibly large.
    """
    if filetime < FILETIME_EPOCH or filetime > MAX_FILETIME:
        raise ValueError(f"invalid timestamp: {filetime}")
    seconds, sub_ticks = divmod(filetime - FILETIME_EPOCH, TICKS_PER_SECOND)
    moment = _UNIX_EPOCH + timedelta(seconds=seconds)
    return f"{moment:%Y-%m-%d %H:%M:%S}.{sub_ticks:07d}"


def flexible_datetime_to_ticks(text: str) -> int:
    """Parse a possibly partial UTC date-time into FILETIME ticks.

    Missing date parts default to 01 and a missing time to midnight, so
    ``2025`` means ``2025-01-01 00:00:00``. A fractional part after ``.`` is
    read as up to seven digits of 100-nanosecond ticks. Raises ValueError
    when the result is not a valid date-time.
    """
    value = text.strip()
    fraction = "0000000"
    if "." in value:
        pieces = value.split(".")
        base = pieces[0]
        fraction = pieces[1].ljust(7, "0")[:7]
    else:
        base = value

    parts = base.split(" ")
    date = parts[0]
    time = parts[1] if len(parts) > 1 else "00:00:00"

    date_parts = date.split("-")
    if len(date_parts) < 3:
        date += "-01" * (3 - len(date_parts))

    full = f"{date} {time}"
    match = _DATETIME_RE.fullmatch(full)
    if match is None:
        raise ValueError(f"invalid date-time input: {full!r}")
    try:
        moment = datetime(*(int(group) for group in match.groups()), tzinfo=timezone.utc)
    except ValueError as exc:
        raise ValueError(f"invalid date-time input: {full!r}") from exc

    fractional_ticks = int(fraction) if _INTEGER_RE.fullmatch(fraction) else 0
    seconds = (moment - _UNIX_EPOCH) // timedelta(seconds=1)
    return FILETIME_EPOCH + seconds * TICKS_PER_SECOND + fractional_ticks
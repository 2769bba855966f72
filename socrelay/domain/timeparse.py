"""Parsing of the ``uploadTime`` field reported by the inverter cloud.

The source reports wall-clock time as ``YYYY-MM-DD HH:MM:SS`` with no zone.
The instant is composed with :func:`calendar.timegm`, which normalises
overflowing fields instead of rejecting them: ``2025-04-31 10:00:00`` is read
as 1 May. Only values that cannot be composed at all (month outside 1..12,
year 0) are rejected.
"""
from __future__ import annotations

import calendar
import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from ..core.errors import TimeParseError

_UPLOAD_TIME_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2}) (\d{2}):(\d{2}):(\d{2})", re.ASCII)


def parse_upload_time(text: str, offset_seconds: int = 0) -> datetime:
    """Return the UTC instant for ``text``.

    ``offset_seconds`` is the source's offset from UTC (east positive), so the
    instant is the local reading minus the offset.
    """
    if not isinstance(text, str):
        raise TimeParseError(text)
    m = _UPLOAD_TIME_RE.fullmatch(text)
    if m is None:
        raise TimeParseError(text)

    year, month, day, hour, minute, second = (int(g) for g in m.groups())
    try:
        epoch = calendar.timegm((year, month, day, hour, minute, second, 0, 0, 0))
        instant = datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=epoch - offset_seconds)
    except (ValueError, OverflowError) as e:
        raise TimeParseError(text) from e
    return instant


def try_parse_upload_time(text: str, offset_seconds: int = 0) -> Optional[datetime]:
    try:
        return parse_upload_time(text, offset_seconds)
    except TimeParseError:
        return None

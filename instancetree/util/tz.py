# instancetree/util/tz.py
from __future__ import annotations

import datetime as dt
import re
from typing import Optional

_OFFSET_RE = re.compile(r"([+-])(\d{2}):?(\d{2})$")
_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_zone(s: str) -> Optional[dt.datetime]:
    """Parse an ISO-8601 execution date, keeping its own UTC offset.

    Supported forms:
      - "2021-01-01"                      -> midnight, offset +00:00
      - "2021-01-01T06:00:00"             -> naive, read as offset +00:00
      - "2021-01-01T06:00:00Z"            -> offset +00:00
      - "2021-01-01T06:00:00+05:30"       -> offset +05:30 (not converted)
      - "2021-01-01T06:00:00+0530"        -> offset +05:30

    The instant is never normalized to another zone, so the calendar day a
    renderer shows stays the day the scheduler wrote.

    Returns None for empty or unparseable input.
    """
    if not s:
        return None
    raw = str(s).strip()
    if not raw:
        return None

    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"

    # fromisoformat on older interpreters wants "+HH:MM"
    m = _OFFSET_RE.search(raw)
    if m and "T" in raw and ":" not in m.group(0)[1:]:
        sign_s, hh_s, mm_s = m.groups()
        raw = raw[: m.start()] + f"{sign_s}{hh_s}:{mm_s}"

    try:
        if _DATE_ONLY_RE.match(raw):
            d = dt.datetime.strptime(raw, "%Y-%m-%d")
        else:
            d = dt.datetime.fromisoformat(raw)
    except ValueError:
        return None

    if d.tzinfo is None:
        d = d.replace(tzinfo=dt.timezone.utc)
    return d


def iso_key(d: dt.datetime) -> str:
    """Identity of an instant: the UTC ISO form, so "05:00+05:00" and "00:00Z" match.

    Only used as a key; the datetime itself keeps the offset it was written in.
    """
    return d.astimezone(dt.timezone.utc).isoformat()


def format_ymd(d: dt.datetime) -> str:
    # Axis label form, in the date's own offset.
    return d.strftime("%Y%m%d")


def whole_days_between(start: dt.datetime, end: dt.datetime) -> int:
    """Whole days elapsed from start to end, truncated toward zero."""
    secs = (end - start).total_seconds()
    days = int(abs(secs) // 86400)
    return days if secs >= 0 else -days

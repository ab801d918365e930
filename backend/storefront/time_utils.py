# Overview: UTC timestamp helpers for order timestamps and the order list "since" filter.

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Optional


def utcnow() -> datetime:
    """Naive UTC 'now', matching how timestamps are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _as_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse the order list "since" value into a naive UTC datetime.

    Accepts "2026-10-19" (start of that UTC day), "2026-10-19T20:30"
    (taken as UTC) and offsets such as "...Z" or "...-03:00".
    Raises ValueError for anything else.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None

    if len(text) == 10:
        return datetime.combine(date.fromisoformat(text), time.min)

    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return _as_naive_utc(datetime.fromisoformat(text))


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """'2026-10-19T23:30:00Z' for API payloads; naive values are UTC."""
    if dt is None:
        return None
    return _as_naive_utc(dt).replace(microsecond=0).isoformat() + "Z"

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_expiry(value: Optional[str]) -> Optional[date]:
    """
    Medicine expiry is stored as free text ("2026-03-31", "2026-03").
    Returns the last day it is still usable, or None if unparseable.
    """
    if not value:
        return None
    s = str(value).strip()
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        pass
    try:
        year, month = (int(part) for part in s.split("-")[:2])
        first_next = date(year + (month // 12), (month % 12) + 1, 1)
        return first_next - timedelta(days=1)
    except (TypeError, ValueError):
        return None


def start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def month_start(dt: datetime, months_back: int = 0) -> datetime:
    """First instant of the month `months_back` months before dt's month."""
    year, month = dt.year, dt.month - months_back
    while month < 1:
        month += 12
        year -= 1
    return datetime(year, month, 1)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")

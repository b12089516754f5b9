from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional

DAY = timedelta(days=1)


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DDTHH:MM" (naive) is interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    # Accept trailing Z
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)

    # Normalize to UTC-naive
    if dt.tzinfo is None:
        # interpret naive as UTC
        return dt

    return dt.astimezone(timezone.utc).replace(tzinfo=None)


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


def parse_date_key(value: str) -> date:
    """Parse a strict YYYY-MM-DD calendar date key."""
    if not isinstance(value, str) or len(value) != 10:
        raise ValueError(f"invalid date '{value}', expected YYYY-MM-DD")
    return date.fromisoformat(value)


def utc_day_bounds(day: date) -> tuple[datetime, datetime]:
    """Half-open [start, end) UTC-naive bounds of a calendar day."""
    start = datetime(day.year, day.month, day.day)
    return start, start + DAY


def utc_date_key(dt: datetime) -> str:
    """YYYY-MM-DD of a UTC-naive datetime."""
    return dt.date().isoformat()


def local_period_start(period: str, now: Optional[datetime] = None) -> datetime:
    """
    Start of a reporting period in the server's local calendar, as UTC-naive.

    today -> local midnight
    week  -> now minus 7 x 24h
    month -> first of the current local month
    year  -> January 1 of the current local year
    """
    now_utc = now if now is not None else utcnow()
    if period == "week":
        return now_utc - 7 * DAY

    local_now = now_utc.replace(tzinfo=timezone.utc).astimezone()

    # Naive local wall-clock boundary; astimezone() looks up the offset in
    # force on that date, not today's.
    if period == "today":
        boundary = datetime(local_now.year, local_now.month, local_now.day)
    elif period == "month":
        boundary = datetime(local_now.year, local_now.month, 1)
    elif period == "year":
        boundary = datetime(local_now.year, 1, 1)
    else:
        raise ValueError(f"unknown period '{period}'")

    return boundary.astimezone(timezone.utc).replace(tzinfo=None)

"""Time and primitive conversion helpers."""

from datetime import datetime, timezone
from typing import Any


def to_iso8601(dt: datetime | None) -> str | None:
    """Convert datetime to ISO string (UTC) if present."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def get_current_time() -> datetime:
    """Get current UTC time."""
    return datetime.now(timezone.utc)


def parse_iso_datetime(value: str | datetime | None) -> datetime | None:
    """Parse ISO datetime string into timezone-aware UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif not value:
        return None
    else:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def hours_between(start: datetime | None, end: datetime) -> float:
    """Non-negative hours from start to end; zero when start is unknown."""
    if start is None:
        return 0.0
    return max(0.0, (end - start).total_seconds() / 3600)


def days_between(start: datetime, end: datetime) -> float:
    """Fractional days from start to end (may be negative for clock skew)."""
    return (end - start).total_seconds() / 86400


def to_int(value: Any, default: int = 0) -> int:
    """Best-effort integer conversion with sane fallback."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def to_float(value: Any, default: float = 0.0) -> float:
    """Best-effort float conversion with sane fallback."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return default

"""Time helpers."""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(tz=timezone.utc)


def utc_now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return utc_now().isoformat().replace("+00:00", "Z")


def parse_iso(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp, accepting a trailing ``Z``; ``None`` when unparseable."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_date(value: str | None) -> str:
    """Render an ISO timestamp as ``YYYY/MM/DD``; unparseable input is returned unchanged."""
    parsed = parse_iso(value)
    if parsed is None:
        return value or ""
    return parsed.strftime("%Y/%m/%d")


__all__ = ["utc_now", "utc_now_iso", "parse_iso", "format_date"]

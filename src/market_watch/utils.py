"""Shared utilities for market watch."""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def parse_timestamp(ts: float | None) -> datetime:
    """Convert optional Unix timestamp (seconds) to aware UTC; fallback to now."""
    if ts is None:
        return utcnow()
    return datetime.fromtimestamp(ts, timezone.utc)

"""Wire timestamp parsing and formatting."""

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from functools import lru_cache
from typing import Optional

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@lru_cache(maxsize=4096)
def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse an RFC 2822 ("Sat, 12 Aug 2023 12:36:08 GMT") or ISO 8601 string.

    Naive values are taken as UTC. Returns None for empty or unparsable input.
    """
    if not value:
        return None
    iso_value = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
    try:
        parsed = datetime.fromisoformat(iso_value)
    except ValueError:
        try:
            parsed = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def timestamp_sort_key(value: str) -> float:
    """Seconds since epoch; unparsable values sort first."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return float("-inf")
    return (parsed - _EPOCH).total_seconds()


def format_timestamp(value: str, date_format: str) -> str:
    """Format a wire timestamp for display, falling back to the raw value."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return value or ""
    return parsed.strftime(date_format)

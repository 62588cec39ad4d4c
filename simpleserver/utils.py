import email.utils
from datetime import datetime, timezone
from typing import Optional


def compute_etag(size: int, mtime_ns: int) -> str:
    """
    ETag derived only from file size and modification time (milliseconds),
    so identical file state always yields the identical tag.
    """
    return f"{size}-{mtime_ns // 1_000_000}"


def http_date(timestamp: float) -> str:
    return email.utils.formatdate(timestamp, usegmt=True)


def parse_http_date(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an HTTP date into an aware UTC datetime. Returns None when the
    value is missing or not a date.
    """
    if not value:
        return None
    try:
        parsed = email.utils.parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed

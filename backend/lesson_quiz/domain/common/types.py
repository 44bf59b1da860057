"""Common domain types."""
from datetime import date, datetime, timezone
from typing import Any, Callable, Optional
from uuid import uuid4

Clock = Callable[[], datetime]


def generate_id() -> str:
    """Generate a new UUID string."""
    return str(uuid4())


def utc_now() -> datetime:
    """Current time, timezone-aware UTC."""
    return datetime.now(timezone.utc)


def parse_int(value: Any) -> Optional[int]:
    """Best-effort int from a store value; None when absent or unparseable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO timestamp (or pass through a datetime). Naive values are taken as UTC."""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_date(value: Any) -> Optional[date]:
    """Parse an ISO date (or take the date part of a datetime)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def clean_str(value: Any) -> Optional[str]:
    """Stringify and strip; blank becomes None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None

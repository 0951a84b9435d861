from datetime import datetime, timezone
from typing import Optional


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 timestamp in UTC without fractional seconds, e.g. `2024-05-01T12:00:00Z`."""
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is not None:
        now = now.astimezone(timezone.utc)

    return now.strftime("%Y-%m-%dT%H:%M:%SZ")


def format_decimal(value: float, places: int = 2) -> str:
    return f"{value:.{places}f}"


def short_id(identifier: str) -> str:
    return identifier[:12]

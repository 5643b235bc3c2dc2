from datetime import datetime, timezone
from typing import Optional, Union


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Union[datetime, str, None]) -> Optional[datetime]:
    """
    Normalises a timestamp to an aware UTC datetime.
    Naive values are taken as UTC; unparseable values give None.
    """
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def isoformat_or_none(value: Union[datetime, str, None]) -> Optional[str]:
    normalized = as_utc(value)
    return normalized.isoformat() if normalized else None

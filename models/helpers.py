"""Contains helpers commonly used across different modules."""
import pytz

from enum import Enum

from datetime import datetime


class TokenType(str, Enum):
    """Enumeration of signed token classes."""
    ACCESS = "access"
    REFRESH = "refresh"


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(pytz.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by some Mongo clients) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=pytz.utc)
    return value.astimezone(pytz.utc)

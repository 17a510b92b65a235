"""Per-user registry of live refresh tokens.

All functions are pure: they take a `UserRecord` and return a new one. Expired
records are pruned before any add or membership check, so an expired token is
never treated as live.
"""
from datetime import datetime, timedelta

from models.records import RefreshTokenRecord, UserRecord


def prune_expired(user: UserRecord, now: datetime) -> UserRecord:
    """Drop every record whose expiry is at or before `now`."""
    live = tuple(rt for rt in user.refresh_tokens if not rt.is_expired(now))
    if len(live) == len(user.refresh_tokens):
        return user
    return user.model_copy(update={"refresh_tokens": live})


def add_refresh_token(
    user: UserRecord, token: str, ttl_seconds: int, now: datetime
) -> UserRecord:
    """Prune, then register `token` until `now + ttl_seconds`."""
    user = prune_expired(user, now)
    record = RefreshTokenRecord(token=token, expires_at=now + timedelta(seconds=ttl_seconds))
    return user.model_copy(update={"refresh_tokens": user.refresh_tokens + (record,)})


def remove_refresh_token(user: UserRecord, token: str) -> UserRecord:
    """Remove `token` by exact match. Absent tokens are ignored."""
    return user.model_copy(
        update={"refresh_tokens": tuple(rt for rt in user.refresh_tokens if rt.token != token)}
    )


def has_refresh_token(user: UserRecord, token: str, now: datetime) -> bool:
    return any(rt.token == token for rt in prune_expired(user, now).refresh_tokens)

"""Immutable values passed between the store and the services.

Store implementations map their persisted documents to these records, so the
services never hold a live ORM object.
"""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from typing import Annotated, Tuple

from .helpers import as_utc, utc_now


class RefreshTokenRecord(BaseModel):
    """A refresh token registered to a user, with its expiry."""
    model_config = ConfigDict(frozen=True)

    token: Annotated[str, Field(min_length=1)]
    expires_at: Annotated[datetime, Field()]

    @field_validator("expires_at")
    @classmethod
    def normalize_expiry(cls, v: datetime) -> datetime:
        return as_utc(v)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


class UserRecord(BaseModel):
    """Snapshot of a user account as read from the store."""
    model_config = ConfigDict(frozen=True)

    id: Annotated[str, Field()]
    username: Annotated[str, Field()]
    email: Annotated[str, Field()]
    password_hash: Annotated[str, Field(repr=False)]
    refresh_tokens: Annotated[Tuple[RefreshTokenRecord, ...], Field(default=())]
    revision: Annotated[int, Field(default=0, ge=0)]  # Bumped on every token-set write
    created_at: Annotated[datetime, Field(default_factory=utc_now)]
    updated_at: Annotated[datetime, Field(default_factory=utc_now)]


class PostRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Annotated[str, Field()]
    title: Annotated[str, Field()]
    content: Annotated[str, Field()]
    author_id: Annotated[str, Field()]
    created_at: Annotated[datetime, Field(default_factory=utc_now)]
    updated_at: Annotated[datetime, Field(default_factory=utc_now)]


class CommentRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Annotated[str, Field()]
    content: Annotated[str, Field()]
    post_id: Annotated[str, Field()]
    author_id: Annotated[str, Field()]
    created_at: Annotated[datetime, Field(default_factory=utc_now)]
    updated_at: Annotated[datetime, Field(default_factory=utc_now)]

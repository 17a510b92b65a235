"""Contains the schema definition for requests and responses related to posts and comments
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from typing import Annotated, List, Optional

from models.records import CommentRecord, PostRecord, UserRecord

from .users import UserSummary

TITLE_MAX_LENGTH = 200


def normalize_title(v: str) -> str:
    v = v.strip()
    if not 1 <= len(v) <= TITLE_MAX_LENGTH:
        raise ValueError(f"Title must be between 1 and {TITLE_MAX_LENGTH} characters")
    return v


def normalize_content(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Content is required")
    return v


class CreatePostRequest(BaseModel):
    title: Annotated[str, Field()]
    content: Annotated[str, Field()]

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        return normalize_title(v)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v):
        return normalize_content(v)


class UpdatePostRequest(BaseModel):
    """Omitted fields are left unchanged."""

    title: Annotated[Optional[str], Field(default=None)]
    content: Annotated[Optional[str], Field(default=None)]

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        return normalize_title(v) if v is not None else v

    @field_validator("content")
    @classmethod
    def validate_content(cls, v):
        return normalize_content(v) if v is not None else v


class CommentRequest(BaseModel):
    """Body of the create and update comment requests."""

    content: Annotated[str, Field()]

    @field_validator("content")
    @classmethod
    def validate_content(cls, v):
        return normalize_content(v)


def author_summary(author_id: str, authors: dict[str, UserRecord]) -> Optional[UserSummary]:
    """Summary of the author, or None if the account was deleted."""
    author = authors.get(author_id)
    return UserSummary.from_record(author) if author else None


class CommentResponse(BaseModel):
    id: Annotated[str, Field()]
    content: Annotated[str, Field()]
    author: Annotated[Optional[UserSummary], Field(default=None)]
    created_at: Annotated[datetime, Field(serialization_alias="createdAt")]
    updated_at: Annotated[datetime, Field(serialization_alias="updatedAt")]

    @classmethod
    def from_record(
        cls, comment: CommentRecord, authors: Optional[dict[str, UserRecord]] = None
    ) -> "CommentResponse":
        return cls(
            id=comment.id,
            content=comment.content,
            author=author_summary(comment.author_id, authors) if authors is not None else None,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        )


class PostResponse(BaseModel):
    id: Annotated[str, Field()]
    title: Annotated[str, Field()]
    content: Annotated[str, Field()]
    author: Annotated[Optional[UserSummary], Field(default=None)]
    created_at: Annotated[datetime, Field(serialization_alias="createdAt")]
    updated_at: Annotated[datetime, Field(serialization_alias="updatedAt")]

    @classmethod
    def from_record(
        cls, post: PostRecord, authors: Optional[dict[str, UserRecord]] = None
    ) -> "PostResponse":
        return cls(
            id=post.id,
            title=post.title,
            content=post.content,
            author=author_summary(post.author_id, authors) if authors is not None else None,
            created_at=post.created_at,
            updated_at=post.updated_at,
        )


class PostDetailResponse(PostResponse):
    """A post together with its comments."""

    comments: Annotated[List[CommentResponse], Field(default=[])]


class PostMutationResponse(BaseModel):
    message: Annotated[str, Field()]
    post: Annotated[PostResponse, Field()]


class CommentMutationResponse(BaseModel):
    message: Annotated[str, Field()]
    comment: Annotated[CommentResponse, Field()]

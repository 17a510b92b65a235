"""Defines post and comment documents.
"""
from datetime import datetime

from pydantic import Field

from beanie import Document, Indexed, PydanticObjectId

from typing import Annotated

from .helpers import utc_now


class Post(Document):
    """Blog post written by a user.
    """
    title: Annotated[str, Field(max_length=200, min_length=1)]
    content: Annotated[str, Field(min_length=1)]
    author: Annotated[PydanticObjectId, Field()]  # ID of the user who wrote the post
    created_at: Annotated[datetime, Field(default_factory=utc_now)]
    updated_at: Annotated[datetime, Field(default_factory=utc_now)]

    class Settings:
        name = "posts"


class Comment(Document):
    """Comment left on a post.
    """
    content: Annotated[str, Field(min_length=1)]
    post: Annotated[PydanticObjectId, Indexed()]  # ID of the commented post
    author: Annotated[PydanticObjectId, Field()]
    created_at: Annotated[datetime, Field(default_factory=utc_now)]
    updated_at: Annotated[datetime, Field(default_factory=utc_now)]

    class Settings:
        name = "comments"

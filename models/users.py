from datetime import datetime

from pydantic import Field, BaseModel, field_serializer
from typing import Annotated, List

from beanie import Document, Indexed, PydanticObjectId

from .helpers import utc_now


class RefreshToken(BaseModel):
    """Refresh token embedded in a user document."""
    token: Annotated[str, Field()]
    expires_at: Annotated[datetime, Field()]


class User(Document):
    """User account, including the refresh tokens issued to it.
    """
    username: Annotated[str, Indexed(unique=True), Field(max_length=30, min_length=3)]
    email: Annotated[str, Indexed(unique=True), Field(max_length=254)]
    password: Annotated[str, Field()]  # bcrypt hash, never the plaintext
    refresh_tokens: Annotated[List[RefreshToken], Field(default=[])]
    revision: Annotated[int, Field(default=0)]  # Compare-and-set guard for refresh_tokens writes
    created_at: Annotated[datetime, Field(default_factory=utc_now)]
    updated_at: Annotated[datetime, Field(default_factory=utc_now)]

    @field_serializer("id")
    def convert_pydantic_object_id_to_string(self, id: PydanticObjectId):
        return str(id)

    class Settings:
        name = "users"

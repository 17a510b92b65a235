"""Defines schema of requests and responses related to security"""

from pydantic import AliasChoices, BaseModel, Field

from typing import Annotated, Optional


class TokenPair(BaseModel):
    """Model representing both access and refresh tokens."""

    access_token: Annotated[str, Field(serialization_alias="accessToken")]
    refresh_token: Annotated[str, Field(serialization_alias="refreshToken")]


class RefreshTokenRequest(BaseModel):
    """Model for requests carrying a refresh token (refresh and logout)."""

    refresh_token: Annotated[
        Optional[str],
        Field(
            default=None,
            validation_alias=AliasChoices("refreshToken", "refresh_token"),
        ),
    ]


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str

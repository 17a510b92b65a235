"""Contains the schema definition for requests and responses related to users
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, validate_email

from typing import Annotated, Optional

from models.records import UserRecord

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30
PASSWORD_MIN_LENGTH = 6


def normalize_username(v: str) -> str:
    v = v.strip()
    if not USERNAME_MIN_LENGTH <= len(v) <= USERNAME_MAX_LENGTH:
        raise ValueError(
            f"Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters"
        )
    return v


def normalize_email(v: str) -> str:
    """Validate the email format and case-fold it."""
    try:
        _, email = validate_email(v.strip())
    except ValueError:
        raise ValueError("Invalid email format")
    return email.lower()


def check_password_length(v: str) -> str:
    if len(v) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    return v


class RegisterUserRequest(BaseModel):
    """Describes the structure of the register user request."""

    username: Annotated[str, Field(description="Unique username, 3 to 30 characters")]
    email: Annotated[str, Field(description="Unique email address")]
    password: Annotated[str, Field(description="Password, at least 6 characters")]

    @field_validator("username")
    @classmethod
    def validate_username(cls, v):
        return normalize_username(v)

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v):
        return normalize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return check_password_length(v)


class LoginRequest(BaseModel):
    """Describes the structure of the login request."""

    email: Annotated[str, Field()]
    password: Annotated[str, Field()]

    # * Lookups are case-insensitive; format is not validated so that a malformed
    # * email gets the same 401 as an unknown one
    @field_validator("email")
    @classmethod
    def fold_email(cls, v):
        return v.strip().lower()


class UpdateUserRequest(BaseModel):
    """Describes the structure of the update user request. Omitted fields are left unchanged."""

    username: Annotated[Optional[str], Field(default=None)]
    email: Annotated[Optional[str], Field(default=None)]
    password: Annotated[Optional[str], Field(default=None)]

    @field_validator("username")
    @classmethod
    def validate_username(cls, v):
        return normalize_username(v) if v is not None else v

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v):
        return normalize_email(v) if v is not None else v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return check_password_length(v) if v is not None else v


class UserSummary(BaseModel):
    """Public identity of a user."""

    id: Annotated[str, Field(description="Unique identifier for the user")]
    username: Annotated[str, Field()]
    email: Annotated[str, Field()]

    @classmethod
    def from_record(cls, user: UserRecord) -> "UserSummary":
        return cls(id=user.id, username=user.username, email=user.email)


class UserResponse(UserSummary):
    """User details returned by the user endpoints. Never includes the password or tokens."""

    created_at: Annotated[datetime, Field(serialization_alias="createdAt")]
    updated_at: Annotated[datetime, Field(serialization_alias="updatedAt")]

    @classmethod
    def from_record(cls, user: UserRecord) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class RegisterUserResponse(BaseModel):
    """Describes the structure of the register user response."""

    message: Annotated[str, Field(default="User registered successfully")]
    user: Annotated[UserSummary, Field()]
    access_token: Annotated[str, Field(serialization_alias="accessToken")]
    refresh_token: Annotated[str, Field(serialization_alias="refreshToken")]


class LoginResponse(BaseModel):
    """Describes the structure of the login response."""

    user: Annotated[UserSummary, Field()]
    access_token: Annotated[str, Field(serialization_alias="accessToken")]
    refresh_token: Annotated[str, Field(serialization_alias="refreshToken")]

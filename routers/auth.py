"""
Auth router for handling registration, login, logout and token refresh.
"""

import logfire

from fastapi import APIRouter, Body, Depends, status

from typing import Annotated, Optional

from models.records import UserRecord

from schema.security import MessageResponse, RefreshTokenRequest, TokenPair
from schema.users import (
    LoginRequest,
    LoginResponse,
    RegisterUserRequest,
    RegisterUserResponse,
    UserSummary,
)

from security.helpers import get_current_user

from services.errors import ValidationError
from services.sessions import SessionService, get_session_service

router = APIRouter(
    prefix="/api/users",
    tags=["Auth"],
)


@router.post(
    "/register",
    response_model=RegisterUserResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_user(
    payload: RegisterUserRequest,
    sessions: Annotated[SessionService, Depends(get_session_service)],
):
    """Creates a new user and returns an access and refresh token for it.

    ## Possible Errors
    - 400 Bad Request: Invalid email format, password shorter than 6 characters,
      username outside 3 to 30 characters, or the email or username is taken.

    ## Error response structure
    ```json
    {
        "message": "User with this email or username already exists"
    }
    ```
    """
    grant = await sessions.register(payload.username, payload.email, payload.password)

    return RegisterUserResponse(
        user=UserSummary.from_record(grant.user),
        access_token=grant.access_token,
        refresh_token=grant.refresh_token,
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    sessions: Annotated[SessionService, Depends(get_session_service)],
):
    """Login endpoint that returns both access and refresh tokens.

    ## Possible Errors
    - 401 Unauthorized: `{"message": "Invalid email or password"}` for an unknown
      email and for a wrong password alike.
    """
    grant = await sessions.login(payload.email, payload.password)

    return LoginResponse(
        user=UserSummary.from_record(grant.user),
        access_token=grant.access_token,
        refresh_token=grant.refresh_token,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    sessions: Annotated[SessionService, Depends(get_session_service)],
    payload: Annotated[Optional[RefreshTokenRequest], Body()] = None,
):
    """Revokes the refresh token in the body, if any. Requires a bearer access token.

    Logging out without a refresh token, or with one that is already revoked or
    expired, still succeeds.

    ## Possible Errors
    - 401 Unauthorized: No bearer access token.
    - 403 Forbidden: Invalid or expired access token.
    """
    if payload is not None and payload.refresh_token:
        await sessions.logout(current_user, payload.refresh_token)
    else:
        logfire.info(f"User {current_user.id} logged out without a refresh token")

    return MessageResponse(message="Logout successful")


@router.post("/refresh", response_model=TokenPair)
async def refresh_tokens(
    payload: RefreshTokenRequest,
    sessions: Annotated[SessionService, Depends(get_session_service)],
):
    """Exchanges a refresh token for a new access and refresh token.

    The submitted refresh token is consumed and cannot be used again.

    ## Possible Errors
    - 400 Bad Request: `{"message": "Refresh token is required"}`
    - 401 Unauthorized: `{"message": "Invalid refresh token"}` whether the token is
      badly signed, expired, already used or revoked.
    """
    if not payload.refresh_token:
        raise ValidationError("Refresh token is required")

    grant = await sessions.refresh(payload.refresh_token)
    return TokenPair(access_token=grant.access_token, refresh_token=grant.refresh_token)

""" User router for handling all user-related endpoints.
"""

import logfire

from bson import ObjectId

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from typing import Annotated, List

from models.records import UserRecord

from schema.security import MessageResponse
from schema.users import UpdateUserRequest, UserResponse

from security.helpers import get_current_user, get_password_hash

from services.errors import Forbidden, NotFound, ValidationError
from services.sessions import DUPLICATE_USER

from storage.base import BlogStore, get_store
from storage.errors import DuplicateKeyConflict

from utils.config import Settings, get_app_settings

router = APIRouter(
    prefix="/api/users",
    tags=["Users"],
)


def _check_user_id(user_id: str) -> None:
    if not ObjectId.is_valid(user_id):
        raise ValidationError("Invalid user ID")


@router.get("", response_model=List[UserResponse])
async def list_users(
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[BlogStore, Depends(get_store)],
):
    """Lists every user. Passwords and refresh tokens are never included."""
    users = await store.list_users()
    return [UserResponse.from_record(user) for user in users]


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[BlogStore, Depends(get_store)],
):
    """Get details of a single user.

    ## Possible Errors
    - 400 Bad Request: Malformed user ID.
    - 404 Not Found: No user with this ID.
    """
    _check_user_id(user_id)

    user = await store.get_user(user_id)
    if user is None:
        raise NotFound("User not found")

    return UserResponse.from_record(user)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    payload: UpdateUserRequest,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[BlogStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
):
    """Updates the caller's own username, email or password.

    The password hash is only recomputed when a new password is supplied.

    ## Possible Errors
    - 400 Bad Request: Malformed user ID, invalid field, or the new username or email is taken.
    - 403 Forbidden: Updating another user's profile.
    - 404 Not Found: No user with this ID.
    """
    _check_user_id(user_id)

    if user_id != current_user.id:
        raise Forbidden("Not authorized to update this user")

    password_hash = None
    if payload.password is not None:
        password_hash = await run_in_threadpool(
            get_password_hash, payload.password, settings.bcrypt_rounds
        )

    try:
        user = await store.update_user_profile(
            user_id,
            username=payload.username,
            email=payload.email,
            password_hash=password_hash,
        )
    except DuplicateKeyConflict:
        raise ValidationError(DUPLICATE_USER)

    if user is None:
        raise NotFound("User not found")

    logfire.info(f"Updated profile of user {user_id}")
    return UserResponse.from_record(user)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[BlogStore, Depends(get_store)],
):
    """Deletes the caller's own account. Posts and comments are kept.

    ## Possible Errors
    - 403 Forbidden: Deleting another user's account.
    - 404 Not Found: No user with this ID.
    """
    _check_user_id(user_id)

    if user_id != current_user.id:
        raise Forbidden("Not authorized to delete this user")

    if not await store.delete_user(user_id):
        raise NotFound("User not found")

    logfire.info(f"Deleted user {user_id}")
    return MessageResponse(message="User deleted successfully")

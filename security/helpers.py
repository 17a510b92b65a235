"""Contains all security related helper functions
"""
import logfire

from functools import lru_cache

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from passlib.context import CryptContext

from typing import Annotated, Optional

from models.helpers import TokenType
from models.records import UserRecord

from security.tokens import TokenVerificationError, verify_token

from services.errors import Forbidden, Unauthorized

from storage.base import BlogStore, get_store

from utils.config import Settings, get_app_settings, get_settings


@lru_cache
def get_password_context(rounds: int) -> CryptContext:
    """Return the bcrypt context hashing with `rounds`, one per cost factor."""
    return CryptContext(
        schemes=["bcrypt"],
        deprecated="auto",
        bcrypt__rounds=rounds,
    )


def _password_context(rounds: Optional[int]) -> CryptContext:
    return get_password_context(rounds or get_settings().bcrypt_rounds)


bearer_scheme = HTTPBearer(
    auto_error=False,
    description="Access token returned by the register, login and refresh endpoints.",
)


def verify_password(plain_password: str, hashed_password: str, rounds: Optional[int] = None) -> bool:
    """Verifies that `plain_password` and `hashed_password` are equal.

    Args:
        plain_password (str): The plain text password to verify.
        hashed_password (str): The hashed password to compare against.
        rounds (Optional[int]): Configured bcrypt cost. The hash carries its own
            cost, so this only selects the context. Defaults to `BCRYPT_ROUNDS`.

    Returns:
        bool: True if the passwords match, False otherwise.
    """
    return _password_context(rounds).verify(plain_password, hashed_password)


def dummy_verify_password(rounds: Optional[int] = None) -> bool:
    """Spend the time of a real verification when there is no hash to check against."""
    _password_context(rounds).dummy_verify()
    return False


def get_password_hash(password: str, rounds: Optional[int] = None) -> str:
    """Generates a hash for the given password.

    Args:
        password (str): The plain text password to hash.
        rounds (Optional[int]): bcrypt cost factor. Defaults to `BCRYPT_ROUNDS`.

    Returns:
        str: The hashed password.
    """
    return _password_context(rounds).hash(password)


async def get_current_user(
    request: Request,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    store: Annotated[BlogStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> UserRecord:
    """Resolve the user owning the bearer access token on the request.

    A missing credential and an unknown user are 401s; a credential that fails
    verification is a 403. Access tokens are not checked against any registry.

    Raises:
        Unauthorized: No bearer token was sent, or its user no longer exists.
        Forbidden: The token signature is invalid or the token expired.

    Returns:
        UserRecord: The authenticated user, also stored on `request.state.user`.
    """
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Access token is required")

    try:
        claims = verify_token(
            credentials.credentials,
            settings.access_token_secret,
            algorithm=settings.jwt_algorithm,
        )
    except TokenVerificationError as e:
        logfire.info(f"Rejected access token on {request.url.path}: {type(e).__name__}")
        raise Forbidden("Invalid token")

    if claims.token_type != TokenType.ACCESS:
        logfire.info(f"Rejected {claims.token_type.value} token used as access token on {request.url.path}")
        raise Forbidden("Invalid token")

    user = await store.get_user(claims.subject)

    if user is None:
        raise Unauthorized("User not found")

    request.state.user = user
    return user

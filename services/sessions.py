"""Register, login, logout and refresh flows.

Every change to a user's refresh tokens is a read, prune, mutate and
compare-and-set write against the user's revision. When another request wrote
the user in between, the user is re-read and the mutation re-applied, so
concurrent logins, logouts and refreshes never silently drop each other's
changes.
"""

import logfire

from datetime import datetime

from fastapi import Depends
from starlette.concurrency import run_in_threadpool

from pydantic import BaseModel

from typing import Annotated, Callable

from models.helpers import TokenType, utc_now
from models.records import UserRecord

from security.helpers import dummy_verify_password, get_password_hash, verify_password
from security.registry import add_refresh_token, has_refresh_token, remove_refresh_token
from security.tokens import (
    TokenVerificationError,
    issue_access_token,
    issue_refresh_token,
    verify_token,
)

from storage.base import BlogStore, get_store
from storage.errors import DuplicateKeyConflict, StaleRevisionError

from utils.config import Settings, get_app_settings

from .errors import Conflict, Unauthorized, ValidationError

INVALID_CREDENTIALS = "Invalid email or password"
INVALID_REFRESH_TOKEN = "Invalid refresh token"
DUPLICATE_USER = "User with this email or username already exists"

MAX_WRITE_ATTEMPTS = 3

Mutation = Callable[[UserRecord, datetime], UserRecord]


class SessionGrant(BaseModel):
    """Result of a flow that issues a fresh token pair."""

    user: UserRecord
    access_token: str
    refresh_token: str


class SessionService:
    """Orchestrates the token lifecycle on top of a `BlogStore`."""

    def __init__(
        self,
        store: BlogStore,
        settings: Settings,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.settings = settings
        self.clock = clock

    async def register(self, username: str, email: str, password: str) -> SessionGrant:
        """Create an account and open its first session.

        Raises:
            ValidationError: The username or email is already taken.
        """
        with logfire.span(f"Registering new user: {email}"):
            if await self.store.find_user_by_email_or_username(email, username):
                logfire.info(f"Registration rejected, duplicate email or username: {email}")
                raise ValidationError(DUPLICATE_USER)

            password_hash = await run_in_threadpool(
                get_password_hash, password, self.settings.bcrypt_rounds
            )

            try:
                user = await self.store.create_user(username, email, password_hash)
            except DuplicateKeyConflict:
                # Lost a race with a concurrent registration
                raise ValidationError(DUPLICATE_USER)

            logfire.info(f"Saved new user to database: {user.id}")
            return await self._open_session(user)

    async def login(self, email: str, password: str) -> SessionGrant:
        """Check credentials and open a new session.

        Unknown email and wrong password fail with the same message.

        Raises:
            Unauthorized: The credentials do not match an account.
        """
        with logfire.span(f"Login attempt for: {email}"):
            user = await self.store.get_user_by_email(email)

            if user is None:
                await run_in_threadpool(dummy_verify_password, self.settings.bcrypt_rounds)
                logfire.info(f"Login failed for: {email}")
                raise Unauthorized(INVALID_CREDENTIALS)

            if not await run_in_threadpool(
                verify_password, password, user.password_hash, self.settings.bcrypt_rounds
            ):
                logfire.info(f"Login failed for: {email}")
                raise Unauthorized(INVALID_CREDENTIALS)

            grant = await self._open_session(user)
            logfire.info(f"User {user.id} logged in successfully")
            return grant

    async def logout(self, user: UserRecord, refresh_token: str) -> UserRecord:
        """Revoke `refresh_token` for `user`. Tokens not registered are ignored."""

        def revoke(current: UserRecord, now: datetime) -> UserRecord:
            return remove_refresh_token(current, refresh_token)

        updated = await self._apply(user, revoke, missing=Unauthorized("User not found"))
        logfire.info(f"User {user.id} logged out")
        return updated

    async def refresh(self, refresh_token: str) -> SessionGrant:
        """Exchange a live refresh token for a new pair, consuming the old token.

        Raises:
            Unauthorized: The token is badly signed, expired, or not registered
                to its user. All cases carry the same message.
        """
        with logfire.span("Refreshing session tokens"):
            try:
                claims = verify_token(
                    refresh_token,
                    self.settings.refresh_token_secret,
                    algorithm=self.settings.jwt_algorithm,
                    now=self.clock(),
                )
            except TokenVerificationError as e:
                logfire.info(f"Refresh rejected: {type(e).__name__}")
                raise Unauthorized(INVALID_REFRESH_TOKEN)

            if claims.token_type != TokenType.REFRESH:
                logfire.info(f"Refresh rejected: {claims.token_type.value} token")
                raise Unauthorized(INVALID_REFRESH_TOKEN)

            user = await self.store.get_user(claims.subject)
            if user is None:
                logfire.info(f"Refresh rejected, user {claims.subject} no longer exists")
                raise Unauthorized(INVALID_REFRESH_TOKEN)

            now = self.clock()
            access_token = issue_access_token(user.id, self.settings, now=now)
            new_refresh_token = issue_refresh_token(user.id, self.settings, now=now)

            def rotate(current: UserRecord, now: datetime) -> UserRecord:
                if not has_refresh_token(current, refresh_token, now):
                    raise Unauthorized(INVALID_REFRESH_TOKEN)
                current = remove_refresh_token(current, refresh_token)
                return add_refresh_token(
                    current, new_refresh_token, self.settings.refresh_token_ttl_seconds, now
                )

            try:
                user = await self._apply(user, rotate, missing=Unauthorized(INVALID_REFRESH_TOKEN))
            except Unauthorized:
                logfire.info(f"Refresh rejected, token not registered for user {user.id}")
                raise

            logfire.info(f"Tokens refreshed for user {user.id}")
            return SessionGrant(user=user, access_token=access_token, refresh_token=new_refresh_token)

    async def _open_session(self, user: UserRecord) -> SessionGrant:
        now = self.clock()
        access_token = issue_access_token(user.id, self.settings, now=now)
        refresh_token = issue_refresh_token(user.id, self.settings, now=now)

        def register_token(current: UserRecord, now: datetime) -> UserRecord:
            return add_refresh_token(
                current, refresh_token, self.settings.refresh_token_ttl_seconds, now
            )

        user = await self._apply(user, register_token, missing=Unauthorized(INVALID_CREDENTIALS))
        return SessionGrant(user=user, access_token=access_token, refresh_token=refresh_token)

    async def _apply(self, user: UserRecord, mutate: Mutation, missing: Exception) -> UserRecord:
        """Apply `mutate` to the user's token set and persist it with compare-and-set.

        Raises:
            Conflict: The user kept changing underneath every attempt.
        """
        for attempt in range(1, MAX_WRITE_ATTEMPTS + 1):
            updated = mutate(user, self.clock())
            try:
                return await self.store.save_refresh_tokens(updated)
            except StaleRevisionError:
                logfire.warning(
                    f"Concurrent update of user {user.id} at revision {user.revision} (attempt {attempt})"
                )

            user = await self.store.get_user(user.id)
            if user is None:
                raise missing

        logfire.error(f"Giving up on refresh token update for user {updated.id}")
        raise Conflict("Session update conflict. Please try again.")


def get_session_service(
    store: Annotated[BlogStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> SessionService:
    """Get a session service bound to the application's store and settings."""
    return SessionService(store=store, settings=settings)

"""Persistence port used by the services and routers."""

from abc import ABC, abstractmethod

from fastapi import Request

from typing import Dict, Iterable, List, Optional

from models.records import CommentRecord, PostRecord, UserRecord


class BlogStore(ABC):
    """Storage operations for users, posts and comments.

    Every method returns immutable records. Lookups by an id that does not
    exist, or is not a well-formed id, return ``None`` rather than raising.
    """

    # Users

    @abstractmethod
    async def create_user(self, username: str, email: str, password_hash: str) -> UserRecord:
        """Insert a user. Raises `DuplicateKeyConflict` on username or email reuse."""

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[UserRecord]: ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[UserRecord]: ...

    @abstractmethod
    async def find_user_by_email_or_username(
        self, email: str, username: str
    ) -> Optional[UserRecord]: ...

    @abstractmethod
    async def get_users(self, user_ids: Iterable[str]) -> Dict[str, UserRecord]: ...

    @abstractmethod
    async def list_users(self) -> List[UserRecord]: ...

    @abstractmethod
    async def update_user_profile(
        self,
        user_id: str,
        *,
        username: Optional[str] = None,
        email: Optional[str] = None,
        password_hash: Optional[str] = None,
    ) -> Optional[UserRecord]:
        """Update the given profile fields. Raises `DuplicateKeyConflict` on reuse."""

    @abstractmethod
    async def save_refresh_tokens(self, user: UserRecord) -> UserRecord:
        """Persist `user.refresh_tokens` if the stored revision still equals `user.revision`.

        Returns the stored record with its revision bumped. Raises
        `StaleRevisionError` if the user changed (or vanished) since it was read.
        """

    @abstractmethod
    async def delete_user(self, user_id: str) -> bool: ...

    # Posts

    @abstractmethod
    async def create_post(self, author_id: str, title: str, content: str) -> PostRecord: ...

    @abstractmethod
    async def get_post(self, post_id: str) -> Optional[PostRecord]: ...

    @abstractmethod
    async def list_posts(self) -> List[PostRecord]:
        """All posts, newest first."""

    @abstractmethod
    async def update_post(
        self, post_id: str, *, title: Optional[str] = None, content: Optional[str] = None
    ) -> Optional[PostRecord]: ...

    @abstractmethod
    async def delete_post(self, post_id: str) -> bool: ...

    # Comments

    @abstractmethod
    async def create_comment(self, post_id: str, author_id: str, content: str) -> CommentRecord: ...

    @abstractmethod
    async def get_comment(self, comment_id: str) -> Optional[CommentRecord]: ...

    @abstractmethod
    async def list_comments(self, post_id: str) -> List[CommentRecord]:
        """Comments on a post, oldest first."""

    @abstractmethod
    async def update_comment(self, comment_id: str, content: str) -> Optional[CommentRecord]: ...

    @abstractmethod
    async def delete_comment(self, comment_id: str) -> bool: ...


def get_store(request: Request) -> BlogStore:
    """Return the store attached to the running application."""
    return request.app.state.store

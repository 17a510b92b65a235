"""In-process store used by the test-suite and for local development."""

import itertools
import logfire

from bson import ObjectId

from typing import Dict, Iterable, List, Optional

from models.helpers import utc_now
from models.records import CommentRecord, PostRecord, UserRecord

from .base import BlogStore
from .errors import DuplicateKeyConflict, StaleRevisionError


class MemoryStore(BlogStore):
    """Dictionary-backed `BlogStore`.

    Methods never await, so each call runs to completion without interleaving
    with other requests on the same event loop.
    """

    def __init__(self) -> None:
        self._users: Dict[str, UserRecord] = {}
        self._posts: Dict[str, PostRecord] = {}
        self._comments: Dict[str, CommentRecord] = {}
        self._order: Dict[str, int] = {}  # insertion sequence, breaks timestamp ties
        self._sequence = itertools.count()

    def _new_id(self) -> str:
        new_id = str(ObjectId())
        self._order[new_id] = next(self._sequence)
        return new_id

    def _ensure_unique(self, username: str, email: str, exclude_id: Optional[str] = None) -> None:
        for user in self._users.values():
            if user.id == exclude_id:
                continue
            if user.username == username or user.email == email:
                raise DuplicateKeyConflict()

    # Users

    async def create_user(self, username: str, email: str, password_hash: str) -> UserRecord:
        self._ensure_unique(username, email)
        user = UserRecord(
            id=self._new_id(),
            username=username,
            email=email,
            password_hash=password_hash,
        )
        self._users[user.id] = user
        return user

    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        return self._users.get(user_id)

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        return next((u for u in self._users.values() if u.email == email), None)

    async def find_user_by_email_or_username(
        self, email: str, username: str
    ) -> Optional[UserRecord]:
        return next(
            (u for u in self._users.values() if u.email == email or u.username == username),
            None,
        )

    async def get_users(self, user_ids: Iterable[str]) -> Dict[str, UserRecord]:
        return {uid: self._users[uid] for uid in set(user_ids) if uid in self._users}

    async def list_users(self) -> List[UserRecord]:
        return sorted(self._users.values(), key=lambda u: self._order[u.id])

    async def update_user_profile(
        self,
        user_id: str,
        *,
        username: Optional[str] = None,
        email: Optional[str] = None,
        password_hash: Optional[str] = None,
    ) -> Optional[UserRecord]:
        current = self._users.get(user_id)
        if current is None:
            return None

        changes = {
            key: value
            for key, value in (
                ("username", username),
                ("email", email),
                ("password_hash", password_hash),
            )
            if value is not None
        }
        self._ensure_unique(
            changes.get("username", current.username),
            changes.get("email", current.email),
            exclude_id=user_id,
        )
        updated = current.model_copy(update={**changes, "updated_at": utc_now()})
        self._users[user_id] = updated
        return updated

    async def save_refresh_tokens(self, user: UserRecord) -> UserRecord:
        current = self._users.get(user.id)
        if current is None or current.revision != user.revision:
            logfire.debug(f"Stale refresh token write for user {user.id}")
            raise StaleRevisionError(user.id, user.revision)

        updated = current.model_copy(
            update={
                "refresh_tokens": tuple(user.refresh_tokens),
                "revision": current.revision + 1,
                "updated_at": utc_now(),
            }
        )
        self._users[user.id] = updated
        return updated

    async def delete_user(self, user_id: str) -> bool:
        return self._users.pop(user_id, None) is not None

    # Posts

    async def create_post(self, author_id: str, title: str, content: str) -> PostRecord:
        post = PostRecord(id=self._new_id(), title=title, content=content, author_id=author_id)
        self._posts[post.id] = post
        return post

    async def get_post(self, post_id: str) -> Optional[PostRecord]:
        return self._posts.get(post_id)

    async def list_posts(self) -> List[PostRecord]:
        return sorted(
            self._posts.values(),
            key=lambda p: (p.created_at, self._order[p.id]),
            reverse=True,
        )

    async def update_post(
        self, post_id: str, *, title: Optional[str] = None, content: Optional[str] = None
    ) -> Optional[PostRecord]:
        current = self._posts.get(post_id)
        if current is None:
            return None

        changes = {"updated_at": utc_now()}
        if title is not None:
            changes["title"] = title
        if content is not None:
            changes["content"] = content

        updated = current.model_copy(update=changes)
        self._posts[post_id] = updated
        return updated

    async def delete_post(self, post_id: str) -> bool:
        return self._posts.pop(post_id, None) is not None

    # Comments

    async def create_comment(self, post_id: str, author_id: str, content: str) -> CommentRecord:
        comment = CommentRecord(
            id=self._new_id(), content=content, post_id=post_id, author_id=author_id
        )
        self._comments[comment.id] = comment
        return comment

    async def get_comment(self, comment_id: str) -> Optional[CommentRecord]:
        return self._comments.get(comment_id)

    async def list_comments(self, post_id: str) -> List[CommentRecord]:
        return sorted(
            (c for c in self._comments.values() if c.post_id == post_id),
            key=lambda c: self._order[c.id],
        )

    async def update_comment(self, comment_id: str, content: str) -> Optional[CommentRecord]:
        current = self._comments.get(comment_id)
        if current is None:
            return None

        updated = current.model_copy(update={"content": content, "updated_at": utc_now()})
        self._comments[comment_id] = updated
        return updated

    async def delete_comment(self, comment_id: str) -> bool:
        return self._comments.pop(comment_id, None) is not None

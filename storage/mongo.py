"""MongoDB store built on beanie documents."""

import logfire

from pymongo.errors import DuplicateKeyError

from beanie import PydanticObjectId, UpdateResponse
from beanie.operators import In, Inc, Or, Set

from typing import Dict, Iterable, List, Optional

from models.helpers import utc_now
from models.posts import Comment, Post
from models.records import CommentRecord, PostRecord, RefreshTokenRecord, UserRecord
from models.users import User

from .base import BlogStore
from .errors import DuplicateKeyConflict, StaleRevisionError


def _object_id(value: str) -> Optional[PydanticObjectId]:
    if not PydanticObjectId.is_valid(value):
        return None
    return PydanticObjectId(value)


def _to_user_record(user: User) -> UserRecord:
    return UserRecord(
        id=str(user.id),
        username=user.username,
        email=user.email,
        password_hash=user.password,
        refresh_tokens=tuple(
            RefreshTokenRecord(token=rt.token, expires_at=rt.expires_at)
            for rt in user.refresh_tokens
        ),
        revision=user.revision,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def _to_post_record(post: Post) -> PostRecord:
    return PostRecord(
        id=str(post.id),
        title=post.title,
        content=post.content,
        author_id=str(post.author),
        created_at=post.created_at,
        updated_at=post.updated_at,
    )


def _to_comment_record(comment: Comment) -> CommentRecord:
    return CommentRecord(
        id=str(comment.id),
        content=comment.content,
        post_id=str(comment.post),
        author_id=str(comment.author),
        created_at=comment.created_at,
        updated_at=comment.updated_at,
    )


class MongoStore(BlogStore):
    """`BlogStore` over the collections registered with `init_beanie`."""

    # Users

    async def create_user(self, username: str, email: str, password_hash: str) -> UserRecord:
        user = User(username=username, email=email, password=password_hash)
        try:
            await user.insert()
        except DuplicateKeyError:
            logfire.warning(f"Duplicate key inserting user with email: {email}")
            raise DuplicateKeyConflict()
        return _to_user_record(user)

    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        oid = _object_id(user_id)
        if oid is None:
            return None
        user = await User.get(oid)
        return _to_user_record(user) if user else None

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        user = await User.find_one(User.email == email)
        return _to_user_record(user) if user else None

    async def find_user_by_email_or_username(
        self, email: str, username: str
    ) -> Optional[UserRecord]:
        user = await User.find_one(Or(User.email == email, User.username == username))
        return _to_user_record(user) if user else None

    async def get_users(self, user_ids: Iterable[str]) -> Dict[str, UserRecord]:
        oids = [oid for oid in (_object_id(uid) for uid in set(user_ids)) if oid is not None]
        if not oids:
            return {}
        users = await User.find(In(User.id, oids)).to_list()
        return {str(user.id): _to_user_record(user) for user in users}

    async def list_users(self) -> List[UserRecord]:
        users = await User.find_all().to_list()
        return [_to_user_record(user) for user in users]

    async def update_user_profile(
        self,
        user_id: str,
        *,
        username: Optional[str] = None,
        email: Optional[str] = None,
        password_hash: Optional[str] = None,
    ) -> Optional[UserRecord]:
        oid = _object_id(user_id)
        if oid is None:
            return None

        changes = {"updated_at": utc_now()}
        if username is not None:
            changes["username"] = username
        if email is not None:
            changes["email"] = email
        if password_hash is not None:
            changes["password"] = password_hash

        # Targeted $set so a concurrent refresh_tokens write is never overwritten
        try:
            user = await User.find_one(User.id == oid).update(
                Set(changes), response_type=UpdateResponse.NEW_DOCUMENT
            )
        except DuplicateKeyError:
            logfire.warning(f"Duplicate key updating user: {user_id}")
            raise DuplicateKeyConflict()
        return _to_user_record(user) if user else None

    async def save_refresh_tokens(self, user: UserRecord) -> UserRecord:
        oid = _object_id(user.id)
        if oid is None:
            raise StaleRevisionError(user.id, user.revision)

        stored = await User.find_one(User.id == oid, User.revision == user.revision).update(
            Set(
                {
                    "refresh_tokens": [
                        {"token": rt.token, "expires_at": rt.expires_at}
                        for rt in user.refresh_tokens
                    ],
                    "updated_at": utc_now(),
                }
            ),
            Inc({"revision": 1}),
            response_type=UpdateResponse.NEW_DOCUMENT,
        )
        if stored is None:
            raise StaleRevisionError(user.id, user.revision)
        return _to_user_record(stored)

    async def delete_user(self, user_id: str) -> bool:
        oid = _object_id(user_id)
        if oid is None:
            return False
        result = await User.find_one(User.id == oid).delete()
        return bool(result and result.deleted_count)

    # Posts

    async def create_post(self, author_id: str, title: str, content: str) -> PostRecord:
        post = Post(title=title, content=content, author=PydanticObjectId(author_id))
        await post.insert()
        return _to_post_record(post)

    async def get_post(self, post_id: str) -> Optional[PostRecord]:
        oid = _object_id(post_id)
        if oid is None:
            return None
        post = await Post.get(oid)
        return _to_post_record(post) if post else None

    async def list_posts(self) -> List[PostRecord]:
        posts = await Post.find_all().sort(-Post.created_at).to_list()
        return [_to_post_record(post) for post in posts]

    async def update_post(
        self, post_id: str, *, title: Optional[str] = None, content: Optional[str] = None
    ) -> Optional[PostRecord]:
        oid = _object_id(post_id)
        if oid is None:
            return None

        changes = {"updated_at": utc_now()}
        if title is not None:
            changes["title"] = title
        if content is not None:
            changes["content"] = content

        post = await Post.find_one(Post.id == oid).update(
            Set(changes), response_type=UpdateResponse.NEW_DOCUMENT
        )
        return _to_post_record(post) if post else None

    async def delete_post(self, post_id: str) -> bool:
        oid = _object_id(post_id)
        if oid is None:
            return False
        result = await Post.find_one(Post.id == oid).delete()
        return bool(result and result.deleted_count)

    # Comments

    async def create_comment(self, post_id: str, author_id: str, content: str) -> CommentRecord:
        comment = Comment(
            content=content,
            post=PydanticObjectId(post_id),
            author=PydanticObjectId(author_id),
        )
        await comment.insert()
        return _to_comment_record(comment)

    async def get_comment(self, comment_id: str) -> Optional[CommentRecord]:
        oid = _object_id(comment_id)
        if oid is None:
            return None
        comment = await Comment.get(oid)
        return _to_comment_record(comment) if comment else None

    async def list_comments(self, post_id: str) -> List[CommentRecord]:
        oid = _object_id(post_id)
        if oid is None:
            return []
        comments = await Comment.find(Comment.post == oid).sort(+Comment.created_at).to_list()
        return [_to_comment_record(comment) for comment in comments]

    async def update_comment(self, comment_id: str, content: str) -> Optional[CommentRecord]:
        oid = _object_id(comment_id)
        if oid is None:
            return None

        comment = await Comment.find_one(Comment.id == oid).update(
            Set({"content": content, "updated_at": utc_now()}),
            response_type=UpdateResponse.NEW_DOCUMENT,
        )
        return _to_comment_record(comment) if comment else None

    async def delete_comment(self, comment_id: str) -> bool:
        oid = _object_id(comment_id)
        if oid is None:
            return False
        result = await Comment.find_one(Comment.id == oid).delete()
        return bool(result and result.deleted_count)

"""Post router for handling posts and the comments nested under them."""

import logfire

from bson import ObjectId

from fastapi import APIRouter, Depends, status

from typing import Annotated, List

from models.records import CommentRecord, PostRecord, UserRecord

from schema.posts import (
    CommentMutationResponse,
    CommentRequest,
    CommentResponse,
    CreatePostRequest,
    PostDetailResponse,
    PostMutationResponse,
    PostResponse,
    UpdatePostRequest,
)
from schema.security import MessageResponse

from security.helpers import get_current_user

from services.errors import Forbidden, NotFound, ValidationError

from storage.base import BlogStore, get_store

router = APIRouter(
    prefix="/api/posts",
    tags=["Posts"],
)


async def _get_post_or_404(store: BlogStore, post_id: str) -> PostRecord:
    if not ObjectId.is_valid(post_id):
        raise ValidationError("Invalid post ID")

    post = await store.get_post(post_id)
    if post is None:
        raise NotFound("Post not found")
    return post


async def _get_comment_or_404(store: BlogStore, post_id: str, comment_id: str) -> CommentRecord:
    if not ObjectId.is_valid(comment_id):
        raise ValidationError("Invalid comment ID")

    comment = await store.get_comment(comment_id)
    if comment is None or comment.post_id != post_id:
        raise NotFound("Comment not found")
    return comment


@router.post("", response_model=PostMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: CreatePostRequest,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[BlogStore, Depends(get_store)],
):
    """Publishes a new post authored by the caller.

    ## Possible Errors
    - 400 Bad Request: Missing content, or a title outside 1 to 200 characters.
    """
    post = await store.create_post(current_user.id, payload.title, payload.content)
    logfire.info(f"User {current_user.id} created post {post.id}")

    return PostMutationResponse(
        message="Post created successfully",
        post=PostResponse.from_record(post, {current_user.id: current_user}),
    )


@router.get("", response_model=List[PostResponse])
async def list_posts(
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[BlogStore, Depends(get_store)],
):
    """Lists all posts, newest first, with a summary of each author."""
    posts = await store.list_posts()
    authors = await store.get_users(post.author_id for post in posts)

    return [PostResponse.from_record(post, authors) for post in posts]


@router.get("/{post_id}", response_model=PostDetailResponse)
async def get_post(
    post_id: str,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[BlogStore, Depends(get_store)],
):
    """Get a single post with its comments.

    ## Possible Errors
    - 400 Bad Request: Malformed post ID.
    - 404 Not Found: No post with this ID.
    """
    post = await _get_post_or_404(store, post_id)
    comments = await store.list_comments(post.id)
    authors = await store.get_users([post.author_id, *(c.author_id for c in comments)])

    return PostDetailResponse(
        **PostResponse.from_record(post, authors).model_dump(),
        comments=[CommentResponse.from_record(comment, authors) for comment in comments],
    )


@router.put("/{post_id}", response_model=PostMutationResponse)
async def update_post(
    post_id: str,
    payload: UpdatePostRequest,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[BlogStore, Depends(get_store)],
):
    """Updates the title and/or content of a post. Only its author may do so.

    ## Possible Errors
    - 400 Bad Request: Malformed post ID or invalid field.
    - 403 Forbidden: The caller is not the author.
    - 404 Not Found: No post with this ID.
    """
    post = await _get_post_or_404(store, post_id)

    if post.author_id != current_user.id:
        raise Forbidden("Not authorized to update this post")

    post = await store.update_post(post.id, title=payload.title, content=payload.content)
    if post is None:
        raise NotFound("Post not found")

    return PostMutationResponse(
        message="Post updated successfully",
        post=PostResponse.from_record(post, {current_user.id: current_user}),
    )


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: str,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[BlogStore, Depends(get_store)],
):
    """Deletes a post. Only its author may do so.

    ## Possible Errors
    - 403 Forbidden: The caller is not the author.
    - 404 Not Found: No post with this ID.
    """
    post = await _get_post_or_404(store, post_id)

    if post.author_id != current_user.id:
        raise Forbidden("Not authorized to delete this post")

    if not await store.delete_post(post.id):
        raise NotFound("Post not found")

    logfire.info(f"User {current_user.id} deleted post {post.id}")
    return MessageResponse(message="Post deleted successfully")


@router.post(
    "/{post_id}/comments",
    response_model=CommentMutationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    post_id: str,
    payload: CommentRequest,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[BlogStore, Depends(get_store)],
):
    """Adds a comment by the caller to a post.

    ## Possible Errors
    - 400 Bad Request: Malformed post ID or empty content.
    - 404 Not Found: No post with this ID.
    """
    post = await _get_post_or_404(store, post_id)
    comment = await store.create_comment(post.id, current_user.id, payload.content)

    return CommentMutationResponse(
        message="Comment created successfully",
        comment=CommentResponse.from_record(comment, {current_user.id: current_user}),
    )


@router.get("/{post_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    post_id: str,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[BlogStore, Depends(get_store)],
):
    """Lists the comments on a post, oldest first, with a summary of each author."""
    post = await _get_post_or_404(store, post_id)
    comments = await store.list_comments(post.id)
    authors = await store.get_users(comment.author_id for comment in comments)

    return [CommentResponse.from_record(comment, authors) for comment in comments]


@router.put("/{post_id}/comments/{comment_id}", response_model=CommentMutationResponse)
async def update_comment(
    post_id: str,
    comment_id: str,
    payload: CommentRequest,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[BlogStore, Depends(get_store)],
):
    """Edits a comment. Only its author may do so.

    ## Possible Errors
    - 403 Forbidden: The caller is not the author.
    - 404 Not Found: No such post, or no such comment on it.
    """
    post = await _get_post_or_404(store, post_id)
    comment = await _get_comment_or_404(store, post.id, comment_id)

    if comment.author_id != current_user.id:
        raise Forbidden("Not authorized to update this comment")

    comment = await store.update_comment(comment.id, payload.content)
    if comment is None:
        raise NotFound("Comment not found")

    return CommentMutationResponse(
        message="Comment updated successfully",
        comment=CommentResponse.from_record(comment, {current_user.id: current_user}),
    )


@router.delete("/{post_id}/comments/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    post_id: str,
    comment_id: str,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    store: Annotated[BlogStore, Depends(get_store)],
):
    """Deletes a comment. Only its author may do so.

    ## Possible Errors
    - 403 Forbidden: The caller is not the author.
    - 404 Not Found: No such post, or no such comment on it.
    """
    post = await _get_post_or_404(store, post_id)
    comment = await _get_comment_or_404(store, post.id, comment_id)

    if comment.author_id != current_user.id:
        raise Forbidden("Not authorized to delete this comment")

    if not await store.delete_comment(comment.id):
        raise NotFound("Comment not found")

    return MessageResponse(message="Comment deleted successfully")

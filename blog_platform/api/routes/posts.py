"""Post and comment routes."""
import uuid
from collections import defaultdict
from typing import List, Sequence

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.security import admin_required, get_current_user
from ...database import get_db
from ...models import Comment
from ...schemas.auth import IdentitySnapshot
from ...schemas.common import PaginatedResponse, PaginationParams, SuccessResponse
from ...schemas.post import (
    CommentCreate,
    CommentResponse,
    CommentThreadResponse,
    PostCreate,
    PostDetailResponse,
    PostResponse,
    PostUpdate,
)
from ...services.blog import CommentService, PostService

router = APIRouter(tags=["Posts"])


def get_post_service(db: AsyncSession = Depends(get_db)) -> PostService:
    return PostService(db)


def get_comment_service(db: AsyncSession = Depends(get_db)) -> CommentService:
    return CommentService(db)


def get_pagination(
    page: int = Query(1, ge=1),
    size: int = Query(10, ge=1, le=100),
) -> PaginationParams:
    return PaginationParams(page=page, size=size)


def thread_comments(comments: Sequence[Comment]) -> List[CommentThreadResponse]:
    """Nest replies under their parents.

    ``comments`` arrive newest first; top-level comments keep that order and
    replies read oldest first. Replies to hidden comments are dropped.
    """
    children = defaultdict(list)
    for comment in reversed(comments):
        children[comment.parent_id].append(comment)

    def build(comment: Comment) -> CommentThreadResponse:
        return CommentThreadResponse(
            **CommentResponse.model_validate(comment).model_dump(),
            replies=[build(reply) for reply in children[comment.id]],
        )

    return [build(comment) for comment in reversed(children[None])]


@router.get("/posts", response_model=PaginatedResponse[PostResponse])
async def list_posts(
    pagination: PaginationParams = Depends(get_pagination),
    post_service: PostService = Depends(get_post_service),
):
    """List published posts, newest first."""
    posts, total = await post_service.list_published(pagination)
    return PaginatedResponse.create(
        items=[PostResponse.model_validate(post) for post in posts],
        total=total,
        page=pagination.page,
        size=pagination.size,
    )


@router.get("/posts/search", response_model=PaginatedResponse[PostResponse])
async def search_posts(
    q: str = Query(..., min_length=1, max_length=200),
    pagination: PaginationParams = Depends(get_pagination),
    post_service: PostService = Depends(get_post_service),
):
    """Search published posts."""
    posts, total = await post_service.search(q, pagination)
    return PaginatedResponse.create(
        items=[PostResponse.model_validate(post) for post in posts],
        total=total,
        page=pagination.page,
        size=pagination.size,
    )


@router.get("/posts/{slug}", response_model=PostDetailResponse)
async def get_post(
    slug: str,
    post_service: PostService = Depends(get_post_service),
):
    """Get a post with its approved comments, replies nested."""
    post, comments = await post_service.get_with_comments(slug)
    return PostDetailResponse(
        **PostResponse.model_validate(post).model_dump(),
        comments=thread_comments(comments),
    )


@router.post("/posts", response_model=PostResponse, status_code=201)
async def create_post(
    post_create: PostCreate,
    current_user: IdentitySnapshot = Depends(get_current_user),
    post_service: PostService = Depends(get_post_service),
):
    post = await post_service.create_post(current_user, post_create)
    return PostResponse.model_validate(post)


@router.patch("/posts/{slug}", response_model=PostResponse)
async def update_post(
    slug: str,
    post_update: PostUpdate,
    current_user: IdentitySnapshot = Depends(get_current_user),
    post_service: PostService = Depends(get_post_service),
):
    post = await post_service.update_post(slug, current_user, post_update)
    return PostResponse.model_validate(post)


@router.delete("/posts/{slug}", response_model=SuccessResponse)
async def delete_post(
    slug: str,
    current_user: IdentitySnapshot = Depends(get_current_user),
    post_service: PostService = Depends(get_post_service),
):
    await post_service.delete_post(slug, current_user)
    return SuccessResponse(message="Post deleted")


@router.post("/comments", response_model=CommentResponse, status_code=201)
async def create_comment(
    comment_create: CommentCreate,
    current_user: IdentitySnapshot = Depends(get_current_user),
    comment_service: CommentService = Depends(get_comment_service),
):
    """Submit a comment; it stays hidden until approved."""
    comment = await comment_service.create_comment(current_user, comment_create)
    return CommentResponse.model_validate(comment)


@router.post("/comments/{comment_id}/approve", response_model=CommentResponse)
async def approve_comment(
    comment_id: uuid.UUID,
    current_user: IdentitySnapshot = Depends(admin_required),
    comment_service: CommentService = Depends(get_comment_service),
):
    comment = await comment_service.approve_comment(comment_id)
    return CommentResponse.model_validate(comment)

"""Post, comment and taxonomy schemas."""
import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field

from .common import BaseSchema


class PostStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


class PostCreate(BaseSchema):
    """Post creation schema."""

    title: str = Field(..., min_length=1, max_length=200, description="Post title")
    content: str = Field(..., min_length=1, description="Post body")
    excerpt: Optional[str] = Field(None, max_length=500, description="Short summary")
    featured_image: Optional[str] = Field(None, max_length=500, description="Image URL")
    status: PostStatus = Field(default=PostStatus.DRAFT, description="Publication status")
    tags: List[str] = Field(default_factory=list, description="Tag names")
    categories: List[str] = Field(default_factory=list, description="Category names")


class PostUpdate(BaseSchema):
    """Post update schema."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, min_length=1)
    excerpt: Optional[str] = Field(None, max_length=500)
    featured_image: Optional[str] = Field(None, max_length=500)
    status: Optional[PostStatus] = None
    tags: Optional[List[str]] = None
    categories: Optional[List[str]] = None


class CommentCreate(BaseSchema):
    """Comment submission schema."""

    content: str = Field(..., min_length=1, max_length=1000, description="Comment text")
    post_id: uuid.UUID = Field(..., description="Post ID")
    parent_id: Optional[uuid.UUID] = Field(None, description="Parent comment ID")


class TaxonomyCreate(BaseSchema):
    """Tag or category creation schema."""

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)


class TaxonomyResponse(BaseSchema):
    id: uuid.UUID
    name: str
    slug: str
    description: Optional[str] = None


class AuthorResponse(BaseSchema):
    id: uuid.UUID
    username: str
    name: Optional[str] = None
    avatar: Optional[str] = None


class CommentResponse(BaseSchema):
    """Comment response schema."""

    id: uuid.UUID
    content: str
    post_id: uuid.UUID
    parent_id: Optional[uuid.UUID] = None
    is_approved: bool
    author: AuthorResponse
    created_at: datetime


class PostResponse(BaseSchema):
    """Post response schema."""

    id: uuid.UUID
    title: str
    slug: str
    content: str
    excerpt: Optional[str] = None
    featured_image: Optional[str] = None
    status: PostStatus
    published_at: Optional[datetime] = None
    author: AuthorResponse
    tags: List[TaxonomyResponse] = Field(default_factory=list)
    categories: List[TaxonomyResponse] = Field(default_factory=list)
    comment_count: int = Field(0, description="Approved comments")
    created_at: datetime
    updated_at: datetime


class CommentThreadResponse(CommentResponse):
    """Comment with its approved replies, oldest reply first."""

    replies: List["CommentThreadResponse"] = Field(default_factory=list)


class PostDetailResponse(PostResponse):
    """Post with its approved top-level comments and their replies."""

    comments: List[CommentThreadResponse] = Field(default_factory=list)


class SettingValue(BaseSchema):
    key: str = Field(..., min_length=1, max_length=100)
    value: str
    type: str = Field(default="string", pattern="^(string|number|boolean|json)$")


class PageViewCreate(BaseSchema):
    page: str = Field(..., min_length=1, max_length=500, description="Visited path")
    referrer: Optional[str] = Field(None, max_length=500)


class PageViewStat(BaseSchema):
    page: str
    views: int

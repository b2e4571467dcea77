"""Blog content models."""
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Table, Uuid, func, select
from sqlalchemy.orm import Mapped, column_property, mapped_column, relationship

from .base import Base
from .user import User

POST_STATUSES = ("DRAFT", "PUBLISHED", "ARCHIVED")


post_tags = Table(
    "post_tags",
    Base.metadata,
    Column("post_id", Uuid, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Uuid, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)

post_categories = Table(
    "post_categories",
    Base.metadata,
    Column("post_id", Uuid, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Uuid, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)


class Tag(Base):
    """Free-form label attached to posts."""

    __tablename__ = "tags"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(String(120), unique=True, nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<Tag(slug={self.slug})>"


class Category(Base):
    """Editorial grouping of posts."""

    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(String(120), unique=True, nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<Category(slug={self.slug})>"


class Post(Base):
    """Blog post."""

    __tablename__ = "posts"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(250), unique=True, nullable=False, index=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    excerpt: Mapped[Optional[str]] = mapped_column(String(500))
    featured_image: Mapped[Optional[str]] = mapped_column(String(500))
    status: Mapped[str] = mapped_column(String(20), default="DRAFT", nullable=False)  # DRAFT, PUBLISHED, ARCHIVED
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime, index=True)

    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
        index=True
    )

    # Relationships
    author: Mapped[User] = relationship("User", lazy="selectin")
    tags: Mapped[List[Tag]] = relationship(secondary=post_tags, lazy="selectin")
    categories: Mapped[List[Category]] = relationship(secondary=post_categories, lazy="selectin")
    comments: Mapped[List["Comment"]] = relationship(
        "Comment",
        back_populates="post",
        cascade="all, delete-orphan",
        order_by="Comment.created_at.desc()",
    )

    def __repr__(self) -> str:
        return f"<Post(slug={self.slug}, status={self.status})>"


class Comment(Base):
    """Comment on a post, optionally replying to another comment."""

    __tablename__ = "comments"

    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_approved: Mapped[bool] = mapped_column(default=False, nullable=False)

    author_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    post_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    parent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("comments.id", ondelete="CASCADE")
    )

    author: Mapped[User] = relationship("User", lazy="selectin")
    post: Mapped[Post] = relationship("Post", back_populates="comments")

    def __repr__(self) -> str:
        return f"<Comment(post_id={self.post_id}, approved={self.is_approved})>"


# Approved comments only; pending ones are not public
Post.comment_count = column_property(
    select(func.count(Comment.id))
    .where(Comment.post_id == Post.id, Comment.is_approved.is_(True))
    .correlate_except(Comment)
    .scalar_subquery()
)

"""Post, comment and taxonomy services."""
import re
import unicodedata
import uuid
from typing import List, Optional, Sequence, Tuple, Type, TypeVar

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError
from ..core.logging import BusinessLogger
from ..core.validation import sanitize_input, sanitize_optional
from ..models import ROLE_ADMIN, Category, Comment, Post, Tag, utcnow
from ..schemas.auth import IdentitySnapshot
from ..schemas.common import PaginationParams
from ..schemas.post import CommentCreate, PostCreate, PostStatus, PostUpdate, TaxonomyCreate

TaxonomyT = TypeVar("TaxonomyT", Tag, Category)


def slugify(value: str) -> str:
    """Lowercase ASCII slug with hyphen separators."""
    value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^\w\s-]", "", value.lower())
    value = re.sub(r"[-\s_]+", "-", value).strip("-")
    return value or "untitled"


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class TaxonomyService:
    """Tags and categories."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_tags(self) -> List[Tag]:
        result = await self.db.execute(select(Tag).order_by(Tag.name))
        return list(result.scalars().all())

    async def list_categories(self) -> List[Category]:
        result = await self.db.execute(select(Category).order_by(Category.name))
        return list(result.scalars().all())

    async def create_tag(self, data: TaxonomyCreate) -> Tag:
        return await self._create(Tag, data)

    async def create_category(self, data: TaxonomyCreate) -> Category:
        return await self._create(Category, data)

    async def resolve_tags(self, names: Sequence[str]) -> List[Tag]:
        return await self._get_or_create(Tag, names)

    async def resolve_categories(self, names: Sequence[str]) -> List[Category]:
        return await self._get_or_create(Category, names)

    async def _create(self, model: Type[TaxonomyT], data: TaxonomyCreate) -> TaxonomyT:
        name = sanitize_input(data.name)
        slug = slugify(name)
        existing = await self.db.scalar(select(model.id).where(model.slug == slug))
        if existing is not None:
            raise ConflictError(f"{model.__name__} '{slug}' already exists")

        item = model(name=name, slug=slug, description=sanitize_optional(data.description))
        self.db.add(item)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(f"{model.__name__} '{slug}' already exists")
        await self.db.refresh(item)
        return item

    async def _get_or_create(self, model: Type[TaxonomyT], names: Sequence[str]) -> List[TaxonomyT]:
        """Look items up by slug, creating the missing ones (not committed)."""
        items = []
        seen = set()
        for raw in names:
            name = sanitize_input(raw)
            slug = slugify(name)
            if not name or slug in seen:
                continue
            seen.add(slug)

            item = await self.db.scalar(select(model).where(model.slug == slug))
            if item is None:
                item = model(name=name, slug=slug)
                self.db.add(item)
            items.append(item)
        return items


class PostService:
    """Post CRUD, listing and search."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.taxonomy = TaxonomyService(db)

    async def _unique_slug(self, title: str, exclude_id: Optional[uuid.UUID] = None) -> str:
        base = slugify(title)
        slug = base
        suffix = 1
        while True:
            stmt = select(Post.id).where(Post.slug == slug)
            if exclude_id is not None:
                stmt = stmt.where(Post.id != exclude_id)
            if await self.db.scalar(stmt) is None:
                return slug
            suffix += 1
            slug = f"{base}-{suffix}"

    async def create_post(self, author: IdentitySnapshot, data: PostCreate) -> Post:
        """Create a post; tags and categories are attached by name."""
        title = sanitize_input(data.title)
        post = Post(
            title=title,
            slug=await self._unique_slug(title),
            content=sanitize_input(data.content),
            excerpt=sanitize_optional(data.excerpt),
            featured_image=sanitize_optional(data.featured_image),
            status=data.status.value,
            published_at=utcnow() if data.status == PostStatus.PUBLISHED else None,
            author_id=author.id,
        )
        post.tags = await self.taxonomy.resolve_tags(data.tags)
        post.categories = await self.taxonomy.resolve_categories(data.categories)

        self.db.add(post)
        await self.db.commit()
        post = await self._reload(post.id)

        BusinessLogger.log_post_created(
            post_id=str(post.id),
            slug=post.slug,
            author_id=str(author.id),
            status=post.status,
        )
        return post

    async def _reload(self, post_id: uuid.UUID) -> Post:
        stmt = select(Post).where(Post.id == post_id).execution_options(populate_existing=True)
        return (await self.db.execute(stmt)).scalar_one()

    async def get_by_slug(self, slug: str) -> Post:
        post = await self.db.scalar(select(Post).where(Post.slug == slug))
        if post is None:
            raise NotFoundError(f"Post '{slug}' not found")
        return post

    async def get_with_comments(self, slug: str) -> Tuple[Post, List[Comment]]:
        """Post plus its approved comments, newest first."""
        post = await self.get_by_slug(slug)
        result = await self.db.execute(
            select(Comment)
            .where(Comment.post_id == post.id, Comment.is_approved.is_(True))
            .order_by(Comment.created_at.desc())
        )
        return post, list(result.scalars().all())

    async def list_published(self, pagination: PaginationParams) -> Tuple[List[Post], int]:
        conditions = (Post.status == PostStatus.PUBLISHED.value, Post.published_at.is_not(None))
        return await self._paginate(conditions, pagination)

    async def search(self, query: str, pagination: PaginationParams) -> Tuple[List[Post], int]:
        """Case-insensitive match over title, content and excerpt of published posts."""
        pattern = f"%{_escape_like(query.strip().lower())}%"
        conditions = (
            Post.status == PostStatus.PUBLISHED.value,
            or_(
                func.lower(Post.title).like(pattern, escape="\\"),
                func.lower(Post.content).like(pattern, escape="\\"),
                func.lower(Post.excerpt).like(pattern, escape="\\"),
            ),
        )
        return await self._paginate(conditions, pagination)

    async def _paginate(self, conditions, pagination: PaginationParams) -> Tuple[List[Post], int]:
        total = await self.db.scalar(select(func.count(Post.id)).where(*conditions))
        stmt = (
            select(Post)
            .where(*conditions)
            .order_by(Post.published_at.desc(), Post.created_at.desc())
            .offset(pagination.offset)
            .limit(pagination.size)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total or 0

    def _check_owner(self, post: Post, user: IdentitySnapshot) -> None:
        if post.author_id != user.id and user.role != ROLE_ADMIN:
            raise AuthorizationError("Only the author or an administrator may modify this post")

    async def update_post(self, slug: str, user: IdentitySnapshot, data: PostUpdate) -> Post:
        post = await self.get_by_slug(slug)
        self._check_owner(post, user)

        changes = data.model_dump(exclude_unset=True)
        if "title" in changes and changes["title"] is not None:
            post.title = sanitize_input(changes["title"])
            post.slug = await self._unique_slug(post.title, exclude_id=post.id)
        if changes.get("content") is not None:
            post.content = sanitize_input(changes["content"])
        if "excerpt" in changes:
            post.excerpt = sanitize_optional(changes["excerpt"])
        if "featured_image" in changes:
            post.featured_image = sanitize_optional(changes["featured_image"])
        if changes.get("status") is not None:
            status = PostStatus(changes["status"])
            if status == PostStatus.PUBLISHED and post.published_at is None:
                post.published_at = utcnow()
            post.status = status.value
        if data.tags is not None:
            post.tags = await self.taxonomy.resolve_tags(data.tags)
        if data.categories is not None:
            post.categories = await self.taxonomy.resolve_categories(data.categories)

        await self.db.commit()
        return await self._reload(post.id)

    async def delete_post(self, slug: str, user: IdentitySnapshot) -> None:
        post = await self.get_by_slug(slug)
        self._check_owner(post, user)

        await self.db.delete(post)
        await self.db.commit()
        BusinessLogger.log_post_deleted(str(post.id), post.slug, str(user.id))


class CommentService:
    """Comment submission and moderation."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_comment(self, author: IdentitySnapshot, data: CommentCreate) -> Comment:
        """Store a comment awaiting moderation."""
        if await self.db.scalar(select(Post.id).where(Post.id == data.post_id)) is None:
            raise NotFoundError("Post not found")

        if data.parent_id is not None:
            parent_post = await self.db.scalar(
                select(Comment.post_id).where(Comment.id == data.parent_id)
            )
            if parent_post is None or parent_post != data.post_id:
                raise NotFoundError("Parent comment not found")

        comment = Comment(
            content=sanitize_input(data.content),
            author_id=author.id,
            post_id=data.post_id,
            parent_id=data.parent_id,
        )
        self.db.add(comment)
        await self.db.commit()
        await self.db.refresh(comment, attribute_names=["author"])

        BusinessLogger.log_comment_created(
            comment_id=str(comment.id),
            post_id=str(comment.post_id),
            author_id=str(author.id),
            parent_id=str(comment.parent_id) if comment.parent_id else None,
        )
        return comment

    async def approve_comment(self, comment_id: uuid.UUID) -> Comment:
        comment = await self.db.scalar(select(Comment).where(Comment.id == comment_id))
        if comment is None:
            raise NotFoundError("Comment not found")

        comment.is_approved = True
        await self.db.commit()
        return comment

    async def list_pending(self, limit: int = 50) -> List[Comment]:
        result = await self.db.execute(
            select(Comment)
            .where(Comment.is_approved.is_(False))
            .order_by(Comment.created_at)
            .limit(limit)
        )
        return list(result.scalars().all())

"""Database models module."""
from .base import Base, utcnow
from .user import User, ROLE_ADMIN, ROLE_USER
from .session import Session, PasswordResetToken
from .post import Post, Comment, Tag, Category, POST_STATUSES
from .setting import Setting
from .page_view import PageView

__all__ = [
    "Base",
    "utcnow",
    "User",
    "ROLE_ADMIN",
    "ROLE_USER",
    "Session",
    "PasswordResetToken",
    "Post",
    "Comment",
    "Tag",
    "Category",
    "POST_STATUSES",
    "Setting",
    "PageView",
]

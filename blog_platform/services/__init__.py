"""Services module."""
from .analytics import AnalyticsService
from .auth import AuthService
from .blog import CommentService, PostService, TaxonomyService
from .settings import SettingsService

__all__ = [
    "AnalyticsService",
    "AuthService",
    "CommentService",
    "PostService",
    "TaxonomyService",
    "SettingsService",
]

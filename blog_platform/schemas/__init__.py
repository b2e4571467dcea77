"""Pydantic schemas module."""
from .auth import (
    IdentitySnapshot,
    UserCreate,
    UserResponse,
    ProfileUpdate,
    LoginRequest,
    AuthResult,
    AuthResponse,
    PasswordChangeRequest,
    PasswordResetRequest,
    PasswordResetConfirm,
    PasswordStrengthResult,
)
from .post import (
    PostStatus,
    PostCreate,
    PostUpdate,
    PostResponse,
    PostDetailResponse,
    CommentCreate,
    CommentResponse,
    CommentThreadResponse,
    TaxonomyCreate,
    TaxonomyResponse,
    SettingValue,
    PageViewCreate,
    PageViewStat,
)
from .common import (
    PaginatedResponse,
    PaginationParams,
    ErrorResponse,
    SuccessResponse,
    HealthResponse,
)

__all__ = [
    # Auth
    "IdentitySnapshot",
    "UserCreate",
    "UserResponse",
    "ProfileUpdate",
    "LoginRequest",
    "AuthResult",
    "AuthResponse",
    "PasswordChangeRequest",
    "PasswordResetRequest",
    "PasswordResetConfirm",
    "PasswordStrengthResult",
    # Content
    "PostStatus",
    "PostCreate",
    "PostUpdate",
    "PostResponse",
    "PostDetailResponse",
    "CommentCreate",
    "CommentResponse",
    "CommentThreadResponse",
    "TaxonomyCreate",
    "TaxonomyResponse",
    "SettingValue",
    "PageViewCreate",
    "PageViewStat",
    # Common
    "PaginatedResponse",
    "PaginationParams",
    "ErrorResponse",
    "SuccessResponse",
    "HealthResponse",
]

"""Authentication schemas."""
import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import EmailStr, Field

from .common import BaseSchema


class IdentitySnapshot(BaseSchema):
    """Minimal identity carried by signed tokens and session lookups."""

    id: uuid.UUID = Field(..., description="User ID")
    email: str = Field(..., description="User email address")
    username: str = Field(..., description="Username")
    role: str = Field(..., description="User role")
    name: Optional[str] = Field(None, description="Display name")


class UserCreate(BaseSchema):
    """User registration schema."""

    email: EmailStr = Field(..., description="User email address")
    username: str = Field(..., min_length=3, max_length=30, description="Username")
    password: str = Field(..., min_length=8, description="User password")
    name: Optional[str] = Field(None, max_length=255, description="Display name")
    bio: Optional[str] = Field(None, max_length=500, description="Short biography")


class ProfileUpdate(BaseSchema):
    """Profile update schema."""

    name: Optional[str] = Field(None, max_length=255, description="Display name")
    bio: Optional[str] = Field(None, max_length=500, description="Short biography")
    avatar: Optional[str] = Field(None, max_length=500, description="Avatar URL")


class UserResponse(BaseSchema):
    """User response schema."""

    id: uuid.UUID = Field(..., description="User ID")
    email: str = Field(..., description="User email address")
    username: str = Field(..., description="Username")
    name: Optional[str] = Field(None, description="Display name")
    bio: Optional[str] = Field(None, description="Short biography")
    avatar: Optional[str] = Field(None, description="Avatar URL")
    role: str = Field(..., description="User role")
    is_verified: bool = Field(..., description="User verification status")
    created_at: datetime = Field(..., description="Account creation time")


class LoginRequest(BaseSchema):
    """Login request schema."""

    email: EmailStr = Field(..., description="User email")
    password: str = Field(..., min_length=1, description="User password")


class AuthResult(BaseSchema):
    """Outcome of a successful login or registration."""

    identity: IdentitySnapshot
    session_token: str
    signed_token: str
    expires_at: datetime


class AuthResponse(BaseSchema):
    """Login/registration response schema."""

    user: UserResponse = Field(..., description="User information")
    session_token: str = Field(..., description="Opaque session token")
    token: str = Field(..., description="Signed identity token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_at: datetime = Field(..., description="Session expiry")


class PasswordChangeRequest(BaseSchema):
    """Password change request schema."""

    current_password: str = Field(..., description="Current password")
    new_password: str = Field(..., min_length=8, description="New password")


class PasswordResetRequest(BaseSchema):
    """Password reset request schema."""

    email: EmailStr = Field(..., description="User email")


class PasswordResetConfirm(BaseSchema):
    """Password reset confirmation schema."""

    token: str = Field(..., min_length=1, description="Reset token")
    new_password: str = Field(..., min_length=8, description="New password")


class PasswordStrengthResult(BaseSchema):
    """Outcome of a password strength check."""

    valid: bool
    violations: List[str] = Field(default_factory=list)

"""Shared response and request schemas."""
import math
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


def _now() -> datetime:
    return datetime.now(timezone.utc)


class BaseSchema(BaseModel):
    """Schemas read straight from ORM rows."""

    model_config = {"from_attributes": True}


class PaginatedResponse(BaseSchema, Generic[T]):
    """One page of a listing."""

    items: List[T]
    total: int = Field(..., description="Matching rows across all pages")
    page: int
    size: int
    pages: int

    @classmethod
    def create(cls, items: List[T], total: int, page: int, size: int) -> "PaginatedResponse[T]":
        return cls(
            items=items,
            total=total,
            page=page,
            size=size,
            pages=math.ceil(total / size) if size else 0,
        )


class ErrorResponse(BaseSchema):
    """Body of every error response."""

    error: str
    error_code: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=_now)


class SuccessResponse(BaseSchema):
    success: bool = True
    message: str
    data: Optional[Dict[str, Any]] = None


class HealthResponse(BaseSchema):
    status: str = Field(..., description="healthy or degraded")
    timestamp: datetime = Field(default_factory=_now)
    version: str
    services: Dict[str, str] = Field(default_factory=dict)


class PaginationParams(BaseSchema):
    """Query parameters shared by listing endpoints."""

    page: int = Field(1, ge=1)
    size: int = Field(10, ge=1, le=100)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size

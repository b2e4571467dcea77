"""Admin and system management routes."""
from typing import Dict, List

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.exceptions import NotFoundError
from ...core.security import admin_required, get_auth_service
from ...database import get_db
from ...schemas.auth import IdentitySnapshot
from ...schemas.common import HealthResponse, SuccessResponse
from ...schemas.post import CommentResponse, PageViewStat, SettingValue
from ...services.analytics import AnalyticsService
from ...services.auth import AuthService
from ...services.blog import CommentService
from ...services.settings import SettingsService

router = APIRouter(prefix="/admin", tags=["Administration"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """System health check."""
    services = {}

    try:
        await request.app.state.database.ping()
        services["database"] = "healthy"
    except Exception:
        services["database"] = "unhealthy"

    overall_status = "healthy" if all(
        status == "healthy" for status in services.values()
    ) else "degraded"

    return HealthResponse(
        status=overall_status,
        version=request.app.state.settings.api.version,
        services=services,
    )


@router.get("/settings", response_model=Dict[str, str])
async def list_settings(
    current_user: IdentitySnapshot = Depends(admin_required),
    db: AsyncSession = Depends(get_db),
):
    return await SettingsService(db).all()


@router.get("/settings/{key}", response_model=SettingValue)
async def get_setting(
    key: str,
    current_user: IdentitySnapshot = Depends(admin_required),
    db: AsyncSession = Depends(get_db),
):
    setting = await SettingsService(db).get(key)
    if setting is None:
        raise NotFoundError(f"Setting '{key}' not found")
    return SettingValue.model_validate(setting)


@router.put("/settings", response_model=SettingValue)
async def put_setting(
    setting: SettingValue,
    current_user: IdentitySnapshot = Depends(admin_required),
    db: AsyncSession = Depends(get_db),
):
    stored = await SettingsService(db).set(setting.key, setting.value, setting.type)
    return SettingValue.model_validate(stored)


@router.get("/comments/pending", response_model=List[CommentResponse])
async def pending_comments(
    current_user: IdentitySnapshot = Depends(admin_required),
    db: AsyncSession = Depends(get_db),
):
    comments = await CommentService(db).list_pending()
    return [CommentResponse.model_validate(comment) for comment in comments]


@router.get("/page-views", response_model=List[PageViewStat])
async def page_view_stats(
    limit: int = Query(10, ge=1, le=100),
    current_user: IdentitySnapshot = Depends(admin_required),
    db: AsyncSession = Depends(get_db),
):
    """Most viewed pages."""
    top = await AnalyticsService(db).top_pages(limit)
    return [PageViewStat(page=page, views=views) for page, views in top]


@router.post("/cleanup", response_model=SuccessResponse)
async def cleanup_expired(
    current_user: IdentitySnapshot = Depends(admin_required),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Delete expired sessions and password reset tokens."""
    removed = await auth_service.cleanup_expired()
    return SuccessResponse(message="Expired credentials removed", data=removed)

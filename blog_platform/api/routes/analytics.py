"""Page view tracking routes."""
from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.security import client_ip, get_optional_user
from ...database import get_db
from ...schemas.auth import IdentitySnapshot
from ...schemas.common import SuccessResponse
from ...schemas.post import PageViewCreate
from ...services.analytics import AnalyticsService

router = APIRouter(tags=["Analytics"])


@router.post("/page-views", response_model=SuccessResponse, status_code=201)
async def record_page_view(
    page_view: PageViewCreate,
    request: Request,
    current_user: Optional[IdentitySnapshot] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Record a visit; anonymous visitors are welcome."""
    await AnalyticsService(db).log_page_view(
        page_view.page,
        referrer=page_view.referrer,
        user_agent=request.headers.get("user-agent"),
        ip_address=client_ip(request),
        user_id=current_user.id if current_user else None,
    )
    return SuccessResponse(message="Page view recorded")

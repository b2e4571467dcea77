"""Page view recording."""
import uuid
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.validation import sanitize_input, sanitize_optional
from ..models import PageView


class AnalyticsService:
    """Record page views and summarize them for administrators."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log_page_view(
        self,
        page: str,
        referrer: Optional[str] = None,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_id: Optional[uuid.UUID] = None,
    ) -> PageView:
        view = PageView(
            page=sanitize_input(page),
            referrer=sanitize_optional(referrer),
            user_agent=user_agent,
            ip_address=ip_address,
            user_id=user_id,
        )
        self.db.add(view)
        await self.db.commit()
        return view

    async def top_pages(self, limit: int = 10) -> List[Tuple[str, int]]:
        """Most viewed pages, busiest first."""
        views = func.count(PageView.id).label("views")
        result = await self.db.execute(
            select(PageView.page, views)
            .group_by(PageView.page)
            .order_by(views.desc(), PageView.page)
            .limit(limit)
        )
        return [(page, count) for page, count in result.all()]

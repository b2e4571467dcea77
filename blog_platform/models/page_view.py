"""Page view analytics model."""
import uuid
from typing import Optional

from sqlalchemy import String, Text, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class PageView(Base):
    """One recorded visit to a page."""

    __tablename__ = "page_views"

    page: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    referrer: Mapped[Optional[str]] = mapped_column(String(500))
    user_agent: Mapped[Optional[str]] = mapped_column(Text)
    ip_address: Mapped[Optional[str]] = mapped_column(String(45))

    # Anonymous visits have no user
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        index=True
    )

    def __repr__(self) -> str:
        return f"<PageView(page={self.page})>"

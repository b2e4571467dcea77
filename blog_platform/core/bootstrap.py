"""Startup tasks: default administrator account."""
from typing import Optional

import structlog
from sqlalchemy import select
from starlette.concurrency import run_in_threadpool

from ..config.settings import AdminSettings
from ..database import Database
from ..models import ROLE_ADMIN, User
from .auth import CredentialService

logger = structlog.get_logger(__name__)


async def ensure_default_admin(
    database: Database,
    credentials: CredentialService,
    settings: AdminSettings,
) -> Optional[User]:
    """Create an administrator when none exists and a bootstrap password is set.

    Returns the created user, or None when nothing was done.
    """
    async with database.session() as db:
        existing = await db.scalar(select(User.id).where(User.role == ROLE_ADMIN).limit(1))
        if existing is not None:
            return None

        if not settings.password:
            logger.warning("No admin present and ADMIN_PASSWORD not set, skipping bootstrap")
            return None

        if await db.scalar(select(User.id).where(User.email == settings.email)) is not None:
            logger.warning("Admin bootstrap email already registered", email=settings.email)
            return None

        # Pick a free username if the configured one was taken by a regular account
        username = settings.username
        suffix = 1
        while await db.scalar(select(User.id).where(User.username == username)) is not None:
            suffix += 1
            username = f"{settings.username}{suffix}"

        user = User(
            email=settings.email,
            username=username,
            hashed_password=await run_in_threadpool(
                credentials.hash_password, settings.password
            ),
            name="Administrator",
            role=ROLE_ADMIN,
            is_active=True,
            is_verified=True,
        )
        db.add(user)

    logger.warning("Created default admin", username=user.username, email=user.email)
    return user

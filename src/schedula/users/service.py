"""Profile management business logic."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from schedula.auth.service import get_user_by_id
from schedula.exceptions import NotFoundError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from schedula.db.models import User

logger = structlog.get_logger()


async def get_profile(db: AsyncSession, user_id: str) -> User:
    """
    Load the caller's own user row.

    Raises:
        NotFoundError: If the user no longer exists.
    """
    user = await get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def update_profile(
    db: AsyncSession,
    user_id: str,
    first_name: str | None = None,
    last_name: str | None = None,
) -> User:
    """Update first/last name; None leaves a field unchanged."""
    user = await get_profile(db, user_id)

    if first_name is not None:
        user.first_name = first_name
    if last_name is not None:
        user.last_name = last_name

    await db.commit()
    await db.refresh(user)
    logger.info("profile_updated", user_id=user.id)
    return user

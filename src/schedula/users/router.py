"""Profile router: /me endpoints for the authenticated user."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from schedula.auth.dependencies import get_current_identity
from schedula.auth.jwt import TokenIdentity
from schedula.database import get_session
from schedula.users.schemas import ProfileUpdateRequest, UserResponse
from schedula.users.service import get_profile, update_profile

router = APIRouter(prefix="/me", tags=["Profile"])


@router.get("", response_model=UserResponse)
async def get_my_profile(
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> UserResponse:
    """Get own profile."""
    user = await get_profile(db, identity.user_id)
    return UserResponse.model_validate(user)


@router.patch("", response_model=UserResponse)
async def update_my_profile(
    body: ProfileUpdateRequest,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> UserResponse:
    """Update own first/last name."""
    user = await update_profile(
        db,
        identity.user_id,
        first_name=body.first_name,
        last_name=body.last_name,
    )
    return UserResponse.model_validate(user)

"""Activity router: /activities endpoints, scoped to the authenticated user."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from schedula.activities import service
from schedula.activities.schemas import (
    ActivityCreateRequest,
    ActivityDeletedResponse,
    ActivityListResponse,
    ActivityResponse,
    ActivityStatsResponse,
    ActivityUpdateRequest,
    CompleteActivityRequest,
    DeleteActivityRequest,
)
from schedula.auth.dependencies import get_current_identity
from schedula.auth.jwt import TokenIdentity
from schedula.database import get_session

router = APIRouter(prefix="/activities", tags=["Activities"])


@router.get("", response_model=ActivityListResponse)
async def list_activities(
    include_deleted: bool = Query(False, alias="includeDeleted"),
    date_from: datetime | None = Query(None, alias="from"),
    date_to: datetime | None = Query(None, alias="to"),
    view: Literal["list", "calendar"] = Query("list"),  # noqa: ARG001
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> ActivityListResponse:
    """List own activities with total/open/completed counts. ``view`` is a client hint only."""
    activities, stats = await service.list_activities(
        db,
        identity.user_id,
        include_deleted=include_deleted,
        date_from=date_from,
        date_to=date_to,
    )
    return ActivityListResponse(
        activities=[ActivityResponse.model_validate(a) for a in activities],
        stats=ActivityStatsResponse(total=stats.total, open=stats.open, completed=stats.completed),
    )


@router.post("", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
async def create_activity(
    body: ActivityCreateRequest,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> ActivityResponse:
    """Create a scheduled (future) or recorded (past) activity."""
    activity = await service.create_activity(
        db,
        identity.user_id,
        activity_type=body.activity_type,
        title=body.title,
        notes=body.notes,
        scheduled_at=body.scheduled_at,
        recorded_at=body.recorded_at,
        completion_outcome=body.completion_outcome,
    )
    return ActivityResponse.model_validate(activity)


@router.get("/{activity_id}", response_model=ActivityResponse)
async def get_activity(
    activity_id: str,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> ActivityResponse:
    activity = await service.get_activity(db, identity.user_id, activity_id)
    return ActivityResponse.model_validate(activity)


@router.patch("/{activity_id}", response_model=ActivityResponse)
async def update_activity(
    activity_id: str,
    body: ActivityUpdateRequest,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> ActivityResponse:
    """Edit a scheduled activity. Recorded activities are immutable."""
    activity = await service.update_activity(
        db,
        identity.user_id,
        activity_id,
        title=body.title,
        notes=body.notes,
        scheduled_at=body.scheduled_at,
    )
    return ActivityResponse.model_validate(activity)


@router.post("/{activity_id}/complete", response_model=ActivityResponse)
async def complete_activity(
    activity_id: str,
    body: CompleteActivityRequest,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> ActivityResponse:
    """Mark a scheduled activity as done with a past date and an outcome."""
    activity = await service.complete_activity(
        db,
        identity.user_id,
        activity_id,
        completion_date=body.completion_date,
        completion_outcome=body.completion_outcome,
    )
    return ActivityResponse.model_validate(activity)


@router.delete("/{activity_id}", response_model=ActivityDeletedResponse)
async def delete_activity(
    activity_id: str,
    body: DeleteActivityRequest = Body(...),
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> ActivityDeletedResponse:
    """Soft-delete with a reason. The activity stays visible with ``includeDeleted=true``."""
    activity = await service.delete_activity(db, identity.user_id, activity_id, body.reason)
    return ActivityDeletedResponse(
        message="Activity deleted successfully",
        activity=ActivityResponse.model_validate(activity),
    )

"""Request/response schemas for activity endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field, computed_field, field_validator

from schedula.activities.domain import as_utc
from schedula.db.enums import ActivityType, CompletionOutcome
from schedula.schemas import ApiModel

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class ActivityCreateRequest(ApiModel):
    """
    Create a scheduled or a recorded activity.

    Exactly one of ``scheduledAt`` / ``recordedAt`` must be sent; the
    exclusivity and per-state required fields are checked by the service.
    """

    title: str | None = Field(None, min_length=1, max_length=255)
    notes: str | None = None
    activity_type: ActivityType
    scheduled_at: datetime | None = None
    recorded_at: datetime | None = None
    completion_outcome: CompletionOutcome | None = None

    @field_validator("scheduled_at", "recorded_at")
    @classmethod
    def _to_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v) if v is not None else None


class ActivityUpdateRequest(ApiModel):
    """Edit a scheduled activity. Omitted fields are left unchanged."""

    title: str | None = Field(None, min_length=1, max_length=255)
    notes: str | None = None
    scheduled_at: datetime | None = None

    @field_validator("scheduled_at")
    @classmethod
    def _to_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v) if v is not None else None


class CompleteActivityRequest(ApiModel):
    completion_date: datetime
    completion_outcome: CompletionOutcome

    @field_validator("completion_date")
    @classmethod
    def _to_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class DeleteActivityRequest(ApiModel):
    reason: str = Field(..., min_length=1, max_length=1000)

    @field_validator("reason")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Deletion reason is required")
        return v


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class ActivityResponse(ApiModel):
    id: str
    user_id: str
    title: str | None
    notes: str | None
    activity_type: ActivityType
    scheduled_at: datetime | None
    recorded_at: datetime | None
    completion_outcome: CompletionOutcome | None
    deleted_at: datetime | None
    deleted_reason: str | None
    created_at: datetime
    updated_at: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status(self) -> Literal["scheduled", "recorded"]:
        return "recorded" if self.recorded_at is not None else "scheduled"


class ActivityStatsResponse(ApiModel):
    total: int
    open: int
    completed: int


class ActivityListResponse(ApiModel):
    activities: list[ActivityResponse]
    stats: ActivityStatsResponse


class ActivityDeletedResponse(ApiModel):
    message: str
    activity: ActivityResponse

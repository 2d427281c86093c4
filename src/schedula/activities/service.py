"""
Activity business logic.

Every query is scoped to the owning user; a row owned by someone else is
reported as not found. State rules live in ``schedula.activities.domain``.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import and_, or_, select
from sqlalchemy.exc import SQLAlchemyError

from schedula.activities import domain
from schedula.db.models import Activity
from schedula.db.types import utcnow
from schedula.exceptions import InternalError, NotFoundError, StateConflictError, ValidationError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from schedula.db.enums import ActivityType, CompletionOutcome

logger = structlog.get_logger()


async def _commit(db: AsyncSession, activity: Activity, operation: str) -> Activity:
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("transaction_failed", operation=operation)
        raise InternalError("Internal server error") from e
    await db.refresh(activity)
    return activity


async def get_activity(db: AsyncSession, user_id: str, activity_id: str) -> Activity:
    """
    Fetch one of the caller's activities, deleted or not.

    Raises:
        NotFoundError: No such activity for this user.
    """
    result = await db.execute(
        select(Activity).where(Activity.id == activity_id, Activity.user_id == user_id)
    )
    activity = result.scalar_one_or_none()
    if activity is None:
        raise NotFoundError("Activity not found")
    return activity


async def create_activity(
    db: AsyncSession,
    user_id: str,
    *,
    activity_type: ActivityType,
    title: str | None = None,
    notes: str | None = None,
    scheduled_at: datetime | None = None,
    recorded_at: datetime | None = None,
    completion_outcome: CompletionOutcome | None = None,
) -> Activity:
    """Create a scheduled (future) or recorded (past) activity."""
    state = domain.new_state(
        utcnow(),
        title=title,
        scheduled_at=scheduled_at,
        recorded_at=recorded_at,
        outcome=completion_outcome,
    )

    activity = Activity(user_id=user_id, activity_type=activity_type, title=title, notes=notes)
    domain.apply_state(activity, state)
    db.add(activity)
    await _commit(db, activity, "create_activity")

    logger.info(
        "activity_created",
        user_id=user_id,
        activity_id=activity.id,
        state=type(state).__name__.lower(),
    )
    return activity


async def update_activity(
    db: AsyncSession,
    user_id: str,
    activity_id: str,
    *,
    title: str | None = None,
    notes: str | None = None,
    scheduled_at: datetime | None = None,
) -> Activity:
    """
    Edit title, notes or date of a scheduled activity.

    Raises:
        NotFoundError: Not the caller's activity.
        ValidationError: Blank title.
        StateConflictError: The activity is already recorded.
        InvalidDateError: The new date is not in the future.
    """
    activity = await get_activity(db, user_id, activity_id)
    state = domain.reschedule(
        domain.state_of(activity),
        utcnow(),
        title=title,
        scheduled_at=scheduled_at,
    )

    domain.apply_state(activity, state)
    if notes is not None:
        activity.notes = notes
    await _commit(db, activity, "update_activity")

    logger.info("activity_updated", user_id=user_id, activity_id=activity.id)
    return activity


async def complete_activity(
    db: AsyncSession,
    user_id: str,
    activity_id: str,
    *,
    completion_date: datetime,
    completion_outcome: CompletionOutcome,
) -> Activity:
    """
    Record the outcome of a scheduled activity. The original schedule is kept.

    Raises:
        NotFoundError: Not the caller's activity.
        StateConflictError: The activity is not scheduled.
        InvalidDateError: ``completion_date`` is not in the past.
    """
    activity = await get_activity(db, user_id, activity_id)
    state = domain.complete(domain.state_of(activity), utcnow(), completion_date, completion_outcome)

    domain.apply_state(activity, state)
    await _commit(db, activity, "complete_activity")

    logger.info(
        "activity_completed",
        user_id=user_id,
        activity_id=activity.id,
        outcome=completion_outcome.value,
    )
    return activity


async def delete_activity(db: AsyncSession, user_id: str, activity_id: str, reason: str) -> Activity:
    """
    Soft-delete an activity with a mandatory reason. The row is kept.

    Raises:
        ValidationError: Blank reason.
        NotFoundError: Not the caller's activity.
        StateConflictError: Already deleted.
    """
    if not reason.strip():
        raise ValidationError("Deletion reason is required")

    activity = await get_activity(db, user_id, activity_id)
    if activity.deleted_at is not None:
        raise StateConflictError("Activity is already deleted", code="StateConflict")

    activity.deleted_at = utcnow()
    activity.deleted_reason = reason
    await _commit(db, activity, "delete_activity")

    logger.info("activity_deleted", user_id=user_id, activity_id=activity.id)
    return activity


async def list_activities(
    db: AsyncSession,
    user_id: str,
    *,
    include_deleted: bool = False,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> tuple[list[Activity], domain.ActivityStats]:
    """
    List the caller's activities with summary counts.

    Date bounds are inclusive and match when either ``scheduled_at`` or
    ``recorded_at`` falls inside them. Ordering is by ``scheduled_at``
    ascending, then ``recorded_at`` descending, nulls last. Stats count only
    non-deleted rows of the filtered set.
    """
    query = select(Activity).where(Activity.user_id == user_id)

    if not include_deleted:
        query = query.where(Activity.deleted_at.is_(None))

    if date_from is not None or date_to is not None:
        scheduled_bounds = [Activity.scheduled_at.is_not(None)]
        recorded_bounds = [Activity.recorded_at.is_not(None)]
        if date_from is not None:
            date_from = domain.as_utc(date_from)
            scheduled_bounds.append(Activity.scheduled_at >= date_from)
            recorded_bounds.append(Activity.recorded_at >= date_from)
        if date_to is not None:
            date_to = domain.as_utc(date_to)
            scheduled_bounds.append(Activity.scheduled_at <= date_to)
            recorded_bounds.append(Activity.recorded_at <= date_to)
        query = query.where(or_(and_(*scheduled_bounds), and_(*recorded_bounds)))

    query = query.order_by(
        Activity.scheduled_at.is_(None),
        Activity.scheduled_at.asc(),
        Activity.recorded_at.is_(None),
        Activity.recorded_at.desc(),
        Activity.created_at.asc(),
    )

    result = await db.execute(query)
    activities = list(result.scalars().all())
    return activities, domain.summarize(activities)

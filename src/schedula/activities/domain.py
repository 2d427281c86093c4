"""
Activity lifecycle rules.

An activity is in one of two states, modelled as a tagged variant:

* ``Scheduled``: a future plan with a title.
* ``Recorded``: something that happened, with an outcome. A recorded
  activity that was completed from a schedule keeps its original
  ``scheduled_at``.

The only transition is ``Scheduled -> Recorded`` via :func:`complete`.
Soft deletion is an overlay on either state and is not part of the variant.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Union

from schedula.db.enums import CompletionOutcome
from schedula.exceptions import InvalidDateError, StateConflictError, ValidationError

if TYPE_CHECKING:
    from schedula.db.models import Activity


@dataclass(frozen=True)
class Scheduled:
    title: str
    scheduled_at: datetime


@dataclass(frozen=True)
class Recorded:
    recorded_at: datetime
    outcome: CompletionOutcome
    scheduled_at: datetime | None = None


ActivityState = Union[Scheduled, Recorded]


@dataclass(frozen=True)
class ActivityStats:
    total: int
    open: int
    completed: int


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and normalise aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def require_future(value: datetime, now: datetime, message: str) -> datetime:
    value = as_utc(value)
    if value <= now:
        raise InvalidDateError(message, code="InvalidDate")
    return value


def require_past(value: datetime, now: datetime, message: str) -> datetime:
    value = as_utc(value)
    if value >= now:
        raise InvalidDateError(message, code="InvalidDate")
    return value


def new_state(
    now: datetime,
    *,
    title: str | None = None,
    scheduled_at: datetime | None = None,
    recorded_at: datetime | None = None,
    outcome: CompletionOutcome | None = None,
) -> ActivityState:
    """
    Build the initial state from creation input.

    Exactly one of ``scheduled_at`` / ``recorded_at`` must be given. Scheduled
    activities need a title and a strictly future date; recorded ones need an
    outcome and a strictly past date.

    Raises:
        ValidationError: Both or neither dates, or a required field missing.
        InvalidDateError: Date on the wrong side of ``now``.
    """
    if scheduled_at is not None and recorded_at is not None:
        raise ValidationError("Activity must be either scheduled or recorded, not both")

    if scheduled_at is not None:
        if not title or not title.strip():
            raise ValidationError("Title is required")
        if outcome is not None:
            raise ValidationError("Completion outcome is only allowed for recorded activities")
        return Scheduled(
            title=title,
            scheduled_at=require_future(scheduled_at, now, "Scheduled activities must be in the future"),
        )

    if recorded_at is None:
        raise ValidationError("Activity must be either scheduled or recorded")
    if outcome is None:
        raise ValidationError("Completion outcome is required")
    return Recorded(
        recorded_at=require_past(recorded_at, now, "Recorded activities must be in the past"),
        outcome=outcome,
    )


def state_of(activity: Activity) -> ActivityState:
    """Read the variant back from a stored row."""
    if activity.recorded_at is not None:
        if activity.completion_outcome is None:
            msg = f"Recorded activity {activity.id} has no completion outcome"
            raise ValueError(msg)
        return Recorded(
            recorded_at=activity.recorded_at,
            outcome=activity.completion_outcome,
            scheduled_at=activity.scheduled_at,
        )
    if activity.scheduled_at is None:
        msg = f"Activity {activity.id} is neither scheduled nor recorded"
        raise ValueError(msg)
    return Scheduled(title=activity.title or "", scheduled_at=activity.scheduled_at)


def apply_state(activity: Activity, state: ActivityState) -> None:
    """Write a variant onto the row's nullable columns."""
    if isinstance(state, Scheduled):
        activity.title = state.title
        activity.scheduled_at = state.scheduled_at
        activity.recorded_at = None
        activity.completion_outcome = None
    else:
        activity.scheduled_at = state.scheduled_at
        activity.recorded_at = state.recorded_at
        activity.completion_outcome = state.outcome


def require_editable(state: ActivityState) -> Scheduled:
    if not isinstance(state, Scheduled):
        raise StateConflictError("Recorded activities cannot be edited", code="StateConflict")
    return state


def reschedule(
    state: ActivityState,
    now: datetime,
    *,
    title: str | None = None,
    scheduled_at: datetime | None = None,
) -> Scheduled:
    """Edit a scheduled activity; a new date must still be strictly in the future."""
    current = require_editable(state)
    if title is not None and not title.strip():
        raise ValidationError("Title is required")
    return Scheduled(
        title=title if title is not None else current.title,
        scheduled_at=(
            require_future(scheduled_at, now, "Scheduled date must be in the future")
            if scheduled_at is not None
            else current.scheduled_at
        ),
    )


def complete(state: ActivityState, now: datetime, completed_at: datetime, outcome: CompletionOutcome) -> Recorded:
    """
    One-way transition from Scheduled to Recorded.

    Raises:
        StateConflictError: The activity is not scheduled.
        InvalidDateError: ``completed_at`` is not strictly in the past.
    """
    if not isinstance(state, Scheduled):
        raise StateConflictError("Only scheduled activities can be completed", code="StateConflict")
    return Recorded(
        recorded_at=require_past(completed_at, now, "Completion date must be in the past"),
        outcome=outcome,
        scheduled_at=state.scheduled_at,
    )


def summarize(activities: Iterable[Activity]) -> ActivityStats:
    """Counts over non-deleted activities: all, still scheduled, recorded."""
    total = open_ = completed = 0
    for activity in activities:
        if activity.deleted_at is not None:
            continue
        total += 1
        if activity.recorded_at is not None:
            completed += 1
        elif activity.scheduled_at is not None:
            open_ += 1
    return ActivityStats(total=total, open=open_, completed=completed)

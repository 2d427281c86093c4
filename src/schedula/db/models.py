"""ORM models for users, credentials and activities.

Every credential and activity row belongs to exactly one user and is
removed with it (``ON DELETE CASCADE``).
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from schedula.db.base import Base
from schedula.db.enums import ActivityType, CompletionOutcome, EmailTokenType, UserStatus
from schedula.db.types import UTCDateTime, utcnow


def _uuid() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Identity and credential record."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    status: Mapped[UserStatus] = mapped_column(
        Enum(UserStatus, name="user_status"),
        nullable=False,
        default=UserStatus.WAITING_EMAIL_CONFIRMATION,
    )
    failed_login_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    last_login_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    password_history: Mapped[list[PasswordHistory]] = relationship(
        "PasswordHistory", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    email_tokens: Mapped[list[EmailToken]] = relationship(
        "EmailToken", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    refresh_tokens: Mapped[list[RefreshToken]] = relationship(
        "RefreshToken", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    activities: Mapped[list[Activity]] = relationship(
        "Activity", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )


# ---------------------------------------------------------------------------
# Password history (append-only)
# ---------------------------------------------------------------------------


class PasswordHistory(Base):
    """One row per password the user has ever set."""

    __tablename__ = "password_history"
    __table_args__ = (Index("ix_password_history_user_id_created_at", "user_id", "created_at"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    user: Mapped[User] = relationship("User", back_populates="password_history")


# ---------------------------------------------------------------------------
# Email tokens (confirm email / reset password)
# ---------------------------------------------------------------------------


class EmailToken(Base):
    """Single-use, expiring, typed token. Only the SHA-256 of the raw token is stored."""

    __tablename__ = "email_tokens"
    __table_args__ = (Index("ix_email_tokens_user_id_type", "user_id", "type"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[EmailTokenType] = mapped_column(Enum(EmailTokenType, name="email_token_type"), nullable=False)
    token_hash: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    user: Mapped[User] = relationship("User", back_populates="email_tokens")


# ---------------------------------------------------------------------------
# Refresh tokens
# ---------------------------------------------------------------------------


class RefreshToken(Base):
    """Server-side record of an issued refresh token, for revocation."""

    __tablename__ = "refresh_tokens"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token_hash: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    revoked_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    user: Mapped[User] = relationship("User", back_populates="refresh_tokens")


# ---------------------------------------------------------------------------
# Activities
# ---------------------------------------------------------------------------


class Activity(Base):
    """
    Scheduled or recorded activity.

    Scheduled rows have ``scheduled_at`` and no ``recorded_at``. Recorded rows
    have ``recorded_at`` and ``completion_outcome`` (and keep ``scheduled_at``
    when they were completed from a schedule). See ``schedula.activities.domain``
    for the variant view.
    """

    __tablename__ = "activities"
    __table_args__ = (
        Index("ix_activities_user_id_scheduled_at", "user_id", "scheduled_at"),
        Index("ix_activities_user_id_recorded_at", "user_id", "recorded_at"),
        Index("ix_activities_user_id_deleted_at", "user_id", "deleted_at"),
        CheckConstraint(
            "scheduled_at IS NOT NULL OR recorded_at IS NOT NULL",
            name="scheduled_or_recorded",
        ),
        CheckConstraint(
            "(recorded_at IS NULL) = (completion_outcome IS NULL)",
            name="outcome_iff_recorded",
        ),
        CheckConstraint(
            "(deleted_at IS NULL) = (deleted_reason IS NULL)",
            name="soft_delete_pair",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    activity_type: Mapped[ActivityType] = mapped_column(Enum(ActivityType, name="activity_type"), nullable=False)
    scheduled_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    recorded_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    completion_outcome: Mapped[CompletionOutcome | None] = mapped_column(
        Enum(CompletionOutcome, name="completion_outcome"), nullable=True
    )
    deleted_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    deleted_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user: Mapped[User] = relationship("User", back_populates="activities")

    @property
    def is_recorded(self) -> bool:
        return self.recorded_at is not None

    @property
    def is_scheduled(self) -> bool:
        return self.scheduled_at is not None and self.recorded_at is None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

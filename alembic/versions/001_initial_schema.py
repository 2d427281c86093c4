"""Initial schema: users, credentials and activities.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-16
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

USER_STATUS = ("ACTIVE", "BLOCKED", "WAITING_EMAIL_CONFIRMATION", "SUSPENDED")
EMAIL_TOKEN_TYPE = ("CONFIRM_EMAIL", "RESET_PASSWORD")
ACTIVITY_TYPE = (
    "DOCTOR_APPOINTMENT",
    "CALL",
    "MEETING",
    "GYM",
    "GROCERY_RUN",
    "STUDY_SESSION",
    "PAY_BILLS",
    "CAR_MAINTENANCE",
    "DENTIST_APPOINTMENT",
    "HAIRCUT",
    "WORKOUT",
    "LUNCH_MEETING",
    "TEAM_STANDUP",
    "CLIENT_CALL",
    "PERSONAL_TIME",
    "OTHER",
)
COMPLETION_OUTCOME = ("COMPLETED_OK", "NO_SHOW", "DID_NOT_ANSWER", "CANCELLED", "FAILED")


def _user_fk() -> sa.ForeignKey:
    return sa.ForeignKey("users.id", ondelete="CASCADE")


def upgrade() -> None:
    """Create all tables."""
    # --- Users ---
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(256), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("status", sa.Enum(*USER_STATUS, name="user_status"), nullable=False),
        sa.Column("failed_login_attempts", sa.Integer(), server_default="0", nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    # --- Password history ---
    op.create_table(
        "password_history",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(36), _user_fk(), nullable=False),
        sa.Column("password_hash", sa.String(256), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_password_history"),
    )
    op.create_index("ix_password_history_user_id_created_at", "password_history", ["user_id", "created_at"])

    # --- Email tokens ---
    op.create_table(
        "email_tokens",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(36), _user_fk(), nullable=False),
        sa.Column("type", sa.Enum(*EMAIL_TOKEN_TYPE, name="email_token_type"), nullable=False),
        sa.Column("token_hash", sa.String(128), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_email_tokens"),
        sa.UniqueConstraint("token_hash", name="uq_email_tokens_token_hash"),
    )
    op.create_index("ix_email_tokens_user_id_type", "email_tokens", ["user_id", "type"])

    # --- Refresh tokens ---
    op.create_table(
        "refresh_tokens",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(36), _user_fk(), nullable=False),
        sa.Column("token_hash", sa.String(128), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_refresh_tokens"),
        sa.UniqueConstraint("token_hash", name="uq_refresh_tokens_token_hash"),
    )
    op.create_index("ix_refresh_tokens_user_id", "refresh_tokens", ["user_id"])

    # --- Activities ---
    op.create_table(
        "activities",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(36), _user_fk(), nullable=False),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("activity_type", sa.Enum(*ACTIVITY_TYPE, name="activity_type"), nullable=False),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "completion_outcome",
            sa.Enum(*COMPLETION_OUTCOME, name="completion_outcome"),
            nullable=True,
        ),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_activities"),
        sa.CheckConstraint(
            "scheduled_at IS NOT NULL OR recorded_at IS NOT NULL",
            name="ck_activities_scheduled_or_recorded",
        ),
        sa.CheckConstraint(
            "(recorded_at IS NULL) = (completion_outcome IS NULL)",
            name="ck_activities_outcome_iff_recorded",
        ),
        sa.CheckConstraint(
            "(deleted_at IS NULL) = (deleted_reason IS NULL)",
            name="ck_activities_soft_delete_pair",
        ),
    )
    op.create_index("ix_activities_user_id_scheduled_at", "activities", ["user_id", "scheduled_at"])
    op.create_index("ix_activities_user_id_recorded_at", "activities", ["user_id", "recorded_at"])
    op.create_index("ix_activities_user_id_deleted_at", "activities", ["user_id", "deleted_at"])


def downgrade() -> None:
    """Drop all tables and enum types."""
    op.drop_table("activities")
    op.drop_table("refresh_tokens")
    op.drop_table("email_tokens")
    op.drop_table("password_history")
    op.drop_table("users")

    bind = op.get_bind()
    if bind.dialect.name != "postgresql":
        return
    for enum_name in ("completion_outcome", "activity_type", "email_token_type", "user_status"):
        sa.Enum(name=enum_name).drop(bind, checkfirst=True)

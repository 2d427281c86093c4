"""Closed value sets stored as SQL enums."""

import enum


class UserStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    BLOCKED = "BLOCKED"
    WAITING_EMAIL_CONFIRMATION = "WAITING_EMAIL_CONFIRMATION"
    SUSPENDED = "SUSPENDED"


class EmailTokenType(str, enum.Enum):
    CONFIRM_EMAIL = "CONFIRM_EMAIL"
    RESET_PASSWORD = "RESET_PASSWORD"


class ActivityType(str, enum.Enum):
    DOCTOR_APPOINTMENT = "DOCTOR_APPOINTMENT"
    CALL = "CALL"
    MEETING = "MEETING"
    GYM = "GYM"
    GROCERY_RUN = "GROCERY_RUN"
    STUDY_SESSION = "STUDY_SESSION"
    PAY_BILLS = "PAY_BILLS"
    CAR_MAINTENANCE = "CAR_MAINTENANCE"
    DENTIST_APPOINTMENT = "DENTIST_APPOINTMENT"
    HAIRCUT = "HAIRCUT"
    WORKOUT = "WORKOUT"
    LUNCH_MEETING = "LUNCH_MEETING"
    TEAM_STANDUP = "TEAM_STANDUP"
    CLIENT_CALL = "CLIENT_CALL"
    PERSONAL_TIME = "PERSONAL_TIME"
    OTHER = "OTHER"


class CompletionOutcome(str, enum.Enum):
    COMPLETED_OK = "COMPLETED_OK"
    NO_SHOW = "NO_SHOW"
    DID_NOT_ANSWER = "DID_NOT_ANSWER"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"

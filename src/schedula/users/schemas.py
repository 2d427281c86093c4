"""Request/response schemas for the profile endpoints."""

from pydantic import Field

from schedula.auth.schemas import UserResponse
from schedula.schemas import ApiModel


class ProfileUpdateRequest(ApiModel):
    """Update profile fields. Omitted fields are left unchanged."""

    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)


__all__ = ["ProfileUpdateRequest", "UserResponse"]

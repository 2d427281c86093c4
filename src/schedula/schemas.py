"""Shared base for request/response schemas: camelCase on the wire, snake_case in Python."""

from typing import Annotated

from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def _check_email(value: str) -> str:
    """Validate the address syntax but keep it exactly as given (emails are stored case-sensitively)."""
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as exc:
        msg = "Invalid email address"
        raise ValueError(msg) from exc
    return value


EmailAddress = Annotated[str, AfterValidator(_check_email)]


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(ApiModel):
    message: str

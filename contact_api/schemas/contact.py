"""Pydantic schemas for contact form submissions."""

from __future__ import annotations

import re
import unicodedata

from pydantic import BaseModel, ConfigDict, Field, field_validator

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+$")


class ContactForm(BaseModel):
    """Contact submission bound from a JSON or form-encoded body."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(
        ..., min_length=1, max_length=200, description="Sender display name."
    )
    email: str = Field(
        ..., min_length=3, max_length=320, description="Sender email address."
    )
    message: str = Field(
        ..., min_length=1, max_length=10000, description="Free-text message."
    )

    @field_validator("name", "email")
    @classmethod
    def _header_safe(cls, value: str) -> str:
        # Name and email end up in the Subject and Reply-To headers
        if len(value.splitlines()) > 1 or any(
            unicodedata.category(char) == "Cc" for char in value
        ):
            raise ValueError("must be a single line without control characters")
        return value

    @field_validator("email")
    @classmethod
    def _email_shape(cls, value: str) -> str:
        if not _EMAIL_PATTERN.match(value):
            raise ValueError("email must look like name@domain")
        return value


class ContactResponse(BaseModel):
    """Response returned once the submission has been relayed."""

    message: str = Field(
        "Email sent", description="Human-readable confirmation."
    )

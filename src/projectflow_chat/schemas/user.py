"""User directory Pydantic schemas."""

import re
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class UserCreate(BaseModel):
    """Schema for adding a user to the directory."""

    name: str = Field(..., min_length=1, max_length=100, description="Display name")
    email: str = Field(..., max_length=320, description="Unique email address")
    role: Literal["user", "admin"] = Field("user", description="Directory role")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Reject names that are only whitespace."""
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Normalise and sanity-check the email address."""
        v = v.strip().lower()
        if not _EMAIL_PATTERN.match(v):
            raise ValueError("Please include a valid email")
        return v


class UserResponse(BaseModel):
    """Directory entry returned by the API."""

    id: int
    name: str
    email: str
    role: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

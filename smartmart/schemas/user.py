# smartmart/schemas/user.py
import re
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, Field, field_validator

from smartmart.schemas.base import CamelModel

# App-level roles. "guest" = no token, so we don't store it here.
Role = Literal["user", "admin"]

Gender = Literal["male", "female", "other"]

_PHONE_RE = re.compile(r"^\+?[0-9()\-\s]{6,20}$")


class UserRead(CamelModel):
    """Profile returned to clients."""

    id: uuid.UUID
    email: str
    role: Role
    first_name: str
    last_name: str
    contact_number: str | None = None
    gender: Gender
    profile_image: str | None = None
    created_at: datetime


class ProfileUpdate(CamelModel):
    """
    Partial profile update (multipart form fields).

    Validation rules:
      - first/last name cannot be blank when provided
      - contact number: digits, spaces, dashes, parentheses, optional
        leading "+"; an empty value clears it
      - gender: male | female | other
    """

    model_config = ConfigDict(extra="forbid")

    first_name: str | None = Field(default=None, max_length=50)
    last_name: str | None = Field(default=None, max_length=50)
    contact_number: str | None = Field(default=None, max_length=20)
    gender: Gender | None = None

    @field_validator("first_name", "last_name")
    @classmethod
    def normalize_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v

    @field_validator("contact_number")
    @classmethod
    def normalize_contact(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            return None
        if not _PHONE_RE.match(v):
            raise ValueError("invalid contact number")
        return v


class UserRoleUpdate(CamelModel):
    """
    Admin-only role update schema.
    """

    model_config = ConfigDict(extra="forbid")
    role: Role

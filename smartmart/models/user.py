# smartmart/models/user.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    """
    Persistent user profile for the SmartMart dashboard.

    Identity:
      - id: MUST match Supabase auth.users.id (UUID from JWT "sub")

    Role:
      - "user" | "admin"

    Password hashes live with the identity provider. We only mirror
    identity, role and the editable profile fields.
    """

    __tablename__ = "users"

    id: uuid.UUID = Field(
        primary_key=True,
        index=True,
        description="Matches Supabase auth.users.id",
    )

    email: str = Field(
        unique=True,
        index=True,
        description="Email from Supabase auth.users",
    )

    role: str = Field(
        default="user",
        index=True,
        description="Application role: user | admin",
    )

    # --- Editable profile ---

    first_name: str = Field(
        default="",
        max_length=50,
        description="Given name; first part of email by default",
    )

    last_name: str = Field(default="", max_length=50)

    contact_number: str | None = Field(default=None, max_length=20)

    # male | female | other
    gender: str = Field(default="other")

    profile_image: str | None = Field(
        default=None,
        description="Public avatar URL in Supabase Storage",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )

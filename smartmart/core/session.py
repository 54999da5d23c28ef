# smartmart/core/session.py
import uuid
from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException, status

from smartmart.core.auth import get_current_user
from smartmart.models.user import User


@dataclass
class SessionContext:
    """
    Per-request view of "who is editing".

    Lifecycle:
      - populated from the access token (login) plus the client's persisted
        fallback user id (`X-User-Id` header or a path parameter)
      - `remember()` refreshes the cached profile after a successful update
      - `clear()` drops both identities (logout)
    """

    user: User | None = None
    fallback_user_id: uuid.UUID | None = None

    def resolve_user_id(self) -> uuid.UUID:
        """
        Return the id of the profile this request targets.

        Order:
          1. admin session with a fallback id => the fallback (acting on behalf)
          2. session user
          3. persisted fallback id

        Raises:
            HTTPException(428): neither identity is available.
        """
        if self.user is not None:
            if self.fallback_user_id is not None and self.user.role == "admin":
                return self.fallback_user_id
            return self.user.id
        if self.fallback_user_id is not None:
            return self.fallback_user_id
        raise HTTPException(
            status_code=status.HTTP_428_PRECONDITION_REQUIRED,
            detail="User ID not found in session or fallback",
        )

    def remember(self, user: User) -> None:
        if self.user is None or self.user.id == user.id:
            self.user = user

    def clear(self) -> None:
        self.user = None
        self.fallback_user_id = None


def get_session_context(
    current_user: User | None = Depends(get_current_user),
    x_user_id: uuid.UUID | None = Header(default=None),
) -> SessionContext:
    """FastAPI dependency building the SessionContext for `/users/me` routes."""
    return SessionContext(user=current_user, fallback_user_id=x_user_id)

# smartmart/services/profile_service.py
import logging
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from smartmart.core.session import SessionContext
from smartmart.core.storage_utils import (
    MAX_IMAGE_BYTES,
    STORAGE_ERRORS,
    delete_public_url,
    image_extension,
    upload_to_storage,
)
from smartmart.models.user import User
from smartmart.repositories.user_repo import UserRepository
from smartmart.schemas.user import ProfileUpdate, UserRoleUpdate

logger = logging.getLogger(__name__)


class ProfileService:
    """
    Business logic for user profiles.

    Responsibilities:
      - resolve which profile a request edits (SessionContext)
      - enforce "own profile unless admin"
      - validate and upload avatar images
      - keep the session's cached profile in sync
    """

    def __init__(self, repo: UserRepository):
        self.repo = repo

    # ----- Helpers -----

    @staticmethod
    def _validate_image(content_type: str | None, file_bytes: bytes) -> str:
        ext = image_extension(content_type)
        if ext is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Unsupported image type. Allowed: JPEG, PNG, WEBP.",
            )
        if len(file_bytes) > MAX_IMAGE_BYTES:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail="Image too large (max 5MB).",
            )
        return ext

    def _authorize(self, ctx: SessionContext, target_id: uuid.UUID) -> User:
        acting = ctx.user
        if acting is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication required",
            )
        if acting.role != "admin" and (
            target_id != acting.id
            or (ctx.fallback_user_id is not None and ctx.fallback_user_id != acting.id)
        ):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only edit your own profile",
            )
        return acting

    # ----- Self / profile -----

    def get_user(self, session: Session, user_id: uuid.UUID) -> User:
        """
        Raises:
            HTTPException(404): if not found.
        """
        user = self.repo.get_by_id(session, user_id)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found",
            )
        return user

    def update_profile(
        self,
        session: Session,
        ctx: SessionContext,
        payload: ProfileUpdate,
        image: tuple[str | None, bytes] | None = None,
    ) -> User:
        """
        Apply a partial profile update and an optional avatar replacement.

        Steps:
          1. Resolve the target id (428 if none) before any I/O.
          2. Authorize (401 guest, 403 someone else's profile).
          3. Validate the image (400 type, 413 size).
          4. Load the user (404), apply provided fields.
          5. Upload the avatar to users/<id>/avatar.<ext>, then drop
             the previous one if its URL changed.
          6. Persist and refresh the session's cached profile.

        Args:
            image: optional (content_type, file_bytes).
        """
        target_id = ctx.resolve_user_id()
        self._authorize(ctx, target_id)

        ext = None
        if image is not None:
            ext = self._validate_image(image[0], image[1])

        user = self.get_user(session, target_id)

        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(user, field, value)

        if image is not None:
            old_url = user.profile_image
            try:
                new_url = upload_to_storage(
                    f"users/{user.id}/avatar.{ext}", image[1], image[0]
                )
            except STORAGE_ERRORS as e:
                logger.error("Avatar upload failed for user %s: %s", user.id, e)
                raise HTTPException(
                    status_code=status.HTTP_502_BAD_GATEWAY,
                    detail={"message": "Profile image upload failed", "error": str(e)},
                ) from e

            user.profile_image = new_url
            if old_url and old_url != new_url:
                try:
                    delete_public_url(old_url)
                except STORAGE_ERRORS as e:
                    logger.warning("Could not delete old avatar %s: %s", old_url, e)

        user = self.repo.update(session, user)
        ctx.remember(user)
        return user

    # ----- Admin operations -----

    def list_users(self, session: Session, skip: int, limit: int) -> list[User]:
        """List users with pagination (admin only)."""
        return self.repo.list(session, skip=skip, limit=limit)

    def update_role(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: UserRoleUpdate,
    ) -> User:
        """
        Change user's role (admin only).

        Role validation is enforced by the schema (Literal).
        """
        user = self.get_user(session, user_id)
        user.role = payload.role
        return self.repo.update(session, user)

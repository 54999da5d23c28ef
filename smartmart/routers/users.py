# smartmart/routers/users.py
import uuid

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import ValidationError
from sqlmodel import Session

from smartmart.core.auth import get_current_user, require_admin, require_auth
from smartmart.core.session import SessionContext, get_session_context
from smartmart.database import get_session
from smartmart.models.user import User
from smartmart.repositories.user_repo import UserRepository
from smartmart.schemas.base import error_list
from smartmart.schemas.user import ProfileUpdate, UserRead, UserRoleUpdate
from smartmart.services.profile_service import ProfileService

router = APIRouter(prefix="/users", tags=["Users"])

repo = UserRepository()
service = ProfileService(repo)


class ProfileForm:
    """
    Multipart profile form: firstName, lastName, contactNumber, gender
    and an optional profileImage file. Omitted fields are left unchanged.
    """

    def __init__(
        self,
        first_name: str | None = Form(default=None, alias="firstName"),
        last_name: str | None = Form(default=None, alias="lastName"),
        contact_number: str | None = Form(default=None, alias="contactNumber"),
        gender: str | None = Form(default=None),
        profile_image: UploadFile | None = File(default=None, alias="profileImage"),
    ):
        self.fields = {
            "first_name": first_name,
            "last_name": last_name,
            "contact_number": contact_number,
            "gender": gender,
        }
        self.image = profile_image

    def payload(self) -> ProfileUpdate:
        try:
            return ProfileUpdate.model_validate(
                {k: v for k, v in self.fields.items() if v is not None}
            )
        except ValidationError as e:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail={"message": "Invalid profile data", "errors": error_list(e)},
            )

    def image_tuple(self) -> tuple[str | None, bytes] | None:
        # Browsers send an empty part when no file is chosen
        if self.image is None or not self.image.filename:
            return None
        return self.image.content_type, self.image.file.read()


def _update(session: Session, ctx: SessionContext, form: ProfileForm) -> User:
    return service.update_profile(session, ctx, form.payload(), form.image_tuple())


# -------- Self profile --------


@router.get("/me", response_model=UserRead)
def read_me(current_user: User = Depends(require_auth)):
    """Return the authenticated user's profile."""
    return current_user


@router.patch("/me", response_model=UserRead)
@router.post("/me", response_model=UserRead, include_in_schema=False)
def update_me(
    form: ProfileForm = Depends(),
    ctx: SessionContext = Depends(get_session_context),
    session: Session = Depends(get_session),
):
    """
    Update the caller's profile (multipart form, partial update).

    The target profile is the token's user; `X-User-Id` is the client's
    persisted fallback id (admins may use it to act on another profile).
    """
    return _update(session, ctx, form)


@router.patch("/{user_id}", response_model=UserRead)
@router.post("/{user_id}", response_model=UserRead, include_in_schema=False)
def update_user(
    user_id: uuid.UUID,
    form: ProfileForm = Depends(),
    current_user: User | None = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """
    Update a profile by id (multipart form, partial update).

    Users may only target themselves; admins may target anyone.
    """
    ctx = SessionContext(user=current_user, fallback_user_id=user_id)
    return _update(session, ctx, form)


# -------- Admin endpoints --------


@router.get(
    "",
    response_model=list[UserRead],
    dependencies=[Depends(require_admin)],
)
def list_users(
    session: Session = Depends(get_session),
    skip: int = 0,
    limit: int = 50,
):
    """List all users (admin only)."""
    return service.list_users(session, skip, limit)


@router.get(
    "/{user_id}",
    response_model=UserRead,
    dependencies=[Depends(require_admin)],
)
def get_user(
    user_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """Get a specific user by id (admin only)."""
    return service.get_user(session, user_id)


@router.patch(
    "/{user_id}/role",
    response_model=UserRead,
    dependencies=[Depends(require_admin)],
)
def change_role(
    user_id: uuid.UUID,
    payload: UserRoleUpdate,
    session: Session = Depends(get_session),
):
    """Update a user's role (admin only)."""
    return service.update_role(session, user_id, payload)

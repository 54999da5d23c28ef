# tests/test_profile.py
import uuid

import httpx
import pytest
from fastapi import HTTPException
from storage3.utils import StorageException

from smartmart.core.session import SessionContext
from smartmart.models.user import User
from smartmart.repositories.user_repo import UserRepository
from smartmart.schemas.user import ProfileUpdate
from smartmart.services import profile_service
from smartmart.services.profile_service import ProfileService

API = "/api/v1/users"

PNG = ("avatar.png", b"\x89PNG\r\n\x1a\nfake", "image/png")


@pytest.fixture
def storage(monkeypatch):
    """Record storage calls instead of talking to Supabase."""
    calls = {"uploaded": [], "deleted": []}

    def fake_upload(path, file_bytes, content_type=None):
        calls["uploaded"].append((path, content_type))
        return f"https://cdn.test/storage/v1/object/public/assets/{path}"

    def fake_delete(url):
        calls["deleted"].append(url)

    monkeypatch.setattr(profile_service, "upload_to_storage", fake_upload)
    monkeypatch.setattr(profile_service, "delete_public_url", fake_delete)
    return calls


# ----- Session context -----


def test_resolve_prefers_session_user(user):
    ctx = SessionContext(user=user, fallback_user_id=uuid.uuid4())
    assert ctx.resolve_user_id() == user.id


def test_resolve_uses_fallback_without_session():
    fallback = uuid.uuid4()
    assert SessionContext(fallback_user_id=fallback).resolve_user_id() == fallback


def test_admin_session_acts_on_fallback(admin):
    target = uuid.uuid4()
    assert SessionContext(user=admin, fallback_user_id=target).resolve_user_id() == target


def test_clear_drops_identity(user):
    ctx = SessionContext(user=user, fallback_user_id=user.id)
    ctx.clear()
    with pytest.raises(HTTPException) as exc_info:
        ctx.resolve_user_id()
    assert exc_info.value.status_code == 428


# ----- Service -----


def test_update_without_identity_fails_before_any_io(session, monkeypatch):
    def explode(*args, **kwargs):
        raise AssertionError("storage must not be called")

    monkeypatch.setattr(profile_service, "upload_to_storage", explode)

    class NoDbRepo(UserRepository):
        def get_by_id(self, session, user_id):
            raise AssertionError("database must not be called")

    service = ProfileService(NoDbRepo())
    with pytest.raises(HTTPException) as exc_info:
        service.update_profile(
            session,
            SessionContext(),
            ProfileUpdate(first_name="Ada"),
            image=("image/png", b"data"),
        )
    assert exc_info.value.status_code == 428
    assert exc_info.value.detail == "User ID not found in session or fallback"


def test_guest_with_fallback_is_unauthorized(session, user):
    service = ProfileService(UserRepository())
    with pytest.raises(HTTPException) as exc_info:
        service.update_profile(session, SessionContext(fallback_user_id=user.id), ProfileUpdate())
    assert exc_info.value.status_code == 401


def test_update_refreshes_session_profile(session, user, storage):
    service = ProfileService(UserRepository())
    ctx = SessionContext(user=user)

    updated = service.update_profile(
        session,
        ctx,
        ProfileUpdate(first_name="Augusta", contact_number="+44 20 7946 0000"),
    )

    assert updated.first_name == "Augusta"
    assert updated.last_name == "Lovelace"
    assert ctx.user.first_name == "Augusta"
    assert storage["uploaded"] == []


# ----- API -----


def test_me_auto_provisions_profile(client, auth_headers):
    newcomer = User(id=uuid.uuid4(), email="newcomer@smartmart.io")
    response = client.get(f"{API}/me", headers=auth_headers(newcomer))

    assert response.status_code == 200
    body = response.json()
    assert body["firstName"] == "newcomer"
    assert body["gender"] == "other"
    assert body["role"] == "user"


def test_update_me_fields(client, user, auth_headers):
    response = client.patch(
        f"{API}/me",
        data={"firstName": "Augusta", "lastName": "King", "contactNumber": "555-0100", "gender": "female"},
        headers=auth_headers(user),
    )
    assert response.status_code == 200
    body = response.json()
    assert (body["firstName"], body["lastName"], body["contactNumber"], body["gender"]) == (
        "Augusta",
        "King",
        "555-0100",
        "female",
    )


def test_update_me_partial_keeps_other_fields(client, user, auth_headers):
    response = client.post(f"{API}/me", data={"gender": "other"}, headers=auth_headers(user))
    assert response.status_code == 200
    assert response.json()["firstName"] == "Ada"


def test_blank_contact_number_clears_it(session, make_user):
    user = make_user(contact_number="555-0100")
    service = ProfileService(UserRepository())

    updated = service.update_profile(
        session, SessionContext(user=user), ProfileUpdate(contact_number="  ")
    )
    assert updated.contact_number is None


@pytest.mark.parametrize(
    "data",
    [{"gender": "unknown"}, {"firstName": "  "}, {"contactNumber": "call me"}],
)
def test_update_me_validation(client, user, auth_headers, data):
    response = client.patch(f"{API}/me", data=data, headers=auth_headers(user))
    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["message"] == "Invalid profile data"
    assert detail["errors"]


def test_update_me_without_identity_is_precondition_failure(client):
    response = client.patch(f"{API}/me", data={"firstName": "Nobody"})
    assert response.status_code == 428


def test_update_me_with_avatar(client, make_user, auth_headers, storage):
    user = make_user(profile_image="https://cdn.test/storage/v1/object/public/assets/users/old.jpg")
    response = client.patch(
        f"{API}/me",
        data={"firstName": "Ada"},
        files={"profileImage": PNG},
        headers=auth_headers(user),
    )
    assert response.status_code == 200
    assert response.json()["profileImage"].endswith(f"users/{user.id}/avatar.png")
    assert storage["uploaded"] == [(f"users/{user.id}/avatar.png", "image/png")]
    assert storage["deleted"] == ["https://cdn.test/storage/v1/object/public/assets/users/old.jpg"]


def test_update_me_rejects_unsupported_image(client, user, auth_headers, storage):
    response = client.patch(
        f"{API}/me",
        files={"profileImage": ("avatar.gif", b"GIF89a", "image/gif")},
        headers=auth_headers(user),
    )
    assert response.status_code == 400
    assert storage["uploaded"] == []


def test_upload_failure_reports_detail(client, user, auth_headers, monkeypatch):
    def failing_upload(path, file_bytes, content_type=None):
        raise StorageException("bucket not found")

    monkeypatch.setattr(profile_service, "upload_to_storage", failing_upload)
    response = client.patch(f"{API}/me", files={"profileImage": PNG}, headers=auth_headers(user))

    assert response.status_code == 502
    assert response.json()["detail"] == {
        "message": "Profile image upload failed",
        "error": "bucket not found",
    }


def test_unreachable_storage_is_bad_gateway(client, user, auth_headers, monkeypatch):
    def offline_upload(path, file_bytes, content_type=None):
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(profile_service, "upload_to_storage", offline_upload)
    response = client.patch(f"{API}/me", files={"profileImage": PNG}, headers=auth_headers(user))
    assert response.status_code == 502


def test_old_avatar_cleanup_failure_keeps_update(client, make_user, auth_headers, storage, monkeypatch):
    def failing_delete(url):
        raise StorageException("object not found")

    monkeypatch.setattr(profile_service, "delete_public_url", failing_delete)
    user = make_user(profile_image="https://cdn.test/storage/v1/object/public/assets/users/old.jpg")
    response = client.patch(f"{API}/me", files={"profileImage": PNG}, headers=auth_headers(user))

    assert response.status_code == 200
    assert response.json()["profileImage"].endswith(f"users/{user.id}/avatar.png")


def test_unexpected_upload_errors_are_not_masked(session, user, monkeypatch):
    def broken_upload(path, file_bytes, content_type=None):
        raise RuntimeError("Missing SUPABASE_SERVICE_ROLE_KEY in .env")

    monkeypatch.setattr(profile_service, "upload_to_storage", broken_upload)
    service = ProfileService(UserRepository())
    with pytest.raises(RuntimeError):
        service.update_profile(
            session,
            SessionContext(user=user),
            ProfileUpdate(),
            image=("image/png", b"data"),
        )


def test_user_cannot_edit_someone_else(client, make_user, user, auth_headers):
    other = make_user()
    response = client.patch(f"{API}/{other.id}", data={"firstName": "Mallory"}, headers=auth_headers(user))
    assert response.status_code == 403


def test_user_can_edit_self_by_id(client, user, auth_headers):
    response = client.patch(f"{API}/{user.id}", data={"lastName": "Byron"}, headers=auth_headers(user))
    assert response.status_code == 200
    assert response.json()["lastName"] == "Byron"


def test_admin_can_edit_by_id_or_fallback_header(client, admin, user, auth_headers):
    response = client.patch(f"{API}/{user.id}", data={"firstName": "Edited"}, headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["id"] == str(user.id)

    headers = {**auth_headers(admin), "X-User-Id": str(user.id)}
    response = client.post(f"{API}/me", data={"lastName": "ByHeader"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["id"] == str(user.id)
    assert response.json()["lastName"] == "ByHeader"


def test_edit_missing_user_is_not_found(client, admin, auth_headers):
    response = client.patch(f"{API}/{uuid.uuid4()}", data={"firstName": "Ghost"}, headers=auth_headers(admin))
    assert response.status_code == 404


def test_admin_user_management(client, admin, user, auth_headers):
    assert client.get(API, headers=auth_headers(user)).status_code == 403

    listed = client.get(API, headers=auth_headers(admin)).json()
    assert {u["id"] for u in listed} == {str(admin.id), str(user.id)}

    assert client.get(f"{API}/{user.id}", headers=auth_headers(admin)).json()["email"] == user.email

    response = client.patch(f"{API}/{user.id}/role", json={"role": "admin"}, headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["role"] == "admin"


def test_invalid_token_rejected(client):
    response = client.get(f"{API}/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401

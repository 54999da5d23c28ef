# smartmart/core/storage_utils.py
import httpx
from storage3.utils import StorageException

from smartmart.core.config import get_settings
from smartmart.core.supabase_client import supabase_admin

settings = get_settings()

# Accepted image uploads (content-type -> file extension)
ALLOWED_IMAGE_CONTENT_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}

MAX_IMAGE_BYTES = 5 * 1024 * 1024  # 5MB per image

# Raised by the storage client when Supabase rejects a call or is unreachable
STORAGE_ERRORS = (StorageException, httpx.HTTPError)


def _bucket():
    # Client is created on first use so importing this module never needs
    # the service role key.
    return supabase_admin().storage.from_(settings.STORAGE_BUCKET)


def upload_to_storage(path: str, file_bytes: bytes, content_type: str | None = None) -> str:
    """
    Upload raw bytes to Supabase Storage and return a public URL.

    If a file already exists at this path, it will be overwritten
    thanks to the 'upsert' option.

    Args:
        path: Full object path inside the bucket.
              Example: "users/<uuid>/avatar.png"
        file_bytes: File content in bytes.
        content_type: Optional MIME type stored with the object.

    Returns:
        Public URL to the uploaded file.

    Raises:
        One of STORAGE_ERRORS if the upload fails.
    """
    options = {"upsert": "true"}
    if content_type:
        options["content-type"] = content_type
    bucket = _bucket()
    bucket.upload(path, file_bytes, options)
    return bucket.get_public_url(path)


def delete_from_storage(path: str) -> None:
    """
    Delete a file from Supabase Storage by its object path.

    Example path (relative to bucket):
        'users/<uuid>/avatar.png'
    """
    _bucket().remove([path])


def extract_path_from_public_url(url: str) -> str | None:
    """
    Given a public URL, extract the object path relative to the bucket.

    Example:
        https://<proj>.supabase.co/storage/v1/object/public/assets/users/u/avatar.png
        -> 'users/u/avatar.png'
    """
    marker = f"/storage/v1/object/public/{settings.STORAGE_BUCKET}/"
    idx = url.find(marker)
    if idx == -1:
        return None
    return url[idx + len(marker) :]


def delete_public_url(url: str) -> None:
    """
    Convenience helper: delete a file by its public URL.
    No-op if the URL does not belong to this bucket.
    """
    path = extract_path_from_public_url(url)
    if path:
        delete_from_storage(path)


def image_extension(content_type: str | None) -> str | None:
    """Return the file extension for an accepted image type, else None."""
    if not content_type:
        return None
    return ALLOWED_IMAGE_CONTENT_TYPES.get(content_type)


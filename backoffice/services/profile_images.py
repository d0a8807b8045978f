"""Profile image intake for user create/update.

Uploads are limited to JPEG, PNG and WebP under ``PROFILE_IMAGE_MAX_MB``.
The declared content type must agree with the file signature.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import UploadFile

from backoffice.core.config import settings
from backoffice.services.s3_storage import build_object_key, get_s3_storage

logger = logging.getLogger(__name__)

# declared content type -> canonical stored type
ALLOWED_CONTENT_TYPES = {
    "image/jpeg": "image/jpeg",
    "image/jpg": "image/jpeg",
    "image/png": "image/png",
    "image/webp": "image/webp",
}


class ProfileImageError(Exception):
    pass


class ProfileImageStorageError(Exception):
    pass


@dataclass(frozen=True)
class ProfileImage:
    file_name: str
    content_type: str
    data: bytes


def max_profile_image_bytes() -> int:
    return int(settings.PROFILE_IMAGE_MAX_MB) * 1024 * 1024


def _sniff_content_type(data: bytes) -> str | None:
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


def read_profile_image(upload: UploadFile | None) -> ProfileImage | None:
    """Validate an uploaded profile image. ``None`` when no file was sent."""
    if upload is None or not str(upload.filename or "").strip():
        return None
    declared = str(upload.content_type or "").split(";")[0].strip().lower()
    content_type = ALLOWED_CONTENT_TYPES.get(declared)
    if content_type is None:
        raise ProfileImageError("Only JPEG, PNG and WebP images are allowed")

    limit = max_profile_image_bytes()
    data = upload.file.read(limit + 1)
    if not data:
        raise ProfileImageError("Profile image is empty")
    if len(data) > limit:
        raise ProfileImageError(f"Profile image must be at most {settings.PROFILE_IMAGE_MAX_MB} MB")
    if _sniff_content_type(data) != content_type:
        raise ProfileImageError("Profile image content does not match its type")
    return ProfileImage(file_name=str(upload.filename), content_type=content_type, data=data)


def store_profile_image(user_id, image: ProfileImage) -> str:
    key = build_object_key(f"profile-images/{user_id}", image.file_name)
    try:
        return get_s3_storage().put_object(key, image.data, image.content_type)
    except (BotoCoreError, ClientError) as exc:
        logger.exception("profile image upload failed user_id=%s key=%s", user_id, key)
        raise ProfileImageStorageError("Profile image storage is unavailable") from exc

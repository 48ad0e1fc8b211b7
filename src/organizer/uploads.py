from __future__ import annotations

import logging
import os
import posixpath
import uuid
from typing import BinaryIO, Optional

from .errors import ValidationFailed
from .settings import get_settings

logger = logging.getLogger(__name__)

# URL prefix the upload directory is served under
UPLOAD_URL_PREFIX = "/uploads/images"

MIME_TYPE_MAP = {
    "image/png": "png",
    "image/jpeg": "jpeg",
    "image/jpg": "jpg",
}


# PUBLIC_INTERFACE
def save_upload(stream: BinaryIO, content_type: Optional[str], upload_dir: Optional[str] = None) -> str:
    """
    Persist an uploaded image and return its public path ('uploads/images/<name>').

    - Only png/jpg/jpeg content types are accepted.
    - Files larger than MAX_UPLOAD_BYTES are rejected.
    - The stored name is a fresh uuid plus the extension of the content type.

    Raises:
        ValidationFailed for an unsupported type or an oversized file.
    """
    settings = get_settings()
    ext = MIME_TYPE_MAP.get((content_type or "").lower())
    if ext is None:
        raise ValidationFailed("Invalid mime type!")

    data = stream.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise ValidationFailed("File too large")

    target_dir = upload_dir or settings.upload_dir
    os.makedirs(target_dir, exist_ok=True)
    name = f"{uuid.uuid4()}.{ext}"
    with open(os.path.join(target_dir, name), "wb") as f:
        f.write(data)
    logger.debug("Stored upload %s (%d bytes)", name, len(data))
    return posixpath.join(UPLOAD_URL_PREFIX.lstrip("/"), name)


# PUBLIC_INTERFACE
def discard_upload(public_path: str, upload_dir: Optional[str] = None) -> None:
    """
    Best-effort removal of a stored upload: the image of a deleted post, or
    one written for a request that later failed. Failures are logged and ignored.
    """
    target_dir = upload_dir or get_settings().upload_dir
    path = os.path.join(target_dir, posixpath.basename(public_path))
    try:
        os.remove(path)
        logger.info("Removed upload %s", path)
    except OSError as exc:
        logger.warning("Could not remove upload %s: %s", path, exc)

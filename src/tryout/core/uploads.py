"""
Upload Storage

Saves uploaded proof-of-payment images to local disk with aiofiles.
Files are renamed on save ("{participant_id}-{epoch_ms}.{ext}") so the
client-supplied filename never reaches the filesystem.
"""

import io
import logging
import time
from pathlib import Path
from uuid import UUID

import aiofiles
import aiofiles.os
from fastapi import UploadFile
from PIL import Image

from tryout.core.config import settings
from tryout.core.errors import ServiceError

logger = logging.getLogger(__name__)

PROOFS_SUBDIR = "proofs"

# Content type -> stored extension
ALLOWED_IMAGE_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}

MEDIA_TYPES = {ext: content_type for content_type, ext in ALLOWED_IMAGE_TYPES.items()}

# Pillow format name -> stored extension
ALLOWED_IMAGE_FORMATS = {
    "JPEG": "jpg",
    "PNG": "png",
    "WEBP": "webp",
    "GIF": "gif",
}

MAX_IMAGE_DIMENSION = 10000


class InvalidUploadError(ServiceError):
    """Raised when an uploaded file is not an acceptable image."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code="INVALID_FILE", status_code=400)


def upload_root() -> Path:
    return Path(settings.upload_dir).resolve()


def ensure_directories() -> None:
    """Create the upload directories if they do not exist."""
    (upload_root() / PROOFS_SUBDIR).mkdir(parents=True, exist_ok=True)


def resolve_upload_path(relative_path: str) -> Path:
    """
    Map a stored relative path back to a file under the upload root.

    Raises:
        InvalidUploadError: If the path escapes the upload root
    """
    root = upload_root()
    path = (root / relative_path).resolve()
    if not path.is_relative_to(root):
        raise InvalidUploadError("Lokasi file tidak valid.")
    return path


def media_type_for(relative_path: str) -> str:
    return MEDIA_TYPES.get(Path(relative_path).suffix.lstrip(".").lower(), "application/octet-stream")


def detect_image_extension(content: bytes) -> str:
    """
    Identify the image format from the bytes themselves.

    Returns:
        Stored extension for the detected format

    Raises:
        InvalidUploadError: If the bytes are not a readable JPEG, PNG, WebP or GIF
    """
    try:
        with Image.open(io.BytesIO(content)) as img:
            image_format = img.format
            width, height = img.size
            img.verify()
    except Exception as e:
        logger.info(f"Rejected upload that is not a readable image: {e}")
        raise InvalidUploadError("File bukan gambar yang valid.") from e

    extension = ALLOWED_IMAGE_FORMATS.get(image_format or "")
    if extension is None:
        raise InvalidUploadError("Hanya file gambar yang diperbolehkan.")
    if width > MAX_IMAGE_DIMENSION or height > MAX_IMAGE_DIMENSION:
        raise InvalidUploadError("Dimensi gambar terlalu besar.")
    return extension


async def save_payment_proof(file: UploadFile, participant_id: UUID) -> str:
    """
    Validate and store a proof-of-payment image.

    Args:
        file: Uploaded file from the multipart request
        participant_id: Owner of the proof

    Returns:
        Path of the stored file relative to UPLOAD_DIR

    Raises:
        InvalidUploadError: If the file is not an allowed image, empty or too large
    """
    if (file.content_type or "").lower() not in ALLOWED_IMAGE_TYPES:
        raise InvalidUploadError("Hanya file gambar yang diperbolehkan.")

    content = await file.read(settings.max_upload_bytes + 1)
    if not content:
        raise InvalidUploadError("File bukti transfer kosong.")
    if len(content) > settings.max_upload_bytes:
        max_mb = settings.max_upload_bytes // (1024 * 1024)
        raise InvalidUploadError(f"Ukuran file maksimal {max_mb}MB.")

    # The declared content type is client input; the stored extension follows the bytes
    extension = detect_image_extension(content)

    ensure_directories()
    relative_path = f"{PROOFS_SUBDIR}/{participant_id}-{int(time.time() * 1000)}.{extension}"
    destination = resolve_upload_path(relative_path)

    async with aiofiles.open(destination, "wb") as out:
        await out.write(content)

    logger.info(f"Stored payment proof for participant {participant_id}: {relative_path}")
    return relative_path


async def delete_upload(relative_path: str) -> None:
    """Remove a stored upload, ignoring files that are already gone."""
    try:
        await aiofiles.os.remove(resolve_upload_path(relative_path))
    except FileNotFoundError:
        logger.debug(f"Upload already removed: {relative_path}")

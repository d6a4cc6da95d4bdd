"""
EcoAdmin Backend: Image Ingestion & Blob Storage
=================================================

What:  Validates uploaded images and stores/serves their bytes.
How:   Checks extension, declared MIME type, size, and the MIME type sniffed
       from the content bytes; then writes the bytes unchanged to a
       date-organized directory under a UUID filename.
Who:   Called by the submission services before a record is inserted, and
       by the image routes to serve the stored bytes back.

Type policy:
    All three of extension, declared Content-Type and sniffed content must be
    one of JPEG, PNG or GIF. Content sniffing (python-magic) is enforced, so
    a text file renamed to photo.jpg is rejected. The stored MIME type is the
    sniffed one, so retrieval always returns what the bytes actually are.

Directory Structure:
    uploads/
    └── 2024/
        └── 01/
            └── 15/
                ├── a1b2c3d4-5678.jpg
                └── e5f6g7h8-9012.gif

    The relative path (2024/01/15/a1b2c3d4-5678.jpg) is the blob address
    stored on the owning record.
"""

import logging
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

import aiofiles

from ecoadmin.config import Settings
from ecoadmin.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

# ── Allowed File Types ────────────────────────────────────────────────────
# Declared content types accepted from clients; image/jpg is a common
# non-standard alias for image/jpeg.
ALLOWED_DECLARED_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif"}

# Sniffed MIME type → extension used for the stored blob
ALLOWED_MIME_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
}

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif"}

# Stored extension → MIME type served back
EXTENSION_MIME_TYPES = {ext: mime for mime, ext in ALLOWED_MIME_TYPES.items()}


@dataclass(frozen=True)
class ImageUpload:
    """An uploaded file as received from the client."""
    filename: str
    content_type: Optional[str]
    content: bytes


@dataclass(frozen=True)
class ValidatedImage:
    """An upload that passed every check and may be stored."""
    content: bytes
    mime_type: str
    extension: str


class ImageService:
    """
    Image validation plus the blob store (put / get / cleanup).

    Lifecycle of an uploaded image:
        1. validate(): extension → declared type → size → sniffed type
        2. put(): written to YYYY/MM/DD/<uuid><ext>, address returned
        3. The address is stored on the record by the calling service
        4. get(): bytes + MIME type read back for the image routes
        5. cleanup(): removes the blob if the record insert failed
    """

    def __init__(self, settings: Settings):
        self.storage_root = Path(settings.storage_root).resolve()
        self.max_file_size = settings.max_file_size
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("ImageService initialized with storage_root=%s", self.storage_root)

    # ── Validation ────────────────────────────────────────────────────────

    def _validate_extension(self, filename: str) -> str:
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"Invalid file type. Only JPG, PNG, and GIF files are allowed. "
                    f"Received: {filename}"
                ),
                field="image",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def _validate_declared_type(self, filename: str, content_type: Optional[str]) -> None:
        declared = (content_type or "").split(";")[0].strip().lower()
        if declared not in ALLOWED_DECLARED_TYPES:
            raise ValidationError(
                message=(
                    f"Invalid file type. Only JPG, PNG, and GIF files are allowed. "
                    f"Received: {filename} ({declared or 'unknown type'})"
                ),
                field="image",
                context={"declared_type": declared, "allowed": sorted(ALLOWED_DECLARED_TYPES)},
            )

    def _validate_size(self, content: bytes) -> None:
        if not content:
            raise ValidationError(
                message="Image file is empty.",
                field="image",
                context={"actual_size": 0},
            )

        if len(content) > self.max_file_size:
            max_mb = self.max_file_size / (1024 * 1024)
            raise ValidationError(
                message=f"File size too large. Maximum size is {max_mb:.0f}MB.",
                field="image",
                context={"max_size": self.max_file_size, "actual_size": len(content)},
            )

    def _sniff_mime(self, content: bytes) -> str:
        """Detect the MIME type from the content's magic bytes."""
        import magic

        return magic.from_buffer(content, mime=True)

    def _validate_mime_type(self, content: bytes, filename: str) -> str:
        try:
            mime_type = self._sniff_mime(content)
        except Exception as e:
            logger.error("MIME type detection failed for %s: %s", filename, str(e))
            raise FileStorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            )

        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=(
                    f"File content type '{mime_type}' is not supported. "
                    f"The file must be a valid JPG, PNG, or GIF image."
                ),
                field="image",
                context={"detected_mime": mime_type, "allowed": sorted(ALLOWED_MIME_TYPES)},
            )
        return mime_type

    def validate(self, upload: Optional[ImageUpload]) -> ValidatedImage:
        """
        Run every check on an upload, cheapest first.

        Raises:
            ValidationError: missing image, bad extension or declared type,
                             empty or oversized payload, non-image content
            FileStorageError: content sniffing itself failed
        """
        if upload is None or not upload.filename:
            raise ValidationError(message="Image file is required", field="image")

        self._validate_extension(upload.filename)
        self._validate_declared_type(upload.filename, upload.content_type)
        self._validate_size(upload.content)
        mime_type = self._validate_mime_type(upload.content, upload.filename)

        return ValidatedImage(
            content=upload.content,
            mime_type=mime_type,
            extension=ALLOWED_MIME_TYPES[mime_type],
        )

    # ── Blob Store ────────────────────────────────────────────────────────

    def _generate_storage_path(self, extension: str) -> Tuple[Path, str]:
        now = datetime.now(timezone.utc)
        relative_path = f"{now.strftime('%Y/%m/%d')}/{uuid.uuid4()}{extension}"
        return self.storage_root / relative_path, relative_path

    def _resolve(self, address: str) -> Optional[Path]:
        """Absolute path for a blob address, or None if it escapes the root."""
        path = (self.storage_root / address).resolve()
        if not path.is_relative_to(self.storage_root):
            return None
        return path

    async def put(self, image: ValidatedImage) -> str:
        """
        Write validated bytes to the blob store.

        Returns:
            The blob address (path relative to storage_root).

        Raises:
            FileStorageError if directory creation or the write fails.
        """
        absolute_path, relative_path = self._generate_storage_path(image.extension)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(image.content)
        except OSError as e:
            logger.error("Failed to store image at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

        logger.info("Image stored: %s (%d bytes, %s)", relative_path, len(image.content), image.mime_type)
        return relative_path

    async def get(self, address: str) -> Optional[Tuple[bytes, str]]:
        """
        Read a blob back.

        Returns:
            (bytes, mime_type), or None when the address is unknown.

        Raises:
            FileStorageError if the blob exists but cannot be read.
        """
        path = self._resolve(address)
        if path is None:
            logger.warning("Rejected blob address outside storage root: %s", address)
            return None

        try:
            async with aiofiles.open(path, "rb") as f:
                content = await f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error("Failed to read image %s: %s", address, str(e))
            raise FileStorageError(
                message="Failed to read stored image.",
                context={"path": str(path), "os_error": str(e)},
            )

        mime_type = EXTENSION_MIME_TYPES.get(path.suffix.lower(), "application/octet-stream")
        return content, mime_type

    async def cleanup(self, address: str) -> None:
        """
        Remove a blob whose record was never created.

        Best-effort: a blob that cannot be removed is logged and left for
        manual cleanup; the caller's original error is what matters.
        """
        path = self._resolve(address)
        if path is None:
            return
        try:
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up orphaned image: %s", address)
        except OSError as e:
            logger.warning("Failed to clean up image %s: %s", address, str(e))

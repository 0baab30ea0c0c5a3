"""
DevCamper Backend — Photo Storage Service
===========================================

What:  Validates and stores bootcamp photos.
Who:   Called by BootcampService.upload_photo (PUT /bootcamps/{id}/photo).
When:  After the multipart body is read, before the bootcamp row is updated.

Validation order (cheap checks first):
    1. A file was sent at all
    2. Declared content type is image/*
    3. Size ≤ MAX_FILE_UPLOAD
    4. Sniffed content type (libmagic, via python-magic) is image/*
    5. Write to FILE_UPLOAD_PATH/photo_<bootcamp id><ext> (aiofiles)

    Steps 1-4 fail with ValidationError (400); step 5 with FileStorageError (500).

The stored name contains only the bootcamp id and the original extension, so
no client-supplied path component ever reaches the file system. Uploading a
second photo for the same bootcamp overwrites the first.
"""

import logging
import re
import uuid
from pathlib import Path
from typing import Optional

import aiofiles

from app.config import settings
from app.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

# Extensions are kept only when they look like an extension
_EXTENSION_PATTERN = re.compile(r"^\.[A-Za-z0-9]{1,10}$")


class FileService:
    """
    Stores uploaded photos under a single flat directory.

    Directory Structure:
        public/uploads/
        ├── photo_5d713995-b721-c3a5-4b4a-ff9d3e1c0a11.jpg
        └── photo_5d725a1b-7b8b-4f1e-a4c1-94c9f7b2e9c0.png
    """

    def __init__(self, upload_path: Optional[str] = None, max_size: Optional[int] = None):
        """
        Args:
            upload_path: Override FILE_UPLOAD_PATH (used in tests).
            max_size:    Override MAX_FILE_UPLOAD in bytes.
        """
        self.upload_root = Path(upload_path or settings.file_upload_path).resolve()
        self.max_size = max_size or settings.max_file_upload

    def ensure_directory(self) -> None:
        self.upload_root.mkdir(parents=True, exist_ok=True)

    def validate_present(self, filename: Optional[str], content: Optional[bytes]) -> None:
        if not filename or not content:
            raise ValidationError("Please upload a file", field="file")

    def validate_declared_type(self, content_type: Optional[str]) -> None:
        if not content_type or not content_type.startswith("image"):
            raise ValidationError(
                "Please upload an image file",
                field="file",
                context={"declared_type": content_type},
            )

    def validate_size(self, size: int) -> None:
        if size > self.max_size:
            raise ValidationError(
                f"Please upload an image less than {self.max_size}",
                field="file",
                context={"size": size, "max_size": self.max_size},
            )

    def _detect_mime(self, content: bytes) -> str:
        """Content type from the file's magic bytes."""
        import magic
        return magic.from_buffer(content, mime=True)

    def validate_content_type(self, content: bytes) -> str:
        """
        Sniff the real type so a renamed non-image is rejected.

        Raises:
            ValidationError  if the content is not an image
            FileStorageError if libmagic itself fails
        """
        try:
            mime_type = self._detect_mime(content)
        except Exception as e:
            logger.error("MIME type detection failed: %s", e)
            raise FileStorageError(
                "Could not verify file type",
                context={"error": str(e)},
            )

        if not mime_type.startswith("image/"):
            raise ValidationError(
                "Please upload an image file",
                field="file",
                context={"detected_type": mime_type},
            )
        return mime_type

    def photo_name(self, bootcamp_id: uuid.UUID, filename: str) -> str:
        ext = Path(filename).suffix.lower()
        if not _EXTENSION_PATTERN.match(ext):
            ext = ""
        return f"photo_{bootcamp_id}{ext}"

    async def store(self, name: str, content: bytes) -> Path:
        """
        Write content to the upload directory.

        Raises:
            FileStorageError if the directory cannot be created or written.
        """
        path = self.upload_root / name
        try:
            self.ensure_directory()
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store photo at %s: %s", path, e)
            raise FileStorageError(context={"path": str(path), "os_error": str(e)})

        logger.info("Photo stored: %s (%d bytes)", name, len(content))
        return path

    async def save_photo(
        self,
        bootcamp_id: uuid.UUID,
        filename: Optional[str],
        content_type: Optional[str],
        content: Optional[bytes],
    ) -> str:
        """
        Complete validation and storage pipeline.

        Returns:
            The stored file name (what goes into bootcamps.photo).
        """
        self.validate_present(filename, content)
        self.validate_declared_type(content_type)
        self.validate_size(len(content))
        self.validate_content_type(content)

        name = self.photo_name(bootcamp_id, filename)
        await self.store(name, content)
        return name

    def resolve(self, relative: str) -> Optional[Path]:
        """
        Map a request path onto a stored file.

        Returns None for anything that escapes the upload directory or
        does not exist.
        """
        candidate = (self.upload_root / relative).resolve()
        try:
            candidate.relative_to(self.upload_root)
        except ValueError:
            logger.warning("Rejected upload path outside storage root: %s", relative)
            return None
        if not candidate.is_file():
            return None
        return candidate


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()

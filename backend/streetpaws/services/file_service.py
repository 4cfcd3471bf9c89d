"""
StreetPaws Backend — Photo Upload Service
===========================================

What:  Validates, stores, resolves and cleans up uploaded animal photos.
How:   Validates extension, size and MIME type, writes the file with a
       timestamp + random-suffix name, and returns its public URL.
Who:   Called by POST /api/upload and by AnimalService (photo references,
       cleanup after delete).

Validation (cheapest first):
    1. Extension check:  jpeg, jpg, png, gif, webp
    2. Size check:       Content-Length header, then actual byte count (10MB)
    3. Declared MIME:    the multipart part's Content-Type must be an image type
    4. Content sniff:    Pillow must recognise the bytes as one of those formats

Naming:
    uploads/animal-<epoch-ms>-<random 0..999999999><ext>
    The flat directory matches the /uploads/<name> public URL scheme; the
    random suffix keeps concurrent uploads in the same millisecond apart.
"""

import logging
import os
import random
import time
from io import BytesIO
from pathlib import Path
from typing import Optional, Tuple

import aiofiles
from PIL import Image, UnidentifiedImageError

from streetpaws.config import settings
from streetpaws.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

# Public URL prefix the upload directory is mounted under
PUBLIC_PREFIX = "/uploads/"

ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif", ".webp"}

ALLOWED_MIME_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
}

# Pillow format names for the allowed types
ALLOWED_IMAGE_FORMATS = {"JPEG", "PNG", "GIF", "WEBP"}

ONLY_IMAGES_MESSAGE = "Only image files are allowed"


class FileService:
    """
    Manages the upload directory.

    Directory Structure:
        uploads/
        ├── animal-1718000000000-482913774.jpg
        └── animal-1718000004211-7731002.png
    """

    def __init__(self, upload_dir: Optional[str] = None):
        """
        Args:
            upload_dir: Override the default upload path (used in tests).
                        If None, uses settings.upload_dir.
        """
        self.upload_dir = Path(upload_dir or settings.upload_dir).resolve()
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with upload_dir=%s", self.upload_dir)

    # ── Validation ────────────────────────────────────────────────────────

    def validate_extension(self, filename: str) -> str:
        """Returns the normalized extension (lowercase with dot)."""
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=ONLY_IMAGES_MESSAGE,
                field="photo",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Checks the Content-Length header first, then the actual size
        (some clients send a wrong header).
        """
        max_mb = settings.max_file_size / (1024 * 1024)

        if actual_size == 0:
            raise ValidationError(message="Uploaded file is empty", field="photo")

        if content_length and content_length > settings.max_file_size:
            raise ValidationError(
                message=f"File too large. Maximum size is {max_mb:.0f}MB.",
                field="photo",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > settings.max_file_size:
            raise ValidationError(
                message=f"File too large. Maximum size is {max_mb:.0f}MB.",
                field="photo",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def validate_mime_type(self, content_type: Optional[str], content: bytes) -> str:
        """
        Validate the declared MIME type, then confirm it by decoding the
        image header with Pillow.

        Returns:
            The Pillow format name (e.g. "JPEG").
        """
        declared = (content_type or "").split(";")[0].strip().lower()
        if declared not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=ONLY_IMAGES_MESSAGE,
                field="photo",
                context={"declared_mime": declared},
            )

        try:
            with Image.open(BytesIO(content)) as image:
                detected = image.format
        except (UnidentifiedImageError, OSError) as e:
            logger.info("Rejected upload: content is not a readable image (%s)", str(e))
            raise ValidationError(
                message=ONLY_IMAGES_MESSAGE,
                field="photo",
                context={"declared_mime": declared},
            )

        if detected not in ALLOWED_IMAGE_FORMATS:
            raise ValidationError(
                message=ONLY_IMAGES_MESSAGE,
                field="photo",
                context={"detected_format": detected},
            )
        return detected

    # ── Storage ───────────────────────────────────────────────────────────

    def _generate_filename(self, extension: str) -> str:
        millis = int(time.time() * 1000)
        suffix = random.randint(0, 999_999_999)
        return f"animal-{millis}-{suffix}{extension}"

    async def store_file(self, content: bytes, extension: str) -> Tuple[str, str]:
        """
        Write validated content to the upload directory.

        Returns:
            Tuple of (absolute_path, public_url).

        Raises:
            FileStorageError if the directory or the file cannot be written.
        """
        filename = self._generate_filename(extension)
        absolute_path = self.upload_dir / filename

        try:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            await self.cleanup_file(str(absolute_path))
            raise FileStorageError(
                message="File upload failed",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

        if not absolute_path.exists():
            logger.error("File not found after upload: %s", absolute_path)
            raise FileStorageError(
                message="File upload failed - file not saved",
                context={"path": str(absolute_path)},
            )

        logger.info("File stored: %s (%d bytes)", filename, len(content))
        return str(absolute_path), f"{PUBLIC_PREFIX}{filename}"

    async def validate_and_store(
        self,
        filename: str,
        content: bytes,
        content_type: Optional[str] = None,
        content_length: Optional[int] = None,
    ) -> Tuple[str, str]:
        """
        Complete upload pipeline: extension → size → MIME → write.

        Returns:
            Tuple of (absolute_path, public_url).
        """
        ext = self.validate_extension(filename)
        self.validate_size(content_length, len(content))
        self.validate_mime_type(content_type, content)
        return await self.store_file(content, ext)

    # ── Public URL Resolution ─────────────────────────────────────────────

    def resolve_public_url(self, photo_url: str) -> Optional[Path]:
        """
        Map /uploads/<name> to a path inside the upload directory.

        Returns None for URLs outside the prefix or names that would escape
        the directory (../ traversal).
        """
        if not photo_url.startswith(PUBLIC_PREFIX):
            return None
        name = photo_url[len(PUBLIC_PREFIX):]
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            return None
        path = (self.upload_dir / name).resolve()
        if path.parent != self.upload_dir:
            return None
        return path

    def photo_exists(self, photo_url: str) -> bool:
        path = self.resolve_public_url(photo_url)
        return path is not None and path.is_file()

    def count_images(self) -> int:
        """Number of stored images, reported by the health endpoint."""
        if not self.upload_dir.is_dir():
            return 0
        return sum(
            1 for entry in self.upload_dir.iterdir()
            if entry.is_file() and entry.suffix.lower() in ALLOWED_EXTENSIONS
        )

    # ── Cleanup ───────────────────────────────────────────────────────────

    async def cleanup_file(self, file_path: str) -> None:
        """
        Remove a file from disk if it exists.

        Best-effort: missing files are ignored and other failures are logged,
        never raised. Callers use this after a failed upload and after an
        animal is deleted.
        """
        try:
            path = Path(file_path)
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", path.name)
            else:
                logger.debug("Cleanup: file already gone: %s", path.name)
        except Exception as e:
            logger.warning("Failed to clean up file %s: %s", file_path, str(e))

    async def cleanup_public_url(self, photo_url: Optional[str]) -> None:
        """Delete the file behind a /uploads/ URL, if there is one."""
        if not photo_url:
            return
        path = self.resolve_public_url(photo_url)
        if path is None:
            logger.warning("Cleanup skipped: %s is not an uploaded photo", photo_url)
            return
        await self.cleanup_file(str(path))


file_service = FileService()

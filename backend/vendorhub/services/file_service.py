"""
VendorHub Media Backend — File Storage Service
================================================

What:  Validates raw upload size, writes normalized images to the uploads
       directory, and builds the public URLs vendors' documents reference.
Who:   Called by UploadService after the ImageNormalizer has produced bytes.

Storage Layout:
    uploads/
    ├── 1718000000000-k3x9qa-logo.png
    ├── 1718000000123-a0b1c2-exterior.jpg
    └── 1718000000456-zz81mm-servicePhoto.jpg

    <epoch ms>-<6 random base36>-<sanitized prefix>.<ext>

    Served back as  {public_base_url}{uploads_url_path}/<filename>.

Security Model:
    1. Size check before decoding (bounded memory)
    2. Content is re-encoded by the normalizer, so stored bytes are always
       images we produced, never the client's original payload
    3. Filenames carry no raw user input (prefix is sanitized)
"""

import logging
import os
import re
import secrets
import string
import time
from pathlib import Path
from typing import Optional, Tuple

import aiofiles

from vendorhub.config import settings
from vendorhub.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

_UNSAFE_PREFIX_CHARS = re.compile(r"[^a-zA-Z0-9_.-]")
_BASE36 = string.digits + string.ascii_lowercase

DEFAULT_PREFIX = "upload"


def sanitize_prefix(prefix: Optional[str]) -> str:
    """Replace anything outside [A-Za-z0-9_.-] with '_' (empty → 'upload')."""
    if not prefix:
        return DEFAULT_PREFIX
    return _UNSAFE_PREFIX_CHARS.sub("_", prefix)


class FileService:
    """
    Manages the on-disk lifecycle of normalized images.

    Lifecycle of an upload:
        1. validate_size() on the raw request body
        2. (ImageNormalizer runs elsewhere)
        3. store_image() writes the normalized bytes
        4. public_url() turns the filename into an absolute URL
        5. cleanup_file() if anything after the write fails
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
                          If None, uses settings.storage_root.
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Validate raw upload size against the configured maximum.

        Args:
            content_length: Declared size (Content-Length / UploadFile.size), may be None
            actual_size:    Byte count actually received

        Raises:
            ValidationError for empty or oversized uploads
        """
        max_mb = settings.max_file_size / (1024 * 1024)

        if actual_size == 0:
            raise ValidationError(
                message="Uploaded file is empty.",
                field="file",
            )

        if content_length and content_length > settings.max_file_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB. Please upload a smaller image.",
                field="file",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > settings.max_file_size:
            raise ValidationError(
                message=f"File size ({actual_size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def generate_filename(self, prefix: Optional[str], extension: str) -> str:
        """Build `<epoch ms>-<6 base36>-<prefix>.<ext>`."""
        stamp = int(time.time() * 1000)
        token = "".join(secrets.choice(_BASE36) for _ in range(6))
        return f"{stamp}-{token}-{sanitize_prefix(prefix)}.{extension.lstrip('.')}"

    async def store_image(
        self, content: bytes, extension: str, prefix: Optional[str] = None
    ) -> Tuple[str, str]:
        """
        Write normalized image bytes to the uploads directory.

        Returns:
            Tuple of (absolute_path, filename).

        Raises:
            FileStorageError if the write fails.
        """
        filename = self.generate_filename(prefix, extension)
        absolute_path = self.storage_root / filename

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

        logger.info("File stored: %s (%d bytes)", filename, len(content))
        return str(absolute_path), filename

    def resolve_base_url(self, request_base_url: Optional[str]) -> str:
        """Configured PUBLIC_BASE_URL wins; otherwise the request's origin."""
        configured = settings.public_base_url_normalized
        if configured:
            return configured
        return (request_base_url or "").rstrip("/")

    def public_url(self, filename: str, request_base_url: Optional[str] = None) -> str:
        """Absolute URL for a stored file."""
        base = self.resolve_base_url(request_base_url)
        return f"{base}{settings.uploads_url_path}/{filename}"

    def is_relative_upload_path(self, value: str) -> bool:
        """True for `/uploads/...` or `uploads/...` references."""
        mount = settings.uploads_url_path
        return value.startswith(mount + "/") or value.startswith(mount.lstrip("/") + "/")

    def absolutize(self, relative_path: str, request_base_url: Optional[str] = None) -> str:
        """Prefix a relative `/uploads/...` path with the public origin."""
        rel = relative_path if relative_path.startswith("/") else f"/{relative_path}"
        return f"{self.resolve_base_url(request_base_url)}{rel}"

    async def cleanup_file(self, file_path: str) -> None:
        """
        Remove a file from storage (best effort).

        Missing files are ignored; other failures are logged, never raised.
        """
        try:
            path = Path(file_path)
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", path.name)
            else:
                logger.debug("Cleanup: file already gone: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", file_path, str(e))


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()

"""
VendorHub Media Backend — Upload Service (Orchestrator)
=========================================================

What:  Coordinates decode → normalize → store → URL for every image intake path.
Who:   Called by the upload routes; calls FileService and the ImageNormalizer.

Orchestration Flow (POST /api/uploads):
    ┌──────────┐    ┌────────────┐    ┌──────────────┐    ┌───────────┐
    │  Upload  │───▶│ Size check │───▶│  Normalize   │───▶│  Store +  │
    │  (Route) │    │ (FileServ) │    │ (executor)   │    │  URL      │
    └──────────┘    └────────────┘    └──────────────┘    └───────────┘

Reference Resolution (vendor onboarding payloads):
    "https://cdn/x.jpg"        → returned unchanged
    "/uploads/x.jpg"           → "{base}/uploads/x.jpg"
    "data:image/png;base64,…"  → normalized, stored, "{base}/uploads/<new>"
    "iVBORw0KGgo…" (bare)      → same as a data URL when it decodes to an image
    anything else              → dropped

A list is resolved all-or-nothing: if one entry fails, files already
written for earlier entries are removed before the error propagates.

Normalization is CPU-bound, so it runs on the event loop's default executor
instead of blocking other requests.
"""

import asyncio
import logging
from functools import partial
from typing import Iterable, List, Optional, Tuple, Union

from vendorhub.exceptions import InvalidImageInput, ValidationError
from vendorhub.imaging import EncodedImage, ImageKind, OutputFormat, image_normalizer
from vendorhub.schemas.upload import UploadResponse
from vendorhub.services.data_url import is_data_url, parse_data_url, to_data_url
from vendorhub.services.file_service import file_service

logger = logging.getLogger(__name__)


def parse_format_override(value: Optional[str]) -> Optional[OutputFormat]:
    """Form/JSON format field → OutputFormat (None when absent)."""
    if value is None or not str(value).strip():
        return None
    try:
        return OutputFormat.parse(value)
    except ValueError as e:
        raise ValidationError(message=str(e), field="format", context={"format": value})


class UploadService:
    """Stateless orchestrator; dependencies are module singletons patched in tests."""

    async def normalize(
        self,
        content: bytes,
        kind: ImageKind,
        format_override: Optional[OutputFormat] = None,
    ) -> EncodedImage:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            partial(image_normalizer.normalize, content, kind, format_override),
        )

    async def store(
        self,
        image: EncodedImage,
        kind: ImageKind,
        prefix: Optional[str],
        base_url: Optional[str],
        inline: bool = False,
    ) -> Tuple[UploadResponse, str]:
        """
        Persist a normalized image and describe it.

        Returns:
            Tuple of (response, absolute_path) so callers can roll back the write.
        """
        absolute_path, filename = await file_service.store_image(
            image.data, image.extension, prefix or kind.value
        )
        try:
            response = UploadResponse.from_encoded(
                image,
                file_id=filename,
                url=file_service.public_url(filename, base_url),
                kind=kind.value,
                data_url=to_data_url(image) if inline else None,
            )
        except Exception:
            await file_service.cleanup_file(absolute_path)
            raise
        return response, absolute_path

    async def process_upload(
        self,
        filename: str,
        content: bytes,
        kind: Union[ImageKind, str, None] = None,
        format_override: Optional[str] = None,
        prefix: Optional[str] = None,
        base_url: Optional[str] = None,
        content_length: Optional[int] = None,
        inline: bool = False,
    ) -> UploadResponse:
        """
        Full multipart workflow.

        Args:
            inline: Also return the stored bytes as a data URL, for callers
                    that embed small images (service cards) in their documents.

        Raises:
            ValidationError / InvalidImageInput for bad input (400)
            FileStorageError if the write fails (500)
        """
        file_service.validate_size(content_length, len(content))
        resolved_kind = ImageKind.parse(kind)
        fmt = parse_format_override(format_override)

        image = await self.normalize(content, resolved_kind, fmt)
        response, _ = await self.store(image, resolved_kind, prefix, base_url, inline=inline)

        logger.info(
            "Upload %s stored as %s (%s, %d bytes)",
            filename,
            response.id,
            response.mime_type,
            response.byte_size,
        )
        return response

    async def resolve_image_reference(
        self,
        value,
        kind: Union[ImageKind, str, None] = None,
        prefix: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> Optional[str]:
        """
        Turn one image reference from a vendor payload into a public URL.

        Returns None for values that are not strings, not URLs, or not
        decodable to an image (bare base64).

        Raises:
            InvalidImageInput when a `data:` URL decodes to bytes that are not an image.
        """
        url, _ = await self._resolve_reference(value, kind, prefix, base_url)
        return url

    async def resolve_image_list(
        self,
        values: Iterable,
        kind: Union[ImageKind, str, None] = None,
        prefix: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> List[str]:
        """
        Resolve references sequentially, preserving order and dropping misses.

        Files stored for earlier entries are cleaned up if a later entry fails.
        """
        if not isinstance(values, (list, tuple)):
            return []

        urls: List[str] = []
        stored_paths: List[str] = []
        try:
            for value in values:
                url, stored_path = await self._resolve_reference(value, kind, prefix, base_url)
                if stored_path:
                    stored_paths.append(stored_path)
                if url:
                    urls.append(url)
        except Exception:
            logger.warning(
                "Image list resolution failed; removing %d file(s) stored for this request",
                len(stored_paths),
            )
            for path in stored_paths:
                await file_service.cleanup_file(path)
            raise
        return urls

    async def _resolve_reference(
        self,
        value,
        kind: Union[ImageKind, str, None],
        prefix: Optional[str],
        base_url: Optional[str],
    ) -> Tuple[Optional[str], Optional[str]]:
        """Returns (public_url, absolute_path); the path is set only when a file was written."""
        if not value or not isinstance(value, str):
            return None, None
        value = value.strip()

        if value.startswith(("http://", "https://")):
            return value, None

        if file_service.is_relative_upload_path(value):
            return file_service.absolutize(value, base_url), None

        payload = parse_data_url(value)
        if payload is None:
            logger.debug("Dropping unrecognised image reference (%d chars)", len(value))
            return None, None

        file_service.validate_size(None, len(payload.data))
        resolved_kind = ImageKind.parse(kind)
        try:
            image = await self.normalize(payload.data, resolved_kind)
        except InvalidImageInput:
            if is_data_url(value):
                raise
            logger.debug("Dropping bare base64 reference that is not an image")
            return None, None

        response, absolute_path = await self.store(image, resolved_kind, prefix, base_url)
        logger.info(
            "Resolved embedded image (declared %s) as %s",
            payload.mime_type,
            response.id,
        )
        return response.url, absolute_path


# ── Singleton Instance ────────────────────────────────────────────────────
upload_service = UploadService()

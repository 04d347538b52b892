"""
VendorHub Media Backend — Pydantic Request/Response Schemas
=============================================================

What:  API contract for the upload endpoints and health check.
How:   FastAPI validates request bodies and serializes responses with these
       models, and generates the OpenAPI docs from them.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from vendorhub.imaging import EncodedImage


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class UploadResponse(BaseModel):
    """
    What:  A stored, normalized image.
    Who:   Returned by POST /api/uploads.

    Callers persist `url` alongside `mime_type`, `byte_size` and the
    dimensions in the vendor profile / listing document.
    """
    id: str = Field(description="Stored filename; stable identifier of the upload")
    url: str = Field(description="Absolute public URL of the normalized image")
    kind: str = Field(description="Policy the image was normalized under")
    mime_type: str = Field(description="image/jpeg, image/png or image/webp")
    byte_size: int = Field(description="Exact size of the stored bytes")
    size_kb: float = Field(description="byte_size / 1024, one decimal")
    width: int = Field(description="Pixel width of the stored image")
    height: int = Field(description="Pixel height of the stored image")
    quality: Optional[int] = Field(
        default=None,
        description="Lossy quality used (null for PNG)",
    )
    ceiling_satisfied: bool = Field(
        description="False when the image could not be compressed under the kind's byte ceiling",
    )
    data_url: Optional[str] = Field(
        default=None,
        description="Inline data:<mime>;base64 copy of the stored bytes (only when requested)",
    )

    @classmethod
    def from_encoded(
        cls,
        image: EncodedImage,
        *,
        file_id: str,
        url: str,
        kind: str,
        data_url: Optional[str] = None,
    ) -> "UploadResponse":
        return cls(
            id=file_id,
            url=url,
            kind=kind,
            mime_type=image.mime_type,
            byte_size=image.byte_size,
            size_kb=image.size_kb,
            width=image.width,
            height=image.height,
            quality=image.quality,
            ceiling_satisfied=image.ceiling_satisfied,
            data_url=data_url,
        )


class ResolveImagesResponse(BaseModel):
    """Public URLs for every resolvable image reference, in request order."""
    urls: List[str] = Field(description="Absolute URLs; unresolvable entries are omitted")


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class ResolveImagesRequest(BaseModel):
    """
    What:  Image references embedded in a vendor onboarding payload.

    Each entry may be:
        - an absolute http(s) URL (kept as-is)
        - a relative /uploads/... path (made absolute)
        - a data URL or bare base64 string (normalized and stored)

    A data URL that is not an image fails the request; a bare string that
    does not decode to an image is dropped like any other unknown entry.
    """
    images: List[str] = Field(default_factory=list, max_length=50, description="Image references")
    kind: str = Field(default="servicePhoto", description="logo, document or servicePhoto")
    prefix: Optional[str] = Field(
        default=None,
        max_length=64,
        description="Filename hint, e.g. 'exterior' or 'aadhaar'",
    )

    @field_validator("images")
    @classmethod
    def strip_blank(cls, v: List[str]) -> List[str]:
        """Drops empty strings sent by form builders for unused slots."""
        return [item for item in v if item and item.strip()]


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Example:
        {
            "error": "validation_error",
            "message": "The uploaded data is not a valid image",
            "details": {"field": "file"},
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy or unhealthy")
    version: str = Field(description="Application version")
    storage: str = Field(description="Uploads directory: writable or unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")

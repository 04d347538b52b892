"""
VendorHub Media Backend — Image Size Policies
===============================================

What:  The `kind → SizePolicy` table and the output format catalogue.
Who:   Read by the ImageNormalizer; kinds are parsed from request fields.

Policy Table:
    kind          max px       max bytes   desired bytes
    logo          512×512      50 KB       —
    document      1920×1920    400 KB      —
    servicePhoto  1920×1920    200 KB      150 KB

    Unknown kinds resolve to servicePhoto.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

KB = 1024


@dataclass(frozen=True)
class SizePolicy:
    """
    Pixel and byte targets for one image kind.

    Attributes:
        max_width / max_height: Resize-to-fit bounds (never upscales)
        max_bytes:     Hard ceiling for the encoded output
        desired_bytes: Optional soft target below the ceiling; when the best
                       candidate undershoots it, quality is nudged upward
    """

    max_width: int
    max_height: int
    max_bytes: int
    desired_bytes: Optional[int] = None

    def __post_init__(self):
        if self.max_width <= 0 or self.max_height <= 0:
            raise ValueError("SizePolicy pixel bounds must be positive")
        if self.max_bytes <= 0:
            raise ValueError("SizePolicy max_bytes must be positive")
        if self.desired_bytes is not None and not 0 < self.desired_bytes <= self.max_bytes:
            raise ValueError("SizePolicy desired_bytes must be in (0, max_bytes]")


class ImageKind(str, Enum):
    """What an image is used for; selects its SizePolicy."""

    LOGO = "logo"
    DOCUMENT = "document"
    SERVICE_PHOTO = "servicePhoto"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ImageKind":
        """
        Resolve a request value to a kind.

        Accepts the canonical values, the short legacy names used by older
        mobile clients (`doc`, `service`), and is case-insensitive.
        Anything else falls back to SERVICE_PHOTO.
        """
        if isinstance(value, cls):
            return value
        if not value:
            return cls.SERVICE_PHOTO
        key = str(value).strip().lower().replace("_", "").replace("-", "")
        return _KIND_ALIASES.get(key, cls.SERVICE_PHOTO)


_KIND_ALIASES = {
    "logo": ImageKind.LOGO,
    "document": ImageKind.DOCUMENT,
    "doc": ImageKind.DOCUMENT,
    "servicephoto": ImageKind.SERVICE_PHOTO,
    "service": ImageKind.SERVICE_PHOTO,
}


DEFAULT_POLICIES: Mapping[ImageKind, SizePolicy] = {
    ImageKind.LOGO: SizePolicy(max_width=512, max_height=512, max_bytes=50 * KB),
    ImageKind.DOCUMENT: SizePolicy(max_width=1920, max_height=1920, max_bytes=400 * KB),
    ImageKind.SERVICE_PHOTO: SizePolicy(
        max_width=1920,
        max_height=1920,
        max_bytes=200 * KB,
        desired_bytes=150 * KB,
    ),
}


def policy_for(kind, policies: Mapping[ImageKind, SizePolicy] = DEFAULT_POLICIES) -> SizePolicy:
    """Look up the policy for a kind (or kind string), defaulting to servicePhoto."""
    resolved = ImageKind.parse(kind)
    return policies.get(resolved) or policies[ImageKind.SERVICE_PHOTO]


class OutputFormat(str, Enum):
    """Encodings the normalizer can produce."""

    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"

    @property
    def mime_type(self) -> str:
        return f"image/{self.value}"

    @property
    def extension(self) -> str:
        return "jpg" if self is OutputFormat.JPEG else self.value

    @property
    def pil_format(self) -> str:
        return self.value.upper()

    @property
    def is_lossy(self) -> bool:
        return self is not OutputFormat.PNG

    @classmethod
    def parse(cls, value: str) -> "OutputFormat":
        """
        Parse a format name or MIME type (`jpg`, `JPEG`, `image/webp`, ...).

        Raises:
            ValueError for anything outside the catalogue.
        """
        key = str(value).strip().lower()
        if key.startswith("image/"):
            key = key[len("image/"):]
        if key == "jpg":
            key = "jpeg"
        try:
            return cls(key)
        except ValueError:
            raise ValueError(
                f"Unsupported output format '{value}'. Allowed: jpeg, jpg, png, webp"
            ) from None

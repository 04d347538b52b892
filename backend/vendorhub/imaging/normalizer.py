"""
VendorHub Media Backend — Image Normalizer
============================================

What:  Turns an arbitrary uploaded image into a size-bounded, web-ready encoding.
How:   Pillow decode → EXIF orientation → resize-to-fit → format-specific encode
       (binary quality search for JPEG/WebP, one-shot palette PNG).
Who:   Called by UploadService for multipart uploads and data URLs embedded
       in vendor onboarding payloads.
When:  Once per image, before it is written to storage.

Pipeline:
    ┌────────┐   ┌─────────┐   ┌────────────┐   ┌──────────────┐   ┌─────────┐
    │ decode │──▶│  EXIF   │──▶│ resize to  │──▶│ choose format│──▶│ encode  │
    │(Pillow)│   │transpose│   │ fit policy │   │ logo+α → PNG │   │ + search│
    └────────┘   └─────────┘   └────────────┘   └──────────────┘   └─────────┘

Failure model:
    Undecodable input raises InvalidImageInput. Nothing else raises: when
    the byte ceiling cannot be met the smallest attempted encoding is
    returned with `ceiling_satisfied=False`.

Thread safety:
    Stateless apart from the immutable policy mapping, so one instance may be
    shared across executor threads.
"""

import base64
import io
import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Union

from PIL import Image, ImageOps, UnidentifiedImageError

from vendorhub.exceptions import InvalidImageInput
from vendorhub.imaging.policy import (
    DEFAULT_POLICIES,
    ImageKind,
    OutputFormat,
    SizePolicy,
    policy_for,
)
from vendorhub.imaging.search import search_quality

logger = logging.getLogger(__name__)

PNG_COMPRESS_LEVEL = 9
PNG_PALETTE_COLORS = 256

# Flatten colour for dropping alpha into JPEG
FLATTEN_BACKGROUND = (255, 255, 255)


@dataclass(frozen=True)
class EncodedImage:
    """
    Output of one normalization call. Callers own persistence.

    Attributes:
        data:              Encoded image bytes
        byte_size:         len(data)
        mime_type:         image/jpeg, image/png or image/webp
        width / height:    Measured from the encoded bytes
        quality:           Lossy quality used (None for PNG)
        ceiling_satisfied: False when the policy's max_bytes could not be met
    """

    data: bytes
    byte_size: int
    mime_type: str
    width: int
    height: int
    quality: Optional[int] = None
    ceiling_satisfied: bool = True

    @property
    def extension(self) -> str:
        return OutputFormat.parse(self.mime_type).extension

    @property
    def size_kb(self) -> float:
        return round(self.byte_size / 1024, 1)

    def to_data_url(self) -> str:
        """Inline representation: data:<mime>;base64,<payload>."""
        payload = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{payload}"


def has_alpha(img: Image.Image) -> bool:
    """
    True when the image carries an alpha channel or a tRNS transparency key.

    The tRNS key applies to RGB and L PNGs as well as palette images.
    """
    return img.has_transparency_data


def flatten_to_rgb(img: Image.Image) -> Image.Image:
    """Composite any alpha onto white and return an RGB (or L) image for JPEG."""
    if has_alpha(img):
        rgba = img.convert("RGBA")
        background = Image.new("RGB", rgba.size, FLATTEN_BACKGROUND)
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    if img.mode in ("RGB", "L"):
        return img
    return img.convert("RGB")


def decode_image(data: bytes) -> Image.Image:
    """
    Decode bytes into a fully loaded, orientation-corrected Pillow image.

    Raises:
        InvalidImageInput if the bytes are empty or not a decodable raster image.
    """
    if not data:
        raise InvalidImageInput("Image data is empty")

    try:
        img = Image.open(io.BytesIO(data))
        img.load()
        # Bake the EXIF rotation flag into pixels before any measurement
        img = ImageOps.exif_transpose(img)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, SyntaxError) as e:
        raise InvalidImageInput(
            context={"error": str(e), "input_bytes": len(data)},
        ) from e

    return img


def resize_to_fit(img: Image.Image, max_width: int, max_height: int) -> Image.Image:
    """Scale down inside max_width×max_height keeping aspect ratio; never upscales."""
    width, height = img.size
    if width <= max_width and height <= max_height:
        return img
    resized = img.copy()
    resized.thumbnail((max_width, max_height), Image.Resampling.LANCZOS)
    return resized


def choose_format(kind: ImageKind, source_has_alpha: bool) -> OutputFormat:
    """Logos with transparency stay PNG; everything else becomes JPEG."""
    if kind is ImageKind.LOGO and source_has_alpha:
        return OutputFormat.PNG
    return OutputFormat.JPEG


def encode_lossy(img: Image.Image, fmt: OutputFormat, quality: int) -> bytes:
    """Encode one JPEG or WebP at the given quality."""
    buf = io.BytesIO()
    if fmt is OutputFormat.JPEG:
        flatten_to_rgb(img).save(
            buf,
            format=fmt.pil_format,
            quality=quality,
            optimize=True,
            progressive=True,
            subsampling="4:2:0",
        )
    else:
        target_mode = "RGBA" if has_alpha(img) else "RGB"
        source = img if img.mode == target_mode else img.convert(target_mode)
        source.save(buf, format=fmt.pil_format, quality=quality, method=4)
    return buf.getvalue()


def encode_png(img: Image.Image) -> bytes:
    """Encode PNG with maximum deflate effort and a reduced 256-colour palette."""
    source = img.convert("RGBA" if has_alpha(img) else "RGB")
    paletted = source.quantize(colors=PNG_PALETTE_COLORS)
    buf = io.BytesIO()
    paletted.save(buf, format="PNG", optimize=True, compress_level=PNG_COMPRESS_LEVEL)
    return buf.getvalue()


class ImageNormalizer:
    """
    Normalizes images against the kind → SizePolicy table.

    Usage:
        result = image_normalizer.normalize(raw_bytes, ImageKind.LOGO)
        result.mime_type   # "image/png" for a transparent logo
    """

    def __init__(self, policies: Mapping[ImageKind, SizePolicy] = DEFAULT_POLICIES):
        """
        Args:
            policies: Override the policy table (used in tests to force
                      tight ceilings). Must contain SERVICE_PHOTO.
        """
        if ImageKind.SERVICE_PHOTO not in policies:
            raise ValueError("policies must define the servicePhoto fallback")
        self.policies = dict(policies)

    def normalize(
        self,
        data: bytes,
        kind: Union[ImageKind, str, None] = ImageKind.SERVICE_PHOTO,
        format_override: Optional[OutputFormat] = None,
    ) -> EncodedImage:
        """
        Produce a size-bounded encoding of `data` for the given kind.

        Args:
            data:            Raw image bytes (transport encoding already removed)
            kind:            ImageKind or its string form; unknown → servicePhoto
            format_override: Force the output encoding, skipping auto-selection

        Returns:
            EncodedImage with dimensions re-measured from the encoded bytes.

        Raises:
            InvalidImageInput if `data` is not a decodable image.
        """
        resolved_kind = ImageKind.parse(kind)
        policy = policy_for(resolved_kind, self.policies)

        source = decode_image(data)
        source_has_alpha = has_alpha(source)
        source_size = source.size

        img = resize_to_fit(source, policy.max_width, policy.max_height)
        fmt = format_override or choose_format(resolved_kind, source_has_alpha)

        result: Optional[EncodedImage] = None
        if fmt is OutputFormat.PNG:
            result = self._encode_png(img, resolved_kind, policy)
            if result is None:
                fmt = OutputFormat.JPEG

        if result is None:
            result = self._encode_lossy(img, fmt, policy)

        logger.info(
            "Normalized %s image %dx%d (%d bytes) -> %s %dx%d (%d bytes, q=%s, ceiling_ok=%s)",
            resolved_kind.value,
            source_size[0],
            source_size[1],
            len(data),
            result.mime_type,
            result.width,
            result.height,
            result.byte_size,
            result.quality,
            result.ceiling_satisfied,
        )
        return result

    def _encode_png(
        self, img: Image.Image, kind: ImageKind, policy: SizePolicy
    ) -> Optional[EncodedImage]:
        """
        One-shot PNG encode. Returns None when an oversized logo should be
        re-encoded as JPEG instead.
        """
        data = encode_png(img)
        # Applies to transparent logos too: an oversized logo never stays PNG
        if kind is ImageKind.LOGO and len(data) > policy.max_bytes:
            logger.info(
                "PNG logo is %d bytes (ceiling %d); falling back to JPEG",
                len(data),
                policy.max_bytes,
            )
            return None
        return self._build(data, OutputFormat.PNG, quality=None, ceiling_satisfied=len(data) <= policy.max_bytes)

    def _encode_lossy(self, img: Image.Image, fmt: OutputFormat, policy: SizePolicy) -> EncodedImage:
        """Run the quality search for JPEG/WebP output."""
        outcome = search_quality(
            lambda quality: encode_lossy(img, fmt, quality),
            max_bytes=policy.max_bytes,
            desired_bytes=policy.desired_bytes,
        )
        return self._build(
            outcome.data,
            fmt,
            quality=outcome.quality,
            ceiling_satisfied=outcome.ceiling_satisfied,
        )

    @staticmethod
    def _build(
        data: bytes,
        fmt: OutputFormat,
        quality: Optional[int],
        ceiling_satisfied: bool,
    ) -> EncodedImage:
        # Measure what the encoder actually wrote rather than trusting the resize step
        with Image.open(io.BytesIO(data)) as encoded:
            width, height = encoded.size
        return EncodedImage(
            data=data,
            byte_size=len(data),
            mime_type=fmt.mime_type,
            width=width,
            height=height,
            quality=quality,
            ceiling_satisfied=ceiling_satisfied,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
image_normalizer = ImageNormalizer()


def normalize_image(
    data: bytes,
    kind: Union[ImageKind, str, None] = ImageKind.SERVICE_PHOTO,
    format_override: Optional[OutputFormat] = None,
) -> EncodedImage:
    """Module-level shortcut for `image_normalizer.normalize`."""
    return image_normalizer.normalize(data, kind, format_override)

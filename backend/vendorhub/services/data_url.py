"""
VendorHub Media Backend — Data URL Codec
==========================================

What:  Converts between `data:<mime>;base64,<payload>` strings and raw bytes.
Who:   UploadService, for images embedded in vendor onboarding JSON
       (logos, KYC document scans, service photos).

Accepted inputs:
    data:image/png;base64,iVBORw0KGgo...   → declared MIME + decoded bytes
    iVBORw0KGgo...                          → bare base64, MIME unknown
    anything else / undecodable             → None
"""

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Optional

from vendorhub.imaging import EncodedImage

DATA_URL_PATTERN = re.compile(r"^data:(.+?);base64,(.*)$", re.DOTALL)

UNKNOWN_MIME_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class DataUrlPayload:
    mime_type: str
    data: bytes


def _b64decode(payload: str) -> Optional[bytes]:
    cleaned = "".join(payload.split())
    # Some clients strip the trailing padding
    cleaned += "=" * (-len(cleaned) % 4)
    try:
        return base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError):
        return None


def parse_data_url(value) -> Optional[DataUrlPayload]:
    """
    Decode a data URL or bare base64 string.

    Returns:
        DataUrlPayload, or None for non-strings, empty strings, and payloads
        that are not valid base64. The MIME type is whatever the client
        declared; the normalizer decides what the bytes really are.
    """
    if not value or not isinstance(value, str):
        return None

    match = DATA_URL_PATTERN.match(value.strip())
    if match:
        mime_type, payload = match.group(1), match.group(2)
    else:
        mime_type, payload = UNKNOWN_MIME_TYPE, value

    data = _b64decode(payload)
    if not data:
        return None
    return DataUrlPayload(mime_type=mime_type, data=data)


def is_data_url(value: str) -> bool:
    return value.startswith("data:")


def to_data_url(image: EncodedImage) -> str:
    """Inline a normalized image, e.g. for service cards stored in the listing document."""
    return image.to_data_url()

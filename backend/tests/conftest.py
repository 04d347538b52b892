"""
VendorHub Media Backend — Test Configuration (conftest.py)
============================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment is pointed at a throwaway uploads directory BEFORE any
       application import, so the module-level singletons (settings,
       file_service) never touch a real storage volume.

Fixtures:
    ├── temp_storage: Fresh storage directory per test
    ├── make_image: Factory producing encoded test images with Pillow
    ├── sample_jpeg_bytes: Small opaque JPEG
    ├── transparent_logo_bytes: Small RGBA PNG with a transparent background
    └── test_client: HTTPX AsyncClient wired to the FastAPI app
"""

import io
import os
import tempfile

# Must run before vendorhub.config is imported anywhere
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="vendorhub_test_")
os.environ["PUBLIC_BASE_URL"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image, ImageDraw


def encode_image(img: Image.Image, fmt: str = "JPEG", **save_kwargs) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format=fmt, **save_kwargs)
    return buf.getvalue()


def noise_image(size, mode: str = "RGB") -> Image.Image:
    """Per-channel Gaussian noise; deliberately hard to compress."""
    bands = [Image.effect_noise(size, 64) for _ in mode]
    return Image.merge(mode, bands)


def gradient_image(size) -> Image.Image:
    """Smooth RGB gradient; compresses very well."""
    horizontal = Image.linear_gradient("L").resize(size)
    vertical = Image.linear_gradient("L").rotate(90).resize(size)
    return Image.merge("RGB", [horizontal, vertical, Image.new("L", size, 128)])


@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "uploads"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def make_image():
    """
    Factory: make_image(size, fmt="JPEG", pattern="gradient", mode="RGB").

    pattern: "gradient" (compressible), "noise" (incompressible) or "solid".
    """

    def _make(size=(64, 48), fmt="JPEG", pattern="gradient", mode="RGB", **save_kwargs):
        if pattern == "noise":
            img = noise_image(size, mode)
        elif pattern == "gradient":
            img = gradient_image(size)
            if mode != "RGB":
                img = img.convert(mode)
        else:
            img = Image.new(mode, size, (30, 120, 200, 255)[: len(mode)])
        return encode_image(img, fmt, **save_kwargs)

    return _make


@pytest.fixture
def sample_jpeg_bytes(make_image):
    return make_image((64, 48), "JPEG")


@pytest.fixture
def transparent_logo_bytes():
    img = Image.new("RGBA", (128, 128), (0, 0, 0, 0))
    ImageDraw.Draw(img).ellipse((16, 16, 112, 112), fill=(220, 40, 60, 255))
    return encode_image(img, "PNG")


@pytest_asyncio.fixture
async def test_client():
    from vendorhub.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def color_key_logo_bytes():
    """RGB PNG whose white background is transparent through a tRNS colour key."""
    img = Image.new("RGB", (96, 96), (255, 255, 255))
    ImageDraw.Draw(img).rectangle((24, 24, 72, 72), fill=(20, 90, 160))
    return encode_image(img, "PNG", transparency=(255, 255, 255))

"""
VendorHub Media Backend — File Service Unit Tests
===================================================

What:  Tests for size validation, filename generation, storage, public URLs
       and cleanup in FileService.
How:   Each test gets its own FileService rooted in a pytest tmp directory.
"""

import re
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from vendorhub.exceptions import FileStorageError, ValidationError
from vendorhub.services.file_service import FileService, sanitize_prefix


@pytest.fixture
def service(temp_storage):
    return FileService(storage_root=temp_storage)


class TestSizeValidation:

    def test_within_limit(self, service):
        service.validate_size(None, 1000)

    def test_empty_rejected(self, service):
        with pytest.raises(ValidationError, match="empty"):
            service.validate_size(None, 0)

    def test_actual_size_over_limit(self, service):
        too_big = 10 * 1024 * 1024 + 1
        with pytest.raises(ValidationError, match="exceeds maximum"):
            service.validate_size(None, too_big)

    def test_declared_size_over_limit(self, service):
        with pytest.raises(ValidationError, match="exceeds maximum"):
            service.validate_size(50 * 1024 * 1024, 100)

    def test_at_limit_accepted(self, service):
        service.validate_size(10 * 1024 * 1024, 10 * 1024 * 1024)


class TestFilenames:

    def test_filename_shape(self, service):
        name = service.generate_filename("exterior", "jpg")
        assert re.fullmatch(r"\d{13}-[0-9a-z]{6}-exterior\.jpg", name)

    def test_filenames_are_unique(self, service):
        names = {service.generate_filename("logo", "png") for _ in range(50)}
        assert len(names) == 50

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("hall photos", "hall_photos"),
            ("../../etc/passwd", ".._.._etc_passwd"),
            ("aadhaar-front_1.v2", "aadhaar-front_1.v2"),
            (None, "upload"),
            ("", "upload"),
        ],
    )
    def test_prefix_sanitized(self, raw, expected):
        assert sanitize_prefix(raw) == expected


class TestStorage:

    @pytest.mark.asyncio
    async def test_store_image_writes_bytes(self, service, temp_storage):
        abs_path, filename = await service.store_image(b"jpeg-bytes", "jpg", "logo")

        assert abs_path.startswith(str(service.storage_root))
        assert filename.endswith("-logo.jpg")
        with open(abs_path, "rb") as f:
            assert f.read() == b"jpeg-bytes"

    @pytest.mark.asyncio
    async def test_store_image_os_error(self, service):
        with patch("aiofiles.open", new_callable=MagicMock) as mock_open:
            mock_open.return_value.__aenter__ = AsyncMock(side_effect=OSError("disk full"))
            mock_open.return_value.__aexit__ = AsyncMock(return_value=False)

            with pytest.raises(FileStorageError):
                await service.store_image(b"x", "jpg", "logo")

    @pytest.mark.asyncio
    async def test_cleanup_file_removes_file(self, tmp_path, service):
        test_file = tmp_path / "test.jpg"
        test_file.write_bytes(b"test content")

        await service.cleanup_file(str(test_file))

        assert not test_file.exists()

    @pytest.mark.asyncio
    async def test_cleanup_file_nonexistent(self, tmp_path, service):
        await service.cleanup_file(str(tmp_path / "nonexistent.jpg"))


class TestPublicUrls:

    def test_public_url_uses_request_base(self, service):
        url = service.public_url("a.jpg", "http://api.local:8000/")
        assert url == "http://api.local:8000/uploads/a.jpg"

    def test_configured_base_url_wins(self, service):
        with patch("vendorhub.services.file_service.settings") as mock_settings:
            mock_settings.public_base_url_normalized = "https://cdn.example.com"
            mock_settings.uploads_url_path = "/uploads"

            url = service.public_url("a.jpg", "http://api.local:8000")

        assert url == "https://cdn.example.com/uploads/a.jpg"

    @pytest.mark.parametrize("value", ["/uploads/a.jpg", "uploads/a.jpg"])
    def test_relative_upload_paths(self, service, value):
        assert service.is_relative_upload_path(value)
        assert service.absolutize(value, "http://api.local") == "http://api.local/uploads/a.jpg"

    def test_other_paths_are_not_uploads(self, service):
        assert not service.is_relative_upload_path("/static/a.jpg")
        assert not service.is_relative_upload_path("uploadsX/a.jpg")

"""
VendorHub Media Backend — Upload Service Unit Tests
=====================================================

What:  Tests for the UploadService orchestration (upload, reference resolution).
How:   FileService is mocked out; the real normalizer runs on small images.

What we test:
    ✅ Multipart workflow: size check → normalize → store → response
    ✅ Unknown format override rejected as ValidationError
    ✅ URL passthrough, relative path absolutization, data URL processing
    ✅ Undecodable references dropped, non-image data URLs rejected
    ✅ Stored file cleaned up when response construction fails
    ✅ Bare base64 references resolved; non-image bare strings dropped
    ✅ Failed list resolution removes files stored earlier in the call
    ✅ Inline data URL returned on request
"""

import base64
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from vendorhub.exceptions import InvalidImageInput, ValidationError
from vendorhub.imaging import ImageKind, OutputFormat
from vendorhub.services.upload_service import UploadService, parse_format_override


@pytest.fixture
def mock_file_service():
    with patch("vendorhub.services.upload_service.file_service") as mock_file:
        mock_file.validate_size = MagicMock()
        mock_file.store_image = AsyncMock(
            return_value=("/srv/uploads/1700000000000-abc123-logo.png", "1700000000000-abc123-logo.png")
        )
        mock_file.public_url = MagicMock(
            side_effect=lambda name, base=None: f"{base}/uploads/{name}"
        )
        mock_file.is_relative_upload_path = MagicMock(
            side_effect=lambda v: v.startswith("/uploads/") or v.startswith("uploads/")
        )
        mock_file.absolutize = MagicMock(
            side_effect=lambda v, base=None: f"{base}/{v.lstrip('/')}"
        )
        mock_file.cleanup_file = AsyncMock()
        yield mock_file


class TestProcessUpload:

    def setup_method(self):
        self.service = UploadService()

    @pytest.mark.asyncio
    async def test_success(self, mock_file_service, transparent_logo_bytes):
        result = await self.service.process_upload(
            filename="logo.png",
            content=transparent_logo_bytes,
            kind="logo",
            base_url="http://api.local",
            content_length=len(transparent_logo_bytes),
        )

        assert result.mime_type == "image/png"
        assert result.kind == "logo"
        assert result.id == "1700000000000-abc123-logo.png"
        assert result.url == "http://api.local/uploads/1700000000000-abc123-logo.png"
        assert result.ceiling_satisfied is True
        mock_file_service.validate_size.assert_called_once_with(
            len(transparent_logo_bytes), len(transparent_logo_bytes)
        )
        stored_bytes, extension, prefix = mock_file_service.store_image.await_args.args
        assert extension == "png"
        assert prefix == "logo"

    @pytest.mark.asyncio
    async def test_inline_data_url(self, mock_file_service, transparent_logo_bytes):
        result = await self.service.process_upload(
            filename="logo.png", content=transparent_logo_bytes, kind="logo", inline=True
        )

        stored_bytes = mock_file_service.store_image.await_args.args[0]
        assert result.data_url == "data:image/png;base64," + base64.b64encode(stored_bytes).decode()

    @pytest.mark.asyncio
    async def test_no_data_url_by_default(self, mock_file_service, sample_jpeg_bytes):
        result = await self.service.process_upload(filename="x.jpg", content=sample_jpeg_bytes)
        assert result.data_url is None

    @pytest.mark.asyncio
    async def test_prefix_passed_through(self, mock_file_service, sample_jpeg_bytes):
        await self.service.process_upload(
            filename="hall.jpg", content=sample_jpeg_bytes, kind="servicePhoto", prefix="hall"
        )
        assert mock_file_service.store_image.await_args.args[2] == "hall"

    @pytest.mark.asyncio
    async def test_invalid_image_not_stored(self, mock_file_service):
        with pytest.raises(InvalidImageInput):
            await self.service.process_upload(filename="x.jpg", content=b"garbage", kind="document")
        mock_file_service.store_image.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bad_format_override(self, mock_file_service, sample_jpeg_bytes):
        with pytest.raises(ValidationError, match="Unsupported output format"):
            await self.service.process_upload(
                filename="x.jpg", content=sample_jpeg_bytes, format_override="gif"
            )

    @pytest.mark.asyncio
    async def test_cleanup_when_response_fails(self, mock_file_service, sample_jpeg_bytes):
        mock_file_service.public_url = MagicMock(side_effect=RuntimeError("boom"))

        with pytest.raises(RuntimeError):
            await self.service.process_upload(filename="x.jpg", content=sample_jpeg_bytes)

        mock_file_service.cleanup_file.assert_awaited_once_with(
            "/srv/uploads/1700000000000-abc123-logo.png"
        )


class TestResolveReferences:

    def setup_method(self):
        self.service = UploadService()

    @pytest.mark.asyncio
    async def test_absolute_url_passthrough(self, mock_file_service):
        url = await self.service.resolve_image_reference("https://cdn.example.com/a.jpg")
        assert url == "https://cdn.example.com/a.jpg"
        mock_file_service.store_image.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_relative_upload_absolutized(self, mock_file_service):
        url = await self.service.resolve_image_reference("/uploads/a.jpg", base_url="http://api.local")
        assert url == "http://api.local/uploads/a.jpg"

    @pytest.mark.asyncio
    async def test_data_url_normalized_and_stored(self, mock_file_service, sample_jpeg_bytes):
        data_url = "data:image/jpeg;base64," + base64.b64encode(sample_jpeg_bytes).decode()

        url = await self.service.resolve_image_reference(
            data_url, kind=ImageKind.DOCUMENT, prefix="aadhaar", base_url="http://api.local"
        )

        assert url.startswith("http://api.local/uploads/")
        _, extension, prefix = mock_file_service.store_image.await_args.args
        assert extension == "jpg"
        assert prefix == "aadhaar"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [None, "", 7, "ftp://host/a.jpg", "data:image/png;base64,!!!"])
    async def test_unresolvable_values_dropped(self, mock_file_service, value):
        assert await self.service.resolve_image_reference(value) is None

    @pytest.mark.asyncio
    async def test_data_url_with_non_image_bytes(self, mock_file_service):
        data_url = "data:image/png;base64," + base64.b64encode(b"plain text").decode()
        with pytest.raises(InvalidImageInput):
            await self.service.resolve_image_reference(data_url)

    @pytest.mark.asyncio
    async def test_list_preserves_order_and_drops_misses(self, mock_file_service):
        urls = await self.service.resolve_image_list(
            ["https://a/1.jpg", "", "junk", "/uploads/2.jpg", "https://a/3.jpg"],
            base_url="http://api.local",
        )
        assert urls == ["https://a/1.jpg", "http://api.local/uploads/2.jpg", "https://a/3.jpg"]

    @pytest.mark.asyncio
    async def test_list_non_list_input(self, mock_file_service):
        assert await self.service.resolve_image_list("https://a/1.jpg") == []

    @pytest.mark.asyncio
    async def test_bare_base64_normalized_and_stored(self, mock_file_service, transparent_logo_bytes):
        bare = base64.b64encode(transparent_logo_bytes).decode()

        url = await self.service.resolve_image_reference(bare, kind="logo", base_url="http://api.local")

        assert url == "http://api.local/uploads/1700000000000-abc123-logo.png"
        _, extension, prefix = mock_file_service.store_image.await_args.args
        assert extension == "png"
        assert prefix == "logo"

    @pytest.mark.asyncio
    async def test_bare_base64_non_image_dropped(self, mock_file_service):
        bare = base64.b64encode(b"just some text").decode()

        assert await self.service.resolve_image_reference(bare) is None
        mock_file_service.store_image.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_list_failure_removes_files_already_stored(self, mock_file_service, sample_jpeg_bytes):
        mock_file_service.store_image = AsyncMock(
            side_effect=[
                ("/srv/uploads/1-aaaaaa-servicePhoto.jpg", "1-aaaaaa-servicePhoto.jpg"),
                ("/srv/uploads/2-bbbbbb-servicePhoto.jpg", "2-bbbbbb-servicePhoto.jpg"),
            ]
        )
        good = "data:image/jpeg;base64," + base64.b64encode(sample_jpeg_bytes).decode()
        not_an_image = "data:image/png;base64," + base64.b64encode(b"plain text").decode()

        with pytest.raises(InvalidImageInput):
            await self.service.resolve_image_list(
                [good, "https://a/1.jpg", good, not_an_image], base_url="http://api.local"
            )

        cleaned = [call.args[0] for call in mock_file_service.cleanup_file.await_args_list]
        assert cleaned == [
            "/srv/uploads/1-aaaaaa-servicePhoto.jpg",
            "/srv/uploads/2-bbbbbb-servicePhoto.jpg",
        ]

    @pytest.mark.asyncio
    async def test_list_success_keeps_files(self, mock_file_service, sample_jpeg_bytes):
        good = "data:image/jpeg;base64," + base64.b64encode(sample_jpeg_bytes).decode()

        urls = await self.service.resolve_image_list([good], base_url="http://api.local")

        assert len(urls) == 1
        mock_file_service.cleanup_file.assert_not_awaited()


class TestParseFormatOverride:

    def test_absent(self):
        assert parse_format_override(None) is None
        assert parse_format_override("  ") is None

    def test_known(self):
        assert parse_format_override("jpg") is OutputFormat.JPEG

    def test_unknown(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_format_override("tiff")
        assert exc_info.value.field == "format"

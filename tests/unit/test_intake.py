"""
Unit tests for upload intake checks.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from beycloud.intake import (
    DEFAULT_MAX_UPLOAD_BYTES,
    PayloadTooLargeError,
    UnsupportedContentTypeError,
    UploadIntake,
)


@pytest.fixture
def storage():
    mock = AsyncMock()
    mock.upload_file.return_value = "https://example.com/skyline?sig=abc"
    return mock


class TestValidate:
    def test_accepts_allowed_type(self):
        UploadIntake().validate(b"\xff\xd8\xff", "image/jpeg")

    def test_ignores_parameters_and_case(self):
        UploadIntake().validate(b"%PDF", "Application/PDF; charset=binary")

    @pytest.mark.parametrize("content_type", ["text/plain", "", None])
    def test_rejects_other_types(self, content_type):
        with pytest.raises(UnsupportedContentTypeError, match="Unsupported file type"):
            UploadIntake().validate(b"data", content_type)

    def test_size_limit_is_inclusive(self):
        intake = UploadIntake(max_size_bytes=4)
        intake.validate(b"1234", "image/png")

        with pytest.raises(PayloadTooLargeError) as exc_info:
            intake.validate(b"12345", "image/png")
        assert exc_info.value.size == 5
        assert exc_info.value.limit == 4

    def test_default_limit(self, skyline_bytes):
        UploadIntake().validate(skyline_bytes, "image/jpeg")
        with pytest.raises(PayloadTooLargeError):
            UploadIntake().validate(b"x" * (DEFAULT_MAX_UPLOAD_BYTES + 1), "image/jpeg")

    def test_from_settings(self):
        settings = SimpleNamespace(UPLOAD_MAX_BYTES=10, allowed_upload_types=frozenset({"text/csv"}))

        intake = UploadIntake.from_settings(settings)

        assert intake.max_size_bytes == 10
        assert intake.allowed_content_types == frozenset({"text/csv"})


class TestAccept:
    @pytest.mark.asyncio
    async def test_forwards_to_storage(self, storage, skyline_bytes):
        url = await UploadIntake().accept(storage, "skyline", skyline_bytes, "image/jpeg")

        assert url == "https://example.com/skyline?sig=abc"
        storage.upload_file.assert_awaited_once_with("skyline", skyline_bytes, "image/jpeg")

    @pytest.mark.asyncio
    async def test_rejected_upload_never_reaches_storage(self, storage):
        with pytest.raises(UnsupportedContentTypeError):
            await UploadIntake().accept(storage, "notes", b"data", "text/plain")

        storage.upload_file.assert_not_called()

    @pytest.mark.asyncio
    async def test_end_to_end_with_local_storage(self, local_storage):
        await UploadIntake().accept(local_storage, "docs/report.pdf", b"%PDF-1.7", "application/pdf")

        info = await local_storage.get_file("docs/report.pdf")
        assert info.content_type == "application/pdf"

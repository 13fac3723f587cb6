"""Tests for GCSStorage against a mocked google-cloud-storage client."""

import io
import threading
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from google.api_core.exceptions import NotFound
from google.cloud import storage as storage_lib

from beycloud.storage import (
    ConfigurationMismatchError,
    DeleteError,
    DownloadError,
    GCSConfig,
    ListError,
    MetadataError,
    MissingConfigurationError,
    S3Config,
)
from beycloud.storage.gcs_provider import STREAM_CHUNK_SIZE, GCSStorage

SIGNED = "https://storage.googleapis.com/test-bucket/skyline?X-Goog-Signature=abc"


def _blob(name, size=None, content_type=None):
    blob = MagicMock()
    blob.name = name
    blob.size = size
    blob.content_type = content_type
    blob.updated = datetime(2024, 5, 1, tzinfo=timezone.utc)
    blob.generate_signed_url.return_value = f"https://storage.googleapis.com/test-bucket/{name}?sig"
    return blob


@pytest.fixture
def gcs():
    client = MagicMock()
    bucket = client.bucket.return_value
    blob = bucket.blob.return_value
    blob.generate_signed_url.return_value = SIGNED

    with patch("beycloud.storage.gcs_provider.storage.Client") as client_cls:
        client_cls.from_service_account_json.return_value = client
        yield SimpleNamespace(client_cls=client_cls, client=client, bucket=bucket, blob=blob)


@pytest.fixture
def storage(gcs):
    return GCSStorage(GCSConfig(bucket="test-bucket", project_id="proj", key_file_path="/keys/sa.json"))


class TestConstruction:
    def test_missing_key_file(self, gcs):
        with pytest.raises(MissingConfigurationError, match="Key File Path parameter must be provided"):
            GCSStorage(GCSConfig(bucket="test-bucket", project_id="proj"))
        gcs.client_cls.from_service_account_json.assert_not_called()

    def test_missing_project(self, gcs):
        with pytest.raises(MissingConfigurationError, match="Project parameter must be provided"):
            GCSStorage({"bucket": "test-bucket", "key_file_path": "/keys/sa.json", "project_id": "  "})

    def test_foreign_config(self, gcs):
        with pytest.raises(ConfigurationMismatchError, match="Google Cloud Storage credentials are required"):
            GCSStorage(S3Config(bucket="test-bucket"))

    def test_client_from_key_file(self, storage, gcs):
        gcs.client_cls.from_service_account_json.assert_called_once_with("/keys/sa.json", project="proj")
        gcs.client.bucket.assert_called_once_with("test-bucket")


class TestOperations:
    @pytest.mark.asyncio
    async def test_exists(self, storage, gcs):
        gcs.blob.exists.return_value = True
        assert await storage.exists("skyline") is True
        gcs.bucket.blob.assert_called_with("skyline")

    @pytest.mark.asyncio
    async def test_upload_bytes(self, storage, gcs):
        url = await storage.upload_file("skyline", b"data", "image/jpeg")

        assert url == SIGNED
        args, kwargs = gcs.blob.upload_from_file.call_args
        assert args[0].getvalue() == b"data"
        assert kwargs == {"size": 4, "content_type": "image/jpeg"}
        gcs.blob.upload_from_string.assert_not_called()

    @pytest.mark.asyncio
    async def test_upload_bytes_default_type(self, storage, gcs):
        await storage.upload_file("doc", memoryview(b"data"))

        args, kwargs = gcs.blob.upload_from_file.call_args
        assert args[0].getvalue() == b"data"
        assert kwargs["content_type"] is None

    @pytest.mark.asyncio
    async def test_untyped_upload_gets_octet_stream(self, storage, gcs):
        bucket = storage_lib.Bucket(client=MagicMock(), name="test-bucket")
        gcs.bucket.blob.side_effect = lambda name, **kwargs: storage_lib.Blob(name, bucket=bucket, **kwargs)

        with patch.object(storage_lib.Blob, "_do_upload", autospec=True, return_value={}) as do_upload, patch.object(
            storage_lib.Blob, "generate_signed_url", autospec=True, return_value=SIGNED
        ):
            await storage.upload_file("skyline", b"\xff\xd8\xff\xe0", None)

        blob, _client, file_obj, content_type = do_upload.call_args.args[:4]
        assert file_obj.getvalue() == b"\xff\xd8\xff\xe0"
        assert blob._get_content_type(content_type) == "application/octet-stream"

    @pytest.mark.asyncio
    async def test_upload_stream_is_chunked(self, storage, gcs):
        stream = io.BytesIO(b"streamed")

        await storage.upload_file("doc", stream, "application/pdf")

        gcs.bucket.blob.assert_any_call("doc", chunk_size=STREAM_CHUNK_SIZE)
        gcs.blob.upload_from_file.assert_called_once_with(stream, content_type="application/pdf")
        gcs.blob.upload_from_string.assert_not_called()

    @pytest.mark.asyncio
    async def test_download_missing(self, storage, gcs):
        gcs.blob.download_as_bytes.side_effect = NotFound("No such object: test-bucket/skyline2")

        with pytest.raises(DownloadError) as exc_info:
            await storage.download_file("skyline2")

        assert str(exc_info.value) == "Failed to download file: No such object: test-bucket/skyline2"
        assert exc_info.value.not_found is True

    @pytest.mark.asyncio
    async def test_delete_missing(self, storage, gcs):
        gcs.blob.delete.side_effect = NotFound("No such object: test-bucket/skyline")

        with pytest.raises(DeleteError) as exc_info:
            await storage.delete_file("skyline")
        assert exc_info.value.not_found is True

    @pytest.mark.asyncio
    async def test_get_file(self, storage, gcs, skyline_bytes):
        gcs.blob.size = "383767"
        gcs.blob.content_type = "image/jpeg"
        gcs.blob.updated = datetime(2024, 5, 1, tzinfo=timezone.utc)
        gcs.blob.download_as_bytes.return_value = skyline_bytes

        info = await storage.get_file("skyline")

        gcs.blob.reload.assert_called_once_with()
        assert info.size == 383767
        assert info.content_type == "image/jpeg"
        assert info.content == skyline_bytes
        assert info.url == SIGNED

    @pytest.mark.asyncio
    async def test_get_missing_file(self, storage, gcs):
        gcs.blob.reload.side_effect = NotFound("No such object: test-bucket/nope")
        with pytest.raises(MetadataError, match="^Failed to get file: No such object"):
            await storage.get_file("nope")


class TestListing:
    @pytest.mark.asyncio
    async def test_list(self, storage, gcs):
        gcs.client.list_blobs.return_value = iter(
            [_blob("b.png", "2", "image/png"), _blob("a.pdf", 1, "application/pdf")]
        )

        files = await storage.get_files_list(max_keys=5, prefix="docs/")

        assert [f.key for f in files] == ["b.png", "a.pdf"]
        assert [f.size for f in files] == [2, 1]
        assert files[0].url.startswith("https://storage.googleapis.com/test-bucket/b.png")
        gcs.client.list_blobs.assert_called_once_with("test-bucket", prefix="docs/", max_results=5)

    @pytest.mark.asyncio
    async def test_empty_prefix_is_none(self, storage, gcs):
        gcs.client.list_blobs.return_value = iter([])

        assert await storage.get_files_list(prefix="") == []
        gcs.client.list_blobs.assert_called_once_with("test-bucket", prefix=None, max_results=1000)

    @pytest.mark.asyncio
    async def test_list_failure(self, storage, gcs):
        gcs.client.list_blobs.side_effect = NotFound("The specified bucket does not exist.")
        with pytest.raises(ListError, match="The specified bucket does not exist."):
            await storage.get_files_list()

    @pytest.mark.asyncio
    async def test_signing_runs_off_the_event_loop(self, storage, gcs):
        loop_thread = threading.get_ident()
        signing_threads = []

        def sign(**kwargs):
            signing_threads.append(threading.get_ident())
            return SIGNED

        blobs = [_blob(name, 1) for name in ("a", "b", "c")]
        for blob in blobs:
            blob.generate_signed_url.side_effect = sign
        gcs.client.list_blobs.return_value = iter(blobs)

        files = await storage.get_files_list()

        assert [f.url for f in files] == [SIGNED] * 3
        assert len(signing_threads) == 3
        assert loop_thread not in signing_threads


class TestSignedUrl:
    @pytest.mark.asyncio
    async def test_v4_signing(self, storage, gcs):
        url = await storage.get_signed_url("skyline", expires_in=2500)

        assert url == SIGNED
        gcs.blob.generate_signed_url.assert_called_once_with(
            version="v4", expiration=timedelta(seconds=2500), method="GET"
        )

    @pytest.mark.asyncio
    async def test_signing_runs_off_the_event_loop(self, storage, gcs):
        loop_thread = threading.get_ident()
        signing_threads = []

        def sign(**kwargs):
            signing_threads.append(threading.get_ident())
            return SIGNED

        gcs.blob.generate_signed_url.side_effect = sign

        assert await storage.get_signed_url("skyline") == SIGNED
        assert signing_threads and loop_thread not in signing_threads

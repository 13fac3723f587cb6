# beycloud/storage/gcs_provider.py
"""
Google Cloud Storage adapter implementation using google-cloud-storage.

The client is built from a service account key file, which also provides
the credentials used to sign V4 URLs locally.
"""

import io
import logging
from collections.abc import Mapping
from datetime import timedelta
from typing import Any, Optional, Union

from google.api_core.exceptions import NotFound
from google.cloud import storage

from beycloud.storage.base import (
    DEFAULT_MAX_KEYS,
    DEFAULT_SIGNED_URL_EXPIRY,
    CloudStorage,
    FileMetadata,
    ProviderTag,
    UploadContent,
    as_bytes,
    is_stream,
    to_int_size,
)
from beycloud.storage.configs import GCSConfig
from beycloud.storage.errors import (
    DeleteError,
    DownloadError,
    ExistenceCheckError,
    ListError,
    MetadataError,
    SignedUrlError,
    UploadError,
)

logger = logging.getLogger(__name__)

# Resumable upload chunk size for streams; must be a multiple of 256 KiB
STREAM_CHUNK_SIZE = 8 * 1024 * 1024


class GCSStorage(CloudStorage):
    """Google Cloud Storage adapter bound to a single bucket."""

    def __init__(
        self,
        config: Union[GCSConfig, Mapping[str, Any]],
        timeout: Optional[float] = None,
    ):
        super().__init__(timeout=timeout)

        config = GCSConfig.coerce(config)
        config.validate()

        self._bucket_name = config.bucket.strip()
        self._client = storage.Client.from_service_account_json(
            config.key_file_path,
            project=config.project_id,
        )
        self._bucket = self._client.bucket(self._bucket_name)

        logger.info(f"GCS storage initialized: bucket={self._bucket_name}")

    @property
    def name(self) -> str:
        return ProviderTag.GCS.value

    @property
    def bucket(self) -> str:
        return self._bucket_name

    def _is_not_found(self, exc: BaseException) -> bool:
        return isinstance(exc, NotFound)

    async def exists(self, key: str) -> bool:
        with self._operation(ExistenceCheckError, key):
            return bool(await self._call(self._bucket.blob(key).exists))

    async def upload_file(
        self,
        key: str,
        content: UploadContent,
        content_type: Optional[str] = None,
    ) -> str:
        """
        Upload content to GCS.

        Streams use a resumable upload sent in STREAM_CHUNK_SIZE pieces;
        the call returns once the final chunk is acknowledged. Bytes go
        through upload_from_file as well, since upload_from_string would
        store untyped content as text/plain instead of the bucket default.
        """
        with self._operation(UploadError, key) as metrics:
            if is_stream(content):
                blob = self._bucket.blob(key, chunk_size=STREAM_CHUNK_SIZE)
                await self._call(blob.upload_from_file, content, content_type=content_type)
            else:
                data = as_bytes(content)
                blob = self._bucket.blob(key)
                await self._call(
                    blob.upload_from_file,
                    io.BytesIO(data),
                    size=len(data),
                    content_type=content_type,
                )
                metrics["size_bytes"] = len(data)

            return await self.get_signed_url(key)

    async def download_file(self, key: str) -> bytes:
        with self._operation(DownloadError, key) as metrics:
            data = await self._call(self._bucket.blob(key).download_as_bytes)
            metrics["size_bytes"] = len(data)
            return data

    async def delete_file(self, key: str) -> bool:
        with self._operation(DeleteError, key):
            await self._call(self._bucket.blob(key).delete)
            logger.debug(f"Deleted from GCS: {key}")
            return True

    async def get_file(self, key: str) -> FileMetadata:
        with self._operation(MetadataError, key) as metrics:
            blob = await self._call(self._fetch_blob, key)
            data = await self.download_file(key)
            metrics["size_bytes"] = len(data)

            return FileMetadata(
                key=key,
                size=to_int_size(blob.size),
                last_modified=blob.updated,
                content_type=blob.content_type,
                url=await self.get_signed_url(key),
                content=data,
            )

    def _fetch_blob(self, key: str) -> storage.Blob:
        blob = self._bucket.blob(key)
        blob.reload()
        return blob

    async def get_files_list(
        self,
        max_keys: int = DEFAULT_MAX_KEYS,
        prefix: Optional[str] = None,
    ) -> list[FileMetadata]:
        with self._operation(ListError, prefix) as metrics:
            max_keys = self._validate_max_keys(max_keys)
            if max_keys == 0:
                return []

            files = await self._call(self._list_files, max_keys, prefix)
            metrics["items_returned"] = len(files)
            return files

    def _list_files(self, max_keys: int, prefix: Optional[str]) -> list[FileMetadata]:
        """List and sign on the executor; V4 signing is an RSA operation per entry."""
        blobs = self._client.list_blobs(
            self._bucket_name,
            prefix=prefix or None,
            max_results=max_keys,
        )
        return [
            FileMetadata(
                key=blob.name,
                size=to_int_size(blob.size),
                last_modified=blob.updated,
                content_type=blob.content_type,
                url=self._sign(blob, DEFAULT_SIGNED_URL_EXPIRY),
            )
            for blob in blobs
        ]

    async def get_signed_url(self, key: str, expires_in: int = DEFAULT_SIGNED_URL_EXPIRY) -> str:
        with self._operation(SignedUrlError, key):
            expires_in = self._validate_expiry(expires_in)
            return await self._call(self._sign, self._bucket.blob(key), expires_in)

    @staticmethod
    def _sign(blob: storage.Blob, expires_in: int) -> str:
        return blob.generate_signed_url(
            version="v4",
            expiration=timedelta(seconds=expires_in),
            method="GET",
        )

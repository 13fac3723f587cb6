# beycloud/storage/azure_provider.py
"""
Azure Blob Storage adapter implementation using azure-storage-blob.

One BlobServiceClient and one ContainerClient are created from the
connection string at construction and reused for every call. Signed URLs
are SAS tokens signed with the account key from the connection string.
"""

import logging
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from itertools import islice
from typing import Any, Optional, Union

from azure.core.exceptions import ResourceNotFoundError
from azure.storage.blob import (
    BlobSasPermissions,
    BlobServiceClient,
    ContentSettings,
    generate_blob_sas,
)

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
from beycloud.storage.configs import AzureConfig
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

# list_blobs page size ceiling enforced by the service
AZURE_PAGE_LIMIT = 5000


class AzureBlobStorage(CloudStorage):
    """Azure Blob Storage adapter bound to a single container."""

    def __init__(
        self,
        config: Union[AzureConfig, Mapping[str, Any]],
        timeout: Optional[float] = None,
    ):
        super().__init__(timeout=timeout)

        config = AzureConfig.coerce(config)
        config.validate()

        self._container_name = config.container.strip()
        self._service = BlobServiceClient.from_connection_string(config.connection_string)
        self._container = self._service.get_container_client(self._container_name)

        logger.info(f"Azure storage initialized: container={self._container_name}")

    @property
    def name(self) -> str:
        return ProviderTag.AZURE.value

    @property
    def container(self) -> str:
        return self._container_name

    def _is_not_found(self, exc: BaseException) -> bool:
        return isinstance(exc, ResourceNotFoundError)

    async def exists(self, key: str) -> bool:
        with self._operation(ExistenceCheckError, key):
            blob = self._container.get_blob_client(key)
            return bool(await self._call(blob.exists))

    async def upload_file(
        self,
        key: str,
        content: UploadContent,
        content_type: Optional[str] = None,
    ) -> str:
        """
        Upload content as a block blob, replacing any existing blob.

        Streams are passed to upload_blob as-is; the SDK reads them in
        blocks and commits the block list once every block is staged.
        """
        with self._operation(UploadError, key) as metrics:
            blob = self._container.get_blob_client(key)
            data = content if is_stream(content) else as_bytes(content)
            kwargs: dict[str, Any] = {"overwrite": True}
            if content_type:
                kwargs["content_settings"] = ContentSettings(content_type=content_type)

            await self._call(blob.upload_blob, data, **kwargs)
            if isinstance(data, bytes):
                metrics["size_bytes"] = len(data)

            return await self.get_signed_url(key)

    async def download_file(self, key: str) -> bytes:
        with self._operation(DownloadError, key) as metrics:
            blob = self._container.get_blob_client(key)
            data = await self._call(lambda: blob.download_blob().readall())
            metrics["size_bytes"] = len(data)
            return data

    async def delete_file(self, key: str) -> bool:
        with self._operation(DeleteError, key):
            blob = self._container.get_blob_client(key)
            await self._call(blob.delete_blob)
            logger.debug(f"Deleted from Azure: {key}")
            return True

    async def get_file(self, key: str) -> FileMetadata:
        with self._operation(MetadataError, key) as metrics:
            blob = self._container.get_blob_client(key)
            properties = await self._call(blob.get_blob_properties)
            data = await self.download_file(key)
            metrics["size_bytes"] = len(data)

            return FileMetadata(
                key=key,
                size=to_int_size(properties.size),
                last_modified=properties.last_modified,
                content_type=_content_type(properties),
                url=await self.get_signed_url(key),
                content=data,
            )

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
        pages = self._container.list_blobs(
            name_starts_with=prefix or None,
            results_per_page=min(max_keys, AZURE_PAGE_LIMIT),
        )
        return [
            FileMetadata(
                key=properties.name,
                size=to_int_size(properties.size),
                last_modified=properties.last_modified,
                content_type=_content_type(properties),
                url=self._sign(properties.name, DEFAULT_SIGNED_URL_EXPIRY),
            )
            for properties in islice(pages, max_keys)
        ]

    async def get_signed_url(self, key: str, expires_in: int = DEFAULT_SIGNED_URL_EXPIRY) -> str:
        """Read-only SAS URL, signed on the executor with the account key."""
        with self._operation(SignedUrlError, key):
            expires_in = self._validate_expiry(expires_in)
            return await self._call(self._sign, key, expires_in)

    def _sign(self, key: str, expires_in: int) -> str:
        account_key = getattr(self._service.credential, "account_key", None)
        if not account_key:
            raise ValueError("Connection string has no account key to sign SAS tokens with")

        blob = self._container.get_blob_client(key)
        sas = generate_blob_sas(
            account_name=self._service.account_name,
            container_name=self._container_name,
            blob_name=key,
            account_key=account_key,
            permission=BlobSasPermissions(read=True),
            expiry=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
        )
        return f"{blob.url}?{sas}"


def _content_type(properties: Any) -> Optional[str]:
    settings = getattr(properties, "content_settings", None)
    return getattr(settings, "content_type", None) if settings else None

# beycloud/storage/s3_provider.py
"""
S3 storage adapter implementation using boto3.

Supports:
- AWS S3
- S3-compatible services (MinIO, DigitalOcean Spaces, etc.)
"""

import logging
from collections.abc import Mapping
from typing import Any, Dict, Optional, Union

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

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
from beycloud.storage.configs import S3Config
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

NOT_FOUND_CODES = ("404", "NoSuchKey", "NotFound")

# list_objects_v2 never returns more than this per page
S3_PAGE_LIMIT = 1000


def _error_code(exc: BaseException) -> str:
    if isinstance(exc, ClientError):
        return str(exc.response.get("Error", {}).get("Code", ""))
    return ""


class S3Storage(CloudStorage):
    """
    S3/S3-compatible storage adapter.

    List entries carry no content type: list_objects_v2 does not report it
    and a HEAD per entry would multiply the cost of a listing, so
    ``content_type`` is None for entries returned by get_files_list.
    """

    def __init__(
        self,
        config: Union[S3Config, Mapping[str, Any]],
        timeout: Optional[float] = None,
    ):
        """
        Initialize S3 adapter.

        Args:
            config: S3Config (bucket required; region, endpoint and keys optional)
            timeout: Per-call deadline in seconds (None = no deadline)
        """
        super().__init__(timeout=timeout)

        config = S3Config.coerce(config)
        config.validate()

        self._bucket = config.bucket.strip()
        self._region = config.region or None
        self._endpoint_url = config.endpoint_url or None

        # Retries are left to botocore
        boto_config = Config(
            retries={"max_attempts": 3, "mode": "adaptive"},
            connect_timeout=5,
            read_timeout=30,
            signature_version="s3v4",
        )

        self._client = boto3.client(
            "s3",
            endpoint_url=self._endpoint_url,
            region_name=self._region,
            aws_access_key_id=config.access_key_id or None,
            aws_secret_access_key=config.secret_access_key or None,
            config=boto_config,
        )

        logger.info(f"S3 storage initialized: bucket={self._bucket}")

    @property
    def name(self) -> str:
        return ProviderTag.S3.value

    @property
    def bucket(self) -> str:
        return self._bucket

    def _is_not_found(self, exc: BaseException) -> bool:
        return _error_code(exc) in NOT_FOUND_CODES

    async def exists(self, key: str) -> bool:
        """Check if object exists in S3."""
        with self._operation(ExistenceCheckError, key):
            try:
                await self._call(self._client.head_object, Bucket=self._bucket, Key=key)
                return True
            except ClientError as e:
                if self._is_not_found(e):
                    return False
                raise

    async def upload_file(
        self,
        key: str,
        content: UploadContent,
        content_type: Optional[str] = None,
    ) -> str:
        """
        Upload content to S3.

        Bytes go out in a single put_object; streams go through
        upload_fileobj, which reads and sends multipart chunks.
        """
        with self._operation(UploadError, key) as metrics:
            if is_stream(content):
                extra_args: Dict[str, Any] = {}
                if content_type:
                    extra_args["ContentType"] = content_type
                await self._call(
                    self._client.upload_fileobj,
                    content,
                    self._bucket,
                    key,
                    ExtraArgs=extra_args or None,
                )
            else:
                body = as_bytes(content)
                params: Dict[str, Any] = {"Bucket": self._bucket, "Key": key, "Body": body}
                if content_type:
                    params["ContentType"] = content_type
                await self._call(self._client.put_object, **params)
                metrics["size_bytes"] = len(body)

            return await self.get_signed_url(key)

    async def download_file(self, key: str) -> bytes:
        """Download full object content from S3."""
        with self._operation(DownloadError, key) as metrics:
            data = await self._call(self._read_object, key)
            metrics["size_bytes"] = len(data)
            return data

    def _read_object(self, key: str) -> bytes:
        response = self._client.get_object(Bucket=self._bucket, Key=key)
        body = response["Body"]
        try:
            return body.read()
        finally:
            body.close()

    async def delete_file(self, key: str) -> bool:
        """
        Delete object from S3.

        delete_object succeeds for missing keys, so existence is checked
        first; a 404 from head_object surfaces as DeleteError.
        """
        with self._operation(DeleteError, key):
            await self._call(self._client.head_object, Bucket=self._bucket, Key=key)
            await self._call(self._client.delete_object, Bucket=self._bucket, Key=key)
            logger.debug(f"Deleted from S3: {key}")
            return True

    async def get_file(self, key: str) -> FileMetadata:
        """Get object metadata, content and a fresh signed URL."""
        with self._operation(MetadataError, key) as metrics:
            head = await self._call(self._client.head_object, Bucket=self._bucket, Key=key)
            data = await self.download_file(key)
            metrics["size_bytes"] = len(data)

            return FileMetadata(
                key=key,
                size=to_int_size(head.get("ContentLength")),
                last_modified=head.get("LastModified"),
                content_type=head.get("ContentType"),
                url=await self.get_signed_url(key),
                content=data,
            )

    async def get_files_list(
        self,
        max_keys: int = DEFAULT_MAX_KEYS,
        prefix: Optional[str] = None,
    ) -> list[FileMetadata]:
        """List objects in key order as returned by list_objects_v2."""
        with self._operation(ListError, prefix) as metrics:
            max_keys = self._validate_max_keys(max_keys)
            if max_keys == 0:
                return []

            files = await self._call(self._list_files, max_keys, prefix)
            metrics["items_returned"] = len(files)
            return files

    def _list_files(self, max_keys: int, prefix: Optional[str]) -> list[FileMetadata]:
        return [
            FileMetadata(
                key=obj["Key"],
                size=to_int_size(obj.get("Size")),
                last_modified=obj.get("LastModified"),
                content_type=None,
                url=self._presign(obj["Key"], DEFAULT_SIGNED_URL_EXPIRY),
            )
            for obj in self._list_objects(max_keys, prefix)
        ]

    def _list_objects(self, max_keys: int, prefix: Optional[str]) -> list[dict]:
        params: Dict[str, Any] = {
            "Bucket": self._bucket,
            "PaginationConfig": {
                "MaxItems": max_keys,
                "PageSize": min(max_keys, S3_PAGE_LIMIT),
            },
        }
        if prefix:
            params["Prefix"] = prefix

        objects: list[dict] = []
        paginator = self._client.get_paginator("list_objects_v2")
        for page in paginator.paginate(**params):
            objects.extend(page.get("Contents", []))
            if len(objects) >= max_keys:
                break
        return objects[:max_keys]

    async def get_signed_url(self, key: str, expires_in: int = DEFAULT_SIGNED_URL_EXPIRY) -> str:
        """Presign a get_object request on the executor; no network call is made."""
        with self._operation(SignedUrlError, key):
            expires_in = self._validate_expiry(expires_in)
            return await self._call(self._presign, key, expires_in)

    def _presign(self, key: str, expires_in: int) -> str:
        return self._client.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": self._bucket, "Key": key},
            ExpiresIn=expires_in,
        )

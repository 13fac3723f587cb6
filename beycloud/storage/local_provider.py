# beycloud/storage/local_provider.py
"""
Local filesystem storage adapter for development and testing.

Mimics a bucket but stores files locally. Signed URLs are HMAC-SHA256
signed and can be checked with verify_signed_url, so URL expiry behaves
like a cloud backend's.
NOT for production use.
"""

import hashlib
import hmac
import json
import logging
import os
import tempfile
import time
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, BinaryIO, Optional, Union
from urllib.parse import parse_qs, quote, urlencode

from beycloud.storage.base import (
    DEFAULT_MAX_KEYS,
    DEFAULT_SIGNED_URL_EXPIRY,
    CloudStorage,
    FileMetadata,
    ProviderTag,
    UploadContent,
    as_bytes,
    is_stream,
)
from beycloud.storage.configs import LocalConfig
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

DEFAULT_CONTENT_TYPE = "application/octet-stream"
METADATA_SUFFIX = ".meta.json"
NOT_FOUND_MESSAGE = "The specified key does not exist."
COPY_BUFFER_SIZE = 1024 * 1024

# Partial writes are staged beside the target under this name prefix
TEMP_PREFIX = ".upload-"


class LocalStorage(CloudStorage):
    """
    Local filesystem storage adapter.

    Stores each object at base_path/key with a sidecar JSON file holding
    its content type. Keys are listed in lexicographic order.

    Keys whose last segment ends in ".meta.json" or starts with ".upload-"
    are reserved for sidecars and staged writes and are rejected.
    """

    def __init__(
        self,
        config: Union[LocalConfig, Mapping[str, Any]],
        timeout: Optional[float] = None,
    ):
        super().__init__(timeout=timeout)

        config = LocalConfig.coerce(config)
        config.validate()

        self._base_path = Path(config.base_path).resolve()
        self._base_path.mkdir(parents=True, exist_ok=True)
        self._secret = config.signing_secret.encode("utf-8")
        self._base_url = config.base_url.rstrip("/") if config.base_url else None

        logger.info(f"Local storage initialized: {self._base_path}")

    @property
    def name(self) -> str:
        return ProviderTag.LOCAL.value

    @property
    def base_path(self) -> Path:
        return self._base_path

    def _get_path(self, key: str) -> Path:
        """Get filesystem path for key, with path traversal protection."""
        name = key.rsplit("/", 1)[-1] if key else ""
        if not name or name.endswith(METADATA_SUFFIX) or name.startswith(TEMP_PREFIX):
            raise ValueError(f"Invalid key: {key!r}")
        resolved = (self._base_path / key).resolve()
        if not resolved.is_relative_to(self._base_path) or resolved == self._base_path:
            raise ValueError("Path traversal detected")
        return resolved

    def _get_metadata_path(self, key: str) -> Path:
        path = self._get_path(key)
        return path.with_name(path.name + METADATA_SUFFIX)

    def _existing_path(self, key: str) -> Path:
        path = self._get_path(key)
        if not path.is_file():
            raise FileNotFoundError(NOT_FOUND_MESSAGE)
        return path

    # -------------------------------------------------------------------------
    # Capability set
    # -------------------------------------------------------------------------

    async def exists(self, key: str) -> bool:
        with self._operation(ExistenceCheckError, key):
            return await self._call(lambda: self._get_path(key).is_file())

    async def upload_file(
        self,
        key: str,
        content: UploadContent,
        content_type: Optional[str] = None,
    ) -> str:
        with self._operation(UploadError, key) as metrics:
            metrics["size_bytes"] = await self._call(self._write, key, content, content_type)
            return await self.get_signed_url(key)

    def _write(self, key: str, content: UploadContent, content_type: Optional[str]) -> int:
        """Write to a temp file, fsync, then atomically replace the target."""
        file_path = self._get_path(key)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=file_path.parent, prefix=TEMP_PREFIX)
        try:
            with os.fdopen(fd, "wb") as out:
                if is_stream(content):
                    size = _copy_stream(content, out)
                else:
                    data = as_bytes(content)
                    out.write(data)
                    size = len(data)
                out.flush()
                os.fsync(out.fileno())
            os.replace(tmp_name, file_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        meta = {
            "content_type": content_type or DEFAULT_CONTENT_TYPE,
            "uploaded_at": datetime.now(timezone.utc).isoformat(),
        }
        self._get_metadata_path(key).write_text(json.dumps(meta, indent=2))

        logger.debug(f"Uploaded to local: {key} ({size} bytes)")
        return size

    async def download_file(self, key: str) -> bytes:
        with self._operation(DownloadError, key) as metrics:
            data = await self._call(lambda: self._existing_path(key).read_bytes())
            metrics["size_bytes"] = len(data)
            return data

    async def delete_file(self, key: str) -> bool:
        with self._operation(DeleteError, key):
            await self._call(self._delete, key)
            return True

    def _delete(self, key: str) -> None:
        self._existing_path(key).unlink()
        self._get_metadata_path(key).unlink(missing_ok=True)
        logger.debug(f"Deleted from local: {key}")

    async def get_file(self, key: str) -> FileMetadata:
        with self._operation(MetadataError, key) as metrics:
            stat = await self._call(lambda: self._existing_path(key).stat())
            content_type = await self._call(self._load_content_type, key)
            data = await self.download_file(key)
            metrics["size_bytes"] = len(data)

            return FileMetadata(
                key=key,
                size=stat.st_size,
                last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                content_type=content_type,
                url=await self.get_signed_url(key),
                content=data,
            )

    def _load_content_type(self, key: str) -> Optional[str]:
        """Content type from the sidecar file, if present and readable."""
        meta_path = self._get_metadata_path(key)
        if not meta_path.exists():
            return None
        try:
            return json.loads(meta_path.read_text()).get("content_type")
        except (json.JSONDecodeError, AttributeError) as e:
            logger.warning(f"Failed to load metadata for {key}: {e}")
            return None

    async def get_files_list(
        self,
        max_keys: int = DEFAULT_MAX_KEYS,
        prefix: Optional[str] = None,
    ) -> list[FileMetadata]:
        with self._operation(ListError, prefix) as metrics:
            max_keys = self._validate_max_keys(max_keys)
            files = await self._call(self._list, max_keys, prefix)
            metrics["items_returned"] = len(files)
            return files

    def _list(self, max_keys: int, prefix: Optional[str]) -> list[FileMetadata]:
        keys = sorted(
            path.relative_to(self._base_path).as_posix()
            for path in self._base_path.rglob("*")
            if path.is_file()
            and not path.name.endswith(METADATA_SUFFIX)
            and not path.name.startswith(TEMP_PREFIX)
        )
        if prefix:
            keys = [key for key in keys if key.startswith(prefix)]

        files = []
        for key in keys[:max_keys]:
            stat = self._get_path(key).stat()
            files.append(
                FileMetadata(
                    key=key,
                    size=stat.st_size,
                    last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                    content_type=self._load_content_type(key),
                    url=self._sign(key, DEFAULT_SIGNED_URL_EXPIRY),
                )
            )
        return files

    async def get_signed_url(self, key: str, expires_in: int = DEFAULT_SIGNED_URL_EXPIRY) -> str:
        with self._operation(SignedUrlError, key):
            expires_in = self._validate_expiry(expires_in)
            return self._sign(key, expires_in)

    # -------------------------------------------------------------------------
    # URL signing
    # -------------------------------------------------------------------------

    def _resource_url(self, key: str) -> str:
        if self._base_url:
            return f"{self._base_url}/{quote(key)}"
        return self._get_path(key).as_uri()

    def _signature(self, resource: str, expires: int) -> str:
        message = f"{resource}\n{expires}".encode("utf-8")
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()

    def _sign(self, key: str, expires_in: int) -> str:
        resource = self._resource_url(key)
        expires = int(time.time()) + expires_in
        query = urlencode({"expires": expires, "signature": self._signature(resource, expires)})
        return f"{resource}?{query}"

    def verify_signed_url(self, url: str, now: Optional[float] = None) -> bool:
        """True if url was signed by this adapter and has not expired."""
        resource, _, query = url.partition("?")
        params = parse_qs(query)
        try:
            expires = int(params["expires"][0])
            signature = params["signature"][0]
        except (KeyError, IndexError, ValueError):
            return False

        expected = self._signature(resource, expires)
        if not hmac.compare_digest(expected, signature):
            return False
        return (now if now is not None else time.time()) < expires


def _copy_stream(source: BinaryIO, target: BinaryIO) -> int:
    """Copy in fixed-size chunks; returns bytes written."""
    size = 0
    while True:
        chunk = source.read(COPY_BUFFER_SIZE)
        if not chunk:
            break
        target.write(chunk)
        size += len(chunk)
    return size

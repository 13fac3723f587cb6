# beycloud/storage/base.py
"""
Storage capability set shared by every backend adapter.

Design principles:
- One adapter per backend, selected once at construction; callers never
  branch on provider identity
- Configuration is validated in the constructor, before any SDK client exists
- Backend client handles are created once and reused for every call
- Every backend failure surfaces as an operation-scoped StorageError
- Vendor SDKs are blocking, so their calls run on the loop's executor
"""

import asyncio
import functools
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, BinaryIO, Optional, TypeVar, Union

from beycloud.logging_config import log_storage_operation
from beycloud.storage.errors import (
    ConfigurationError,
    OperationTimeoutError,
    StorageError,
)

T = TypeVar("T")

DEFAULT_SIGNED_URL_EXPIRY = 3600
DEFAULT_MAX_KEYS = 1000

# In-memory payload or a readable binary stream
UploadContent = Union[bytes, bytearray, memoryview, BinaryIO]


class ProviderTag(str, Enum):
    """Supported storage backends."""
    AZURE = "azure"
    GCS = "gcs"
    S3 = "s3"
    LOCAL = "local"

    @classmethod
    def parse(cls, value: Union["ProviderTag", str]) -> "ProviderTag":
        if isinstance(value, cls):
            return value
        name = str(value or "").lower().strip()
        try:
            return cls(name)
        except ValueError:
            available = ", ".join(tag.value for tag in cls)
            raise ConfigurationError(
                f"Unknown storage provider: {name or repr(value)}. Available: {available}"
            ) from None


@dataclass
class FileMetadata:
    """
    Metadata for one stored object, built fresh on every call.

    ``content`` is only populated by ``get_file``; list entries leave it None.
    """
    key: str
    size: int
    last_modified: Optional[datetime]
    content_type: Optional[str]
    url: str
    content: Optional[bytes] = field(default=None, repr=False)


def is_stream(content: UploadContent) -> bool:
    """True for file-like objects that should be forwarded incrementally."""
    return not isinstance(content, (bytes, bytearray, memoryview)) and hasattr(content, "read")


def as_bytes(content: UploadContent) -> bytes:
    if isinstance(content, bytes):
        return content
    if isinstance(content, (bytearray, memoryview)):
        return bytes(content)
    raise TypeError(f"Unsupported upload content type: {type(content).__name__}")


def to_int_size(value: Any) -> int:
    """Normalize a backend-reported size (int or numeric text) to bytes."""
    if value is None or value == "":
        return 0
    return int(value)


class CloudStorage(ABC):
    """
    Abstract interface every storage backend implements.

    All operations are coroutines. Implementations must:
    - Overwrite on upload and return a fresh signed URL once the write is durable
    - Stream file-like uploads instead of reading them fully into memory
    - Raise DeleteError (not return False) when deleting a missing key
    - Preserve backend-native listing order
    - Sign a new URL on every request
    """

    def __init__(self, timeout: Optional[float] = None):
        if timeout is not None and timeout <= 0:
            raise ConfigurationError("Operation timeout must be a positive number of seconds")
        self._timeout = timeout

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider tag value (e.g., 'azure', 's3')."""
        pass

    @property
    def timeout(self) -> Optional[float]:
        return self._timeout

    # -------------------------------------------------------------------------
    # Capability set
    # -------------------------------------------------------------------------

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """True iff an object with this key is present."""
        pass

    @abstractmethod
    async def upload_file(
        self,
        key: str,
        content: UploadContent,
        content_type: Optional[str] = None,
    ) -> str:
        """
        Write content under key, replacing any existing object.

        Args:
            key: Object key within the bucket/container
            content: Bytes, or a readable binary stream forwarded in chunks
            content_type: MIME type stored with the object (backend default if None)

        Returns:
            Signed read URL for the new object
        """
        pass

    @abstractmethod
    async def download_file(self, key: str) -> bytes:
        """Return the full object content."""
        pass

    @abstractmethod
    async def delete_file(self, key: str) -> bool:
        """
        Delete the object.

        Returns:
            True once deleted; a missing key raises DeleteError
        """
        pass

    @abstractmethod
    async def get_file(self, key: str) -> FileMetadata:
        """Metadata, content and a fresh signed URL for one object."""
        pass

    @abstractmethod
    async def get_files_list(
        self,
        max_keys: int = DEFAULT_MAX_KEYS,
        prefix: Optional[str] = None,
    ) -> list[FileMetadata]:
        """
        List up to max_keys objects whose keys start with prefix.

        Entries are returned in backend order and are not re-sorted.
        """
        pass

    @abstractmethod
    async def get_signed_url(self, key: str, expires_in: int = DEFAULT_SIGNED_URL_EXPIRY) -> str:
        """Temporary read URL valid for expires_in seconds from now."""
        pass

    # -------------------------------------------------------------------------
    # Helpers for implementations
    # -------------------------------------------------------------------------

    def _is_not_found(self, exc: BaseException) -> bool:
        """Whether a backend exception means the key does not exist."""
        return isinstance(exc, FileNotFoundError)

    async def _call(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run a blocking SDK call on the default executor, bounded by the timeout."""
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(None, functools.partial(func, *args, **kwargs))
        if self._timeout is None:
            return await future
        try:
            return await asyncio.wait_for(future, timeout=self._timeout)
        except asyncio.TimeoutError:
            raise OperationTimeoutError(self._timeout) from None

    @contextmanager
    def _operation(self, error_cls: type[StorageError], key: Optional[str] = None) -> Iterator[dict]:
        """
        Instrument one operation and normalize its failures into error_cls.

        Usage:
            with self._operation(DownloadError, key) as metrics:
                data = await self._call(...)
                metrics["size_bytes"] = len(data)
        """
        with log_storage_operation(error_cls.operation.value, key, self.name) as metrics:
            try:
                yield metrics
            except error_cls:
                raise
            except Exception as e:
                raise error_cls.from_exception(
                    e, key=key, not_found=self._is_not_found(e)
                ) from e

    @staticmethod
    def _validate_expiry(expires_in: int) -> int:
        if isinstance(expires_in, bool) or int(expires_in) != expires_in or expires_in <= 0:
            raise ValueError(f"expires_in must be a positive number of seconds, got {expires_in!r}")
        return int(expires_in)

    @staticmethod
    def _validate_max_keys(max_keys: int) -> int:
        if isinstance(max_keys, bool) or int(max_keys) != max_keys or max_keys < 0:
            raise ValueError(f"max_keys must be a non-negative integer, got {max_keys!r}")
        return int(max_keys)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(provider={self.name!r})"


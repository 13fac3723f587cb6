# beycloud/storage/errors.py
"""
Operation-scoped error taxonomy for storage adapters.

Every backend failure is re-raised as exactly one of the operation errors
below, regardless of which vendor SDK produced it. The vendor's message is
kept verbatim in ``detail`` and the original exception in ``cause``, so
callers can branch on the failed operation without knowing the backend.
"""

from enum import Enum
from typing import Optional


class StorageOperation(str, Enum):
    """Operation families surfaced to callers."""
    CONFIGURE = "configure"
    EXISTS = "exists"
    UPLOAD = "upload"
    DOWNLOAD = "download"
    DELETE = "delete"
    METADATA = "metadata"
    LIST = "list"
    SIGNED_URL = "signed_url"


class StorageError(Exception):
    """Base class for all storage failures."""

    operation: StorageOperation = StorageOperation.CONFIGURE
    prefix: str = ""

    def __init__(
        self,
        detail: str,
        *,
        cause: Optional[BaseException] = None,
        key: Optional[str] = None,
        not_found: bool = False,
    ):
        self.detail = detail
        self.cause = cause
        self.key = key
        self.not_found = not_found
        super().__init__(f"{self.prefix}{detail}")

    @classmethod
    def from_exception(
        cls,
        exc: BaseException,
        *,
        key: Optional[str] = None,
        not_found: bool = False,
    ) -> "StorageError":
        """Wrap a backend exception, keeping its message verbatim."""
        if isinstance(exc, StorageError):
            return cls(exc.detail, cause=exc.cause, key=key, not_found=exc.not_found)
        return cls(describe_exception(exc), cause=exc, key=key, not_found=not_found)


class ConfigurationError(StorageError):
    """Raised synchronously when an adapter cannot be constructed."""


class MissingConfigurationError(ConfigurationError):
    """A required configuration field is empty or absent."""

    def __init__(self, field: str, label: str):
        self.field = field
        super().__init__(f"{label} parameter must be provided")


class ConfigurationMismatchError(ConfigurationError):
    """The configuration does not belong to the requested provider."""

    def __init__(self, provider: str, label: str):
        self.provider = provider
        super().__init__(
            f"{label} credentials are required. Configuration is incorrect or must be provided"
        )


class ExistenceCheckError(StorageError):
    operation = StorageOperation.EXISTS
    prefix = "Failed to check if file exists: "


class UploadError(StorageError):
    operation = StorageOperation.UPLOAD
    prefix = "Failed to upload file: "


class DownloadError(StorageError):
    operation = StorageOperation.DOWNLOAD
    prefix = "Failed to download file: "


class DeleteError(StorageError):
    operation = StorageOperation.DELETE
    prefix = "Failed to delete file: "


class MetadataError(StorageError):
    operation = StorageOperation.METADATA
    prefix = "Failed to get file: "


class ListError(StorageError):
    operation = StorageOperation.LIST
    prefix = "Failed to list files: "


class SignedUrlError(StorageError):
    operation = StorageOperation.SIGNED_URL
    prefix = "Failed to generate signed URL: "


class OperationTimeoutError(Exception):
    """Raised inside an operation when its deadline elapses."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Operation timed out after {timeout:g}s")


def describe_exception(exc: BaseException) -> str:
    """Best human-readable message for an arbitrary exception."""
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    text = str(exc)
    if text:
        return text
    return type(exc).__name__

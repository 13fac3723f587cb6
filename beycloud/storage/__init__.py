# beycloud/storage/__init__.py
"""
Unified object storage over Azure Blob Storage, Google Cloud Storage,
Amazon S3 and the local filesystem.

Callers build one adapter with create_storage and use the same seven
coroutines whatever the backend. Cloud adapters live in their own modules
(azure_provider, gcs_provider, s3_provider) so a vendor SDK is imported
only when its backend is used.
"""

from beycloud.storage.base import (
    CloudStorage,
    FileMetadata,
    ProviderTag,
    UploadContent,
)
from beycloud.storage.configs import (
    AzureConfig,
    GCSConfig,
    LocalConfig,
    ProviderConfig,
    S3Config,
)
from beycloud.storage.errors import (
    ConfigurationError,
    ConfigurationMismatchError,
    DeleteError,
    DownloadError,
    ExistenceCheckError,
    ListError,
    MetadataError,
    MissingConfigurationError,
    SignedUrlError,
    StorageError,
    StorageOperation,
    UploadError,
)
from beycloud.storage.factory import (
    adapter_class,
    create_storage,
    get_storage_provider,
    reset_storage_provider,
    set_storage_provider,
)
from beycloud.storage.local_provider import LocalStorage

__all__ = [
    "CloudStorage",
    "FileMetadata",
    "ProviderTag",
    "UploadContent",
    "ProviderConfig",
    "AzureConfig",
    "GCSConfig",
    "S3Config",
    "LocalConfig",
    "LocalStorage",
    "StorageError",
    "StorageOperation",
    "ConfigurationError",
    "ConfigurationMismatchError",
    "MissingConfigurationError",
    "ExistenceCheckError",
    "UploadError",
    "DownloadError",
    "DeleteError",
    "MetadataError",
    "ListError",
    "SignedUrlError",
    "adapter_class",
    "create_storage",
    "get_storage_provider",
    "set_storage_provider",
    "reset_storage_provider",
]

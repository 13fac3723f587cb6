"""
beycloud: one async client surface over several object storage backends.

    from beycloud import AzureConfig, create_storage

    storage = create_storage("azure", AzureConfig(connection_string=..., container="uploads"))
    url = await storage.upload_file("skyline", data, "image/jpeg")
"""

from beycloud.storage import (
    AzureConfig,
    CloudStorage,
    ConfigurationError,
    ConfigurationMismatchError,
    DeleteError,
    DownloadError,
    ExistenceCheckError,
    FileMetadata,
    GCSConfig,
    ListError,
    LocalConfig,
    MetadataError,
    MissingConfigurationError,
    ProviderTag,
    S3Config,
    SignedUrlError,
    StorageError,
    StorageOperation,
    UploadError,
    create_storage,
)

__version__ = "0.1.0"

__all__ = [
    "CloudStorage",
    "FileMetadata",
    "ProviderTag",
    "AzureConfig",
    "GCSConfig",
    "S3Config",
    "LocalConfig",
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
    "create_storage",
]

# beycloud/storage/factory.py
"""
Factory functions for creating storage adapters.

create_storage is the only place that branches on provider identity.
"""

import logging
from collections.abc import Mapping
from typing import Any, Optional, Union

from beycloud.storage.base import CloudStorage, ProviderTag
from beycloud.storage.configs import ProviderConfig

logger = logging.getLogger(__name__)


def adapter_class(tag: ProviderTag) -> type[CloudStorage]:
    """
    Import and return the adapter class for tag.

    Vendor SDKs are only imported once their backend is selected.
    """
    if tag is ProviderTag.AZURE:
        from beycloud.storage.azure_provider import AzureBlobStorage
        return AzureBlobStorage
    if tag is ProviderTag.GCS:
        from beycloud.storage.gcs_provider import GCSStorage
        return GCSStorage
    if tag is ProviderTag.S3:
        from beycloud.storage.s3_provider import S3Storage
        return S3Storage
    from beycloud.storage.local_provider import LocalStorage
    return LocalStorage


# Global singleton instance
_storage_provider: Optional[CloudStorage] = None


def create_storage(
    provider: Union[ProviderTag, str],
    config: Union[ProviderConfig, Mapping[str, Any]],
    *,
    timeout: Optional[float] = None,
) -> CloudStorage:
    """
    Build a new storage adapter for provider.

    Args:
        provider: Provider tag ('azure', 'gcs', 's3', 'local')
        config: The matching config record, or a mapping of its fields
        timeout: Per-call deadline in seconds for backend calls

    Returns:
        A fresh CloudStorage adapter; adapters are never shared

    Raises:
        ConfigurationError: Unknown provider, config for another provider,
            or a missing required field
    """
    tag = ProviderTag.parse(provider)
    storage = adapter_class(tag)(config, timeout=timeout)
    logger.info(f"Storage provider initialized: {storage.name}")
    return storage


def get_storage_provider() -> CloudStorage:
    """
    Get or create the process-wide storage adapter from Settings.

    Environment:
        STORAGE_PROVIDER: 'azure', 'gcs', 's3' (default) or 'local'
    """
    global _storage_provider

    if _storage_provider is not None:
        return _storage_provider

    from beycloud.config import get_settings

    settings = get_settings()
    _storage_provider = create_storage(
        settings.STORAGE_PROVIDER,
        settings.provider_config(),
        timeout=settings.STORAGE_OPERATION_TIMEOUT,
    )
    return _storage_provider


def set_storage_provider(provider: CloudStorage) -> None:
    """
    Set a custom storage adapter (useful for testing).
    """
    global _storage_provider
    _storage_provider = provider


def reset_storage_provider() -> None:
    """
    Reset the storage adapter singleton (for testing).
    """
    global _storage_provider
    _storage_provider = None

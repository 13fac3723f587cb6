# beycloud/storage/configs.py
"""
Per-provider configuration records.

Each record carries exactly the fields one backend needs. Records are
immutable; to change credentials, build a new adapter from a new record.
"""

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any, ClassVar, Optional, Type, TypeVar, Union

from beycloud.storage.errors import ConfigurationMismatchError, MissingConfigurationError

C = TypeVar("C", bound="ProviderConfig")


@dataclass(frozen=True, repr=False)
class ProviderConfig:
    """Base class for provider configuration records."""

    provider: ClassVar[str] = ""

    # Human-readable provider name used in error messages
    provider_label: ClassVar[str] = "Storage"

    # Required field name -> label used in "<label> parameter must be provided"
    required_fields: ClassVar[Mapping[str, str]] = {}

    def __repr__(self) -> str:
        # Configs carry secrets; only expose field names.
        names = ", ".join(f.name for f in fields(self))
        return f"{type(self).__name__}({names})"

    @classmethod
    def coerce(cls: Type[C], config: Union["ProviderConfig", Mapping[str, Any], None]) -> C:
        """
        Return ``config`` as an instance of this record type.

        Mappings are accepted when every key is a field of this record.
        Anything else (including another provider's record) is a shape
        mismatch.
        """
        if isinstance(config, cls):
            return config
        if isinstance(config, Mapping):
            names = {f.name for f in fields(cls)}
            if config and set(config).issubset(names):
                return cls(**dict(config))
        raise ConfigurationMismatchError(cls.provider, cls.provider_label)

    def validate(self) -> None:
        """Raise MissingConfigurationError for the first empty required field."""
        for name, label in self.required_fields.items():
            value = getattr(self, name)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise MissingConfigurationError(name, label)


@dataclass(frozen=True, repr=False)
class AzureConfig(ProviderConfig):
    """Azure Blob Storage: connection string plus container name."""

    connection_string: Optional[str] = None
    container: Optional[str] = None

    provider: ClassVar[str] = "azure"
    provider_label: ClassVar[str] = "Azure"
    required_fields: ClassVar[Mapping[str, str]] = {
        "connection_string": "Connection String",
        "container": "Container",
    }


@dataclass(frozen=True, repr=False)
class GCSConfig(ProviderConfig):
    """Google Cloud Storage: bucket, project and service account key file."""

    bucket: Optional[str] = None
    project_id: Optional[str] = None
    key_file_path: Optional[str] = None

    provider: ClassVar[str] = "gcs"
    provider_label: ClassVar[str] = "Google Cloud Storage"
    required_fields: ClassVar[Mapping[str, str]] = {
        "bucket": "Bucket",
        "project_id": "Project",
        "key_file_path": "Key File Path",
    }


@dataclass(frozen=True, repr=False)
class S3Config(ProviderConfig):
    """
    Amazon S3 or an S3-compatible service.

    Only the bucket is required; credentials fall back to the boto3
    credential chain (env vars, shared config, instance roles).
    """

    bucket: Optional[str] = None
    region: Optional[str] = None
    endpoint_url: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None

    provider: ClassVar[str] = "s3"
    provider_label: ClassVar[str] = "S3"
    required_fields: ClassVar[Mapping[str, str]] = {"bucket": "Bucket"}


@dataclass(frozen=True, repr=False)
class LocalConfig(ProviderConfig):
    """
    Local filesystem backend for development and testing.

    ``base_url`` prefixes signed URLs (e.g. a dev server mount point);
    without it, signed URLs are ``file://`` URIs.
    """

    base_path: Optional[str] = None
    signing_secret: Optional[str] = None
    base_url: Optional[str] = None

    provider: ClassVar[str] = "local"
    provider_label: ClassVar[str] = "Local storage"
    required_fields: ClassVar[Mapping[str, str]] = {
        "base_path": "Base Path",
        "signing_secret": "Signing Secret",
    }

# beycloud/config.py
"""
Centralized configuration with validation.

Uses pydantic-settings to load storage settings from the environment (and
an optional .env file). Adapters never read the environment themselves:
Settings.provider_config() turns these values into a config record.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from beycloud.storage.base import ProviderTag
from beycloud.storage.configs import (
    AzureConfig,
    GCSConfig,
    LocalConfig,
    ProviderConfig,
    S3Config,
)
from beycloud.storage.errors import ConfigurationError


class Settings(BaseSettings):
    """Storage settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Provider selection
    STORAGE_PROVIDER: str = Field(
        default="s3",
        description="Storage provider: azure, gcs, s3, local",
    )
    STORAGE_OPERATION_TIMEOUT: float | None = Field(
        default=None,
        description="Deadline in seconds for each backend call (unset = none)",
    )

    # Azure Blob Storage
    AZURE_CONNECTION_STRING: str | None = None
    AZURE_CONTAINER: str | None = None

    # Google Cloud Storage
    GCS_BUCKET: str | None = None
    GCS_PROJECT_ID: str | None = None
    GCS_KEY_FILE_PATH: str | None = None

    # Amazon S3 / S3-compatible
    S3_BUCKET: str | None = None
    S3_REGION: str | None = None
    S3_ENDPOINT_URL: str | None = None
    AWS_ACCESS_KEY_ID: str | None = None
    AWS_SECRET_ACCESS_KEY: str | None = None

    # Local filesystem
    LOCAL_STORAGE_PATH: str = Field(
        default="./storage",
        description="Path for local storage provider",
    )
    LOCAL_SIGNING_SECRET: str | None = Field(
        default=None,
        description="HMAC secret for local signed URLs",
    )
    LOCAL_BASE_URL: str | None = Field(
        default=None,
        description="URL prefix for local signed URLs (file:// URIs if unset)",
    )

    # Upload intake
    UPLOAD_MAX_BYTES: int = Field(
        default=5 * 1024 * 1024,
        description="Largest accepted upload payload in bytes",
    )
    UPLOAD_ALLOWED_TYPES: str = Field(
        default="image/jpeg,image/png,application/pdf",
        description="Comma-separated list of accepted upload content types",
    )

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Log level")
    LOG_JSON: bool = Field(default=False, description="Emit single-line JSON logs")

    @field_validator("STORAGE_PROVIDER")
    @classmethod
    def normalize_provider(cls, v: str) -> str:
        """Reject unknown providers at startup rather than at first use."""
        try:
            return ProviderTag.parse(v).value
        except ConfigurationError as e:
            raise ValueError(str(e)) from e

    @field_validator("STORAGE_OPERATION_TIMEOUT", mode="before")
    @classmethod
    def empty_timeout_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def allowed_upload_types(self) -> frozenset[str]:
        return frozenset(t.strip().lower() for t in self.UPLOAD_ALLOWED_TYPES.split(",") if t.strip())

    def provider_config(self) -> ProviderConfig:
        """Config record for the selected STORAGE_PROVIDER."""
        tag = ProviderTag.parse(self.STORAGE_PROVIDER)
        if tag is ProviderTag.AZURE:
            return AzureConfig(
                connection_string=self.AZURE_CONNECTION_STRING,
                container=self.AZURE_CONTAINER,
            )
        if tag is ProviderTag.GCS:
            return GCSConfig(
                bucket=self.GCS_BUCKET,
                project_id=self.GCS_PROJECT_ID,
                key_file_path=self.GCS_KEY_FILE_PATH,
            )
        if tag is ProviderTag.S3:
            return S3Config(
                bucket=self.S3_BUCKET,
                region=self.S3_REGION,
                endpoint_url=self.S3_ENDPOINT_URL,
                access_key_id=self.AWS_ACCESS_KEY_ID,
                secret_access_key=self.AWS_SECRET_ACCESS_KEY,
            )
        return LocalConfig(
            base_path=self.LOCAL_STORAGE_PATH,
            signing_secret=self.LOCAL_SIGNING_SECRET,
            base_url=self.LOCAL_BASE_URL,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings. Call at startup to validate config."""
    return Settings()

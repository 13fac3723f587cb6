"""
Unit tests for environment-driven settings.
"""

import pytest
from pydantic import ValidationError

from beycloud.config import Settings, get_settings
from beycloud.storage import AzureConfig, GCSConfig, LocalConfig, S3Config


def _settings(**values) -> Settings:
    return Settings(_env_file=None, **values)


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("STORAGE_PROVIDER", raising=False)
        monkeypatch.delenv("STORAGE_OPERATION_TIMEOUT", raising=False)
        settings = _settings()

        assert settings.STORAGE_PROVIDER == "s3"
        assert settings.STORAGE_OPERATION_TIMEOUT is None
        assert settings.UPLOAD_MAX_BYTES == 5 * 1024 * 1024

    def test_provider_is_normalized(self):
        assert _settings(STORAGE_PROVIDER=" GCS ").STORAGE_PROVIDER == "gcs"

    def test_unknown_provider_rejected(self):
        with pytest.raises(ValidationError, match="Unknown storage provider"):
            _settings(STORAGE_PROVIDER="dropbox")

    def test_blank_timeout_is_none(self):
        assert _settings(STORAGE_OPERATION_TIMEOUT="").STORAGE_OPERATION_TIMEOUT is None
        assert _settings(STORAGE_OPERATION_TIMEOUT="7.5").STORAGE_OPERATION_TIMEOUT == 7.5

    def test_allowed_upload_types(self):
        settings = _settings(UPLOAD_ALLOWED_TYPES="image/PNG, application/pdf,,")
        assert settings.allowed_upload_types == frozenset({"image/png", "application/pdf"})

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("STORAGE_PROVIDER", "azure")
        monkeypatch.setenv("AZURE_CONTAINER", "media")

        settings = Settings(_env_file=None)

        assert settings.STORAGE_PROVIDER == "azure"
        assert settings.AZURE_CONTAINER == "media"

    def test_get_settings_is_cached(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert get_settings() is get_settings()


class TestProviderConfig:
    """Settings.provider_config builds the record for the selected provider."""

    def test_azure(self):
        config = _settings(
            STORAGE_PROVIDER="azure",
            AZURE_CONNECTION_STRING="UseDevelopmentStorage=true",
            AZURE_CONTAINER="media",
        ).provider_config()

        assert config == AzureConfig(connection_string="UseDevelopmentStorage=true", container="media")

    def test_gcs(self):
        config = _settings(
            STORAGE_PROVIDER="gcs",
            GCS_BUCKET="media",
            GCS_PROJECT_ID="proj",
            GCS_KEY_FILE_PATH="/keys/sa.json",
        ).provider_config()

        assert config == GCSConfig(bucket="media", project_id="proj", key_file_path="/keys/sa.json")

    def test_s3(self):
        config = _settings(
            STORAGE_PROVIDER="s3",
            S3_BUCKET="media",
            S3_ENDPOINT_URL="http://localhost:9000",
            AWS_ACCESS_KEY_ID="minio",
            AWS_SECRET_ACCESS_KEY="minio123",
        ).provider_config()

        assert isinstance(config, S3Config)
        assert config.bucket == "media"
        assert config.endpoint_url == "http://localhost:9000"
        assert config.access_key_id == "minio"

    def test_local(self):
        config = _settings(
            STORAGE_PROVIDER="local",
            LOCAL_STORAGE_PATH="/srv/files",
            LOCAL_SIGNING_SECRET="s",
        ).provider_config()

        assert config == LocalConfig(base_path="/srv/files", signing_secret="s")

    def test_repr_hides_secrets(self):
        config = _settings(
            STORAGE_PROVIDER="s3",
            S3_BUCKET="media",
            AWS_SECRET_ACCESS_KEY="do-not-print",
        ).provider_config()

        assert "do-not-print" not in repr(config)
        assert "secret_access_key" in repr(config)

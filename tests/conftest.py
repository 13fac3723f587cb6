# tests/conftest.py
"""
Pytest configuration and fixtures.
"""

import pytest

from beycloud.config import get_settings
from beycloud.storage import LocalConfig, reset_storage_provider
from beycloud.storage.local_provider import LocalStorage

SIGNING_SECRET = "test-signing-secret"


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: tests against real cloud backends (deselect with '-m \"not integration\"')",
    )


@pytest.fixture(autouse=True)
def _reset_singletons():
    """Each test starts without a cached storage adapter or settings."""
    reset_storage_provider()
    get_settings.cache_clear()
    yield
    reset_storage_provider()
    get_settings.cache_clear()


@pytest.fixture
def local_storage(tmp_path):
    """Local adapter rooted in a per-test temp directory."""
    return LocalStorage(LocalConfig(base_path=str(tmp_path / "bucket"), signing_secret=SIGNING_SECRET))


@pytest.fixture
def skyline_bytes():
    """Stand-in for the 383767-byte skyline.jpg sample."""
    header = b"\xff\xd8\xff\xe0"
    return header + bytes(i % 251 for i in range(383767 - len(header)))

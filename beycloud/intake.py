# beycloud/intake.py
"""
Upload intake checks applied before content reaches a storage adapter.

Payloads are held in memory, capped at a fixed size and restricted to an
allow-list of content types. Adapters trust whatever passes here and do no
validation of their own.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from beycloud.storage.base import CloudStorage

logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024
DEFAULT_ALLOWED_CONTENT_TYPES = frozenset({"image/jpeg", "image/png", "application/pdf"})


class IntakeError(Exception):
    """Base class for rejected uploads."""


class PayloadTooLargeError(IntakeError):
    """Payload exceeds the size ceiling."""

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"File too large: {size} bytes exceeds the {limit} byte limit")


class UnsupportedContentTypeError(IntakeError):
    """Declared content type is not on the allow-list."""

    def __init__(self, content_type: Optional[str]):
        self.content_type = content_type
        super().__init__(f"Unsupported file type: {content_type or 'unknown'}")


@dataclass(frozen=True)
class UploadIntake:
    """Size and content-type gate for in-memory uploads."""

    max_size_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    allowed_content_types: frozenset[str] = field(default=DEFAULT_ALLOWED_CONTENT_TYPES)

    @classmethod
    def from_settings(cls, settings) -> "UploadIntake":
        return cls(
            max_size_bytes=settings.UPLOAD_MAX_BYTES,
            allowed_content_types=settings.allowed_upload_types,
        )

    def validate(self, content: bytes, content_type: Optional[str]) -> None:
        """Raise IntakeError if the upload must be rejected."""
        normalized = (content_type or "").split(";")[0].strip().lower()
        if normalized not in self.allowed_content_types:
            raise UnsupportedContentTypeError(content_type)
        if len(content) > self.max_size_bytes:
            raise PayloadTooLargeError(len(content), self.max_size_bytes)

    async def accept(
        self,
        storage: CloudStorage,
        key: str,
        content: bytes,
        content_type: str,
    ) -> str:
        """
        Validate an upload and hand it to storage.

        Returns:
            Signed URL from storage.upload_file
        """
        try:
            self.validate(content, content_type)
        except IntakeError as e:
            logger.info(f"Upload rejected for {key}: {e}")
            raise
        return await storage.upload_file(key, content, content_type)

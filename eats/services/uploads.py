"""
Upload Storage

Stores uploaded images (restaurant covers, dish photos) on local disk
and returns the public URL they are served from.
"""

import logging
import re
import time
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from eats.core.config import get_settings

logger = logging.getLogger(__name__)

UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class UploadService:
    """Writes blobs under the upload directory."""

    def __init__(self, directory: Optional[str] = None, base_url: Optional[str] = None):
        settings = get_settings()
        self.directory = Path(directory or settings.upload_directory)
        self.base_url = (base_url or settings.app_base_url).rstrip("/")

    def _ensure_directory(self) -> None:
        if not self.directory.exists():
            self.directory.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created upload directory: {self.directory}")

    def save(self, filename: str, content: bytes) -> str:
        """
        Store ``content`` and return its public URL.

        The stored name is prefixed with the current time in milliseconds so
        repeated uploads of the same file never overwrite each other.
        """
        self._ensure_directory()

        safe_name = UNSAFE_CHARS.sub("_", Path(filename).name) or "upload"
        object_name = f"{int(time.time() * 1000)}{safe_name}"
        (self.directory / object_name).write_bytes(content)

        logger.info(f"Stored upload {object_name} ({len(content)} bytes)")
        return f"{self.base_url}/uploads/{quote(object_name)}"

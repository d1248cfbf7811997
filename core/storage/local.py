"""Local file storage for candidate CV files."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from core.exceptions import StorageFailure

logger = logging.getLogger(__name__)


class LocalStorage:
    """Local file storage handler."""

    def __init__(self, base_path: str = "./storage"):
        """
        Initialize local storage.

        Args:
            base_path: Base directory for file storage
        """
        self.base_path = Path(base_path).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        file_path = (self.base_path / key).resolve()
        # Keys must stay inside the storage root
        if not file_path.is_relative_to(self.base_path):
            raise StorageFailure(f"Invalid storage key {key}", key=key)
        return file_path

    def _write(self, file_path: Path, data: bytes) -> None:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_bytes(data)

    async def upload(self, key: str, data: bytes, content_type: Optional[str] = None) -> str:
        """
        Save file under ``key`` and return its file URI.

        Raises:
            StorageFailure: If the file could not be written
        """
        file_path = self._path(key)
        try:
            await asyncio.to_thread(self._write, file_path, data)
        except OSError as exc:
            logger.error(f"Failed to save file {file_path}: {exc}")
            raise StorageFailure(f"Failed to upload file {key}", key=key) from exc

        logger.info(f"Saved file to {file_path}")
        return file_path.as_uri()

    async def delete(self, key: str) -> None:
        """
        Delete file from local storage. Missing files are not an error.

        Raises:
            StorageFailure: If the file exists but could not be removed
        """
        file_path = self._path(key)
        try:
            await asyncio.to_thread(file_path.unlink, missing_ok=True)
        except OSError as exc:
            logger.error(f"Failed to delete file {file_path}: {exc}")
            raise StorageFailure(f"Failed to delete file {key}", key=key) from exc

        logger.info(f"Deleted file {file_path}")

    def exists(self, key: str) -> bool:
        """Check if a file exists."""
        return self._path(key).exists()

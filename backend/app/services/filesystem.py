"""Content store: binary attachment files on the local filesystem.

Files live flat under ``{workspace_root}/uploads`` and are addressed by their
stored name only. Names must be a single path component, so nothing outside
the uploads root can be read or deleted through this service.

Concurrency Safety:
- Atomic writes use temp file + rename pattern to prevent partial writes
- Safe for multi-instance deployments with shared filesystem
"""

import os
import tempfile
from pathlib import Path

from app.exceptions import ValidationError
from app.settings import settings
from app.utils import get_logger

logger = get_logger(__name__)

UPLOADS_URL_PREFIX = "/uploads"


class FileSystemService:
    """Content store backed by a single uploads directory."""

    def __init__(self, root: Path | None = None):
        self._root = root
        self._initialized = False

    @property
    def root(self) -> Path:
        return self._root or settings.get_uploads_root()

    def initialize(self) -> None:
        """Create the uploads and logs directories. Idempotent."""
        if self._initialized:
            logger.debug("FileSystem already initialized, skipping")
            return

        for dir_path in (self.root, settings.get_logs_root()):
            dir_path.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Ensured directory exists: {dir_path}")

        self._initialized = True
        logger.info(f"FileSystem initialized: uploads={self.root}, logs={settings.get_logs_root()}")

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    # ==================== Paths ====================

    def path_for(self, file_name: str) -> Path:
        """Resolve a stored name to its path.

        Raises:
            ValidationError: if the name is empty or not a single path component
        """
        if not file_name or file_name in (".", "..") or Path(file_name).name != file_name or "\\" in file_name:
            raise ValidationError(f"Invalid file name: {file_name!r}")
        return self.root / file_name

    @staticmethod
    def url_for(file_name: str) -> str:
        return f"{UPLOADS_URL_PREFIX}/{file_name}"

    # ==================== File Operations ====================

    def save(self, file_name: str, content: bytes) -> int:
        """Store `content` under `file_name`, replacing any previous file.

        Returns:
            File size in bytes
        """
        path = self.path_for(file_name)
        path.parent.mkdir(parents=True, exist_ok=True)
        return self._write_file_atomic(path, content)

    def _write_file_atomic(self, path: Path, content: bytes) -> int:
        """Write content atomically using temp file + rename.

        The temp file is created in the destination directory so the rename
        stays on one filesystem.
        """
        fd = None
        tmp_path = None

        try:
            fd, tmp_path_str = tempfile.mkstemp(
                dir=path.parent,
                suffix=".tmp",
                prefix=f".{path.name}.",
            )
            tmp_path = Path(tmp_path_str)

            os.write(fd, content)
            os.close(fd)
            fd = None

            tmp_path.replace(path)

            size = path.stat().st_size
            logger.debug(f"Wrote file atomically: {path} ({size} bytes)")
            return size

        except Exception as e:
            if fd is not None:
                try:
                    os.close(fd)
                except OSError:
                    pass
            if tmp_path and tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError:
                    pass
            logger.error(f"Atomic write failed for {path}: {e}")
            raise

    def read(self, file_name: str) -> bytes | None:
        """File content, or None if the file doesn't exist."""
        path = self.path_for(file_name)
        if not path.exists():
            logger.debug(f"File not found: {path}")
            return None
        return path.read_bytes()

    def delete(self, file_name: str) -> bool:
        """Delete a stored file.

        Returns:
            True if the file was deleted, False if it didn't exist

        Raises:
            OSError: the file exists but could not be removed
        """
        path = self.path_for(file_name)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.debug(f"File not found for deletion: {path}")
            return False
        logger.debug(f"Deleted file: {path}")
        return True

    def exists(self, file_name: str) -> bool:
        path = self.path_for(file_name)
        return path.exists() and path.is_file()


# Singleton instance
filesystem_service = FileSystemService()

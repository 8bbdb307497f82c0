"""
Local Torrent Storage

Concrete ITorrentStorage that writes uploads into a dedicated directory on
the local filesystem. Each upload gets its own randomly named ``.torrent``
file, so concurrent writers never collide.
"""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import BinaryIO

from torrent_relay.domain.downloads.storage_repository import ITorrentStorage
from torrent_relay.domain.errors import StorageError

logger = logging.getLogger(__name__)

TORRENT_SUFFIX = ".torrent"
DIRECTORY_MODE = 0o755
CHUNK_SIZE = 8192


class LocalTorrentStorage(ITorrentStorage):
    """
    Local filesystem implementation of ITorrentStorage.

    Persisted files are never deleted here; their retention is left to
    whoever administers the storage directory.

    Attributes:
        base_path: Directory receiving the persisted torrent files
    """

    def __init__(self, base_path: str):
        self.base_path = Path(base_path)

    def _ensure_base_directory(self) -> None:
        """
        Create the storage directory and its parents if missing.

        Raises:
            StorageError: If the directory cannot be created
        """
        try:
            self.base_path.mkdir(mode=DIRECTORY_MODE, parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(
                f"Failed to create torrent directory: {self.base_path}", e
            ) from e

    def persist(self, content: BinaryIO) -> str:
        """
        Copy the upload stream into a new uniquely named torrent file.

        Args:
            content: Binary upload stream

        Returns:
            Absolute path of the new file

        Raises:
            StorageError: If directory creation, file creation or the copy fails
        """
        self._ensure_base_directory()

        try:
            fd, path = tempfile.mkstemp(suffix=TORRENT_SUFFIX, dir=self.base_path)
        except OSError as e:
            raise StorageError(
                f"Failed to create torrent file in {self.base_path}", e
            ) from e

        try:
            with os.fdopen(fd, "wb") as f:
                shutil.copyfileobj(content, f, CHUNK_SIZE)
        except OSError as e:
            self._discard(path)
            raise StorageError(f"Failed to write torrent file {path}", e) from e

        logger.debug(f"[STORAGE] Persisted torrent to {path}")
        return os.path.abspath(path)

    def _discard(self, path: str) -> None:
        try:
            os.unlink(path)
        except OSError as e:
            logger.warning(f"[STORAGE] Could not remove partial file {path}: {e}")

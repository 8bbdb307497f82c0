"""
Local Output Storage

Concrete IOutputStorage for the directories the download agent writes into.
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Iterable

from torrent_relay.domain.downloads.storage_repository import IOutputStorage
from torrent_relay.domain.downloads.value_objects import SweepReport
from torrent_relay.domain.errors import StorageError, SweepError

logger = logging.getLogger(__name__)

DIRECTORY_MODE = 0o755


class LocalOutputStorage(IOutputStorage):
    """
    Local filesystem implementation of IOutputStorage.

    Entries listed in ``protected_paths`` (the torrent directory when it sits
    inside the shared download directory) are never removed by a sweep.
    """

    def __init__(self, protected_paths: Iterable[str] = ()):
        self.protected_paths = {os.path.realpath(p) for p in protected_paths}

    def prepare(self, path: str) -> str:
        """
        Ensure the output directory exists.

        Raises:
            StorageError: If the directory cannot be created
        """
        try:
            Path(path).mkdir(mode=DIRECTORY_MODE, parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create output directory: {path}", e) from e
        return path

    def remove_output(self, path: str, recursive: bool) -> SweepReport:
        """
        Delete the entries that exist in ``path`` at call time.

        The entry list is read once up front; anything created afterwards is
        left in place. A missing directory means the agent produced nothing.

        Raises:
            SweepError: If the directory exists but cannot be read
        """
        report = SweepReport()
        directory = Path(path)

        try:
            entries = list(os.scandir(directory))
        except FileNotFoundError:
            return report
        except OSError as e:
            raise SweepError(f"Failed to read output directory {path}: {e}", path, e) from e

        for entry in entries:
            if os.path.realpath(entry.path) in self.protected_paths:
                logger.debug(f"[STORAGE] Skipping protected path {entry.path}")
                continue
            try:
                if entry.is_dir(follow_symlinks=False):
                    if recursive:
                        shutil.rmtree(entry.path)
                    else:
                        os.rmdir(entry.path)
                else:
                    os.unlink(entry.path)
                report.entries_removed += 1
            except OSError as e:
                report.errors.append(
                    SweepError(f"Failed to remove {entry.path}: {e}", entry.path, e)
                )

        if recursive:
            try:
                directory.rmdir()
            except OSError as e:
                report.errors.append(
                    SweepError(f"Failed to remove directory {path}: {e}", path, e)
                )

        logger.debug(f"[STORAGE] Removed {report.entries_removed} entries from {path}")
        return report

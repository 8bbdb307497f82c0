"""
Storage Repository Interfaces

Abstract filesystem operations used by the download domain. The local
filesystem implementations live in the infrastructure layer.
"""

from abc import ABC, abstractmethod
from typing import BinaryIO

from .value_objects import SweepReport


class ITorrentStorage(ABC):
    """Persists uploaded torrent descriptors."""

    @abstractmethod
    def persist(self, content: BinaryIO) -> str:
        """
        Copy an upload stream into a uniquely named ``.torrent`` file.

        Args:
            content: Readable binary stream of the upload body

        Returns:
            Absolute path of the persisted file

        Raises:
            StorageError: If the directory or file cannot be created or written
        """
        pass


class IOutputStorage(ABC):
    """Manages the directories the download agent writes into."""

    @abstractmethod
    def prepare(self, path: str) -> str:
        """
        Ensure an output directory exists.

        Raises:
            StorageError: If the directory cannot be created
        """
        pass

    @abstractmethod
    def remove_output(self, path: str, recursive: bool) -> SweepReport:
        """
        Delete the entries present in ``path`` when the call starts.

        Args:
            path: Output directory
            recursive: Remove the directory tree itself when True, otherwise
                delete only the top-level entries and keep the directory

        Returns:
            SweepReport with removed entry count and per-entry errors

        Raises:
            SweepError: If the directory cannot be enumerated
        """
        pass

"""
Download Repositories

Repository interface for download record persistence.
Concrete implementations are in the infrastructure layer.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from .entities import DownloadRecord

# Swept records stay inspectable for a day before the registry drops them
SWEPT_RECORD_TTL = 24 * 3600


class DownloadRegistry(ABC):
    """Maps download identity to output location and expiry."""

    @abstractmethod
    def save(self, record: DownloadRecord) -> bool:
        """
        Save or update a record.

        Returns:
            True if successful, False otherwise
        """
        pass

    @abstractmethod
    def get(self, download_id: str) -> Optional[DownloadRecord]:
        """Retrieve a record by ID, None if unknown."""
        pass

    @abstractmethod
    def delete(self, download_id: str) -> bool:
        """Delete a record. Returns True if it existed."""
        pass

    @abstractmethod
    def list_all(self) -> List[DownloadRecord]:
        """Return every known record."""
        pass

    def get_expired(self, now: datetime) -> List[DownloadRecord]:
        """
        Return records whose retention window has elapsed.

        Args:
            now: Reference time for expiry comparison

        Returns:
            Expired records ordered by expiry
        """
        expired = [r for r in self.list_all() if r.is_expired(now)]
        return sorted(expired, key=lambda r: r.expire_at)

    def health_check(self) -> bool:
        return True

"""
In-Memory Download Registry

Process-local DownloadRegistry for single-process deployments where the
reaper runs as a thread next to the web server.
"""

import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from torrent_relay.domain.downloads.entities import DownloadRecord, utcnow
from torrent_relay.domain.downloads.repositories import SWEPT_RECORD_TTL, DownloadRegistry
from torrent_relay.domain.downloads.value_objects import DownloadStatus


class InMemoryDownloadRegistry(DownloadRegistry):
    """
    Thread-safe dictionary of serialized records.

    Records are stored as dictionaries so callers never share mutable
    entities across threads. Swept records are evicted ``swept_ttl``
    seconds after they were saved as swept, matching the key expiry of
    the Redis registry.
    """

    def __init__(
        self,
        swept_ttl: int = SWEPT_RECORD_TTL,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.swept_ttl = swept_ttl
        self._clock = clock
        self._records: Dict[str, dict] = {}
        self._evict_at: Dict[str, datetime] = {}
        self._lock = threading.Lock()

    def save(self, record: DownloadRecord) -> bool:
        now = self._clock()
        with self._lock:
            self._evict_expired(now)
            self._records[record.download_id] = record.to_dict()
            if record.status == DownloadStatus.SWEPT:
                self._evict_at[record.download_id] = now + timedelta(seconds=self.swept_ttl)
            else:
                self._evict_at.pop(record.download_id, None)
        return True

    def get(self, download_id: str) -> Optional[DownloadRecord]:
        with self._lock:
            self._evict_expired(self._clock())
            data = self._records.get(download_id)
        return DownloadRecord.from_dict(data) if data else None

    def delete(self, download_id: str) -> bool:
        with self._lock:
            self._evict_at.pop(download_id, None)
            return self._records.pop(download_id, None) is not None

    def list_all(self) -> List[DownloadRecord]:
        with self._lock:
            self._evict_expired(self._clock())
            snapshot = list(self._records.values())
        return [DownloadRecord.from_dict(data) for data in snapshot]

    def _evict_expired(self, now: datetime) -> None:
        # Caller holds the lock
        expired = [i for i, deadline in self._evict_at.items() if now >= deadline]
        for download_id in expired:
            del self._evict_at[download_id]
            self._records.pop(download_id, None)

"""
Redis Download Registry

DownloadRegistry backed by Redis so that the web process and Celery
reaper workers share one view of launched downloads.
"""

import logging
from typing import List, Optional

from torrent_relay.domain.downloads.entities import DownloadRecord
from torrent_relay.domain.downloads.repositories import SWEPT_RECORD_TTL, DownloadRegistry
from torrent_relay.domain.downloads.value_objects import DownloadStatus

from .redis_repository import RedisRepository

logger = logging.getLogger(__name__)

KEY_NAMESPACE = "download"


class RedisDownloadRegistry(DownloadRegistry):
    """
    Stores each DownloadRecord as a JSON document under ``download:<id>``.

    Swept records are kept for a day for inspection, then expire in Redis.
    """

    def __init__(self, redis_repo: RedisRepository, swept_ttl: int = SWEPT_RECORD_TTL):
        self.redis_repo = redis_repo
        self.swept_ttl = swept_ttl

    def _key(self, download_id: str) -> str:
        return f"{KEY_NAMESPACE}:{download_id}"

    def save(self, record: DownloadRecord) -> bool:
        ttl = self.swept_ttl if record.status == DownloadStatus.SWEPT else None
        saved = self.redis_repo.set_json(self._key(record.download_id), record.to_dict(), ttl=ttl)
        if not saved:
            logger.error(f"[REGISTRY] Failed to save download {record.download_id}")
        return saved

    def get(self, download_id: str) -> Optional[DownloadRecord]:
        data = self.redis_repo.get_json(self._key(download_id))
        if data is None:
            return None
        try:
            return DownloadRecord.from_dict(data)
        except (KeyError, ValueError) as e:
            logger.error(f"[REGISTRY] Corrupt record for {download_id}: {e}")
            return None

    def delete(self, download_id: str) -> bool:
        return self.redis_repo.delete(self._key(download_id))

    def list_all(self) -> List[DownloadRecord]:
        records = []
        for key in self.redis_repo.get_keys_by_pattern(f"{KEY_NAMESPACE}:*"):
            record = self.get(key.split(":", 1)[1])
            if record is not None:
                records.append(record)
        return records

    def health_check(self) -> bool:
        try:
            return bool(self.redis_repo.redis.ping())
        except Exception as e:
            logger.warning(f"[REGISTRY] Redis health check failed: {e}")
            return False

"""
Download Domain

Entities, value objects and services for the upload -> launch -> sweep
lifecycle of a single torrent download.
"""

from .entities import DownloadRecord
from .repositories import DownloadRegistry
from .services import RetentionSweeper
from .storage_repository import IOutputStorage, ITorrentStorage
from .value_objects import AgentOutcome, DownloadStatus, SweepReport

__all__ = [
    "AgentOutcome",
    "DownloadRecord",
    "DownloadRegistry",
    "DownloadStatus",
    "IOutputStorage",
    "ITorrentStorage",
    "RetentionSweeper",
    "SweepReport",
]

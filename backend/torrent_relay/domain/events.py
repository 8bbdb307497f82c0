"""
Domain Events

Immutable records of download lifecycle transitions.
Events decouple side effects such as logging from the request path.
"""

from abc import ABC
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class DomainEvent(ABC):
    """
    Base class for all domain events.

    Attributes:
        aggregate_id: ID of the download that generated the event
        occurred_at: Timestamp when the event occurred
    """
    aggregate_id: str
    occurred_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert event to dictionary for serialization.

        Returns:
            Dictionary representation of the event
        """
        return {
            "event_type": self.__class__.__name__,
            "aggregate_id": self.aggregate_id,
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass(frozen=True)
class DownloadLaunchedEvent(DomainEvent):
    """Emitted once the download agent process has been started."""
    torrent_path: str
    output_dir: str
    pid: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            "torrent_path": self.torrent_path,
            "output_dir": self.output_dir,
            "pid": self.pid,
        })
        return base_dict


@dataclass(frozen=True)
class DownloadFinishedEvent(DomainEvent):
    """
    Emitted when the download agent exits, whatever its status.

    Attributes:
        exit_code: Agent return code
        expire_at: When the output becomes eligible for reaping
    """
    exit_code: int
    expire_at: datetime

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            "exit_code": self.exit_code,
            "succeeded": self.succeeded,
            "expire_at": self.expire_at.isoformat(),
        })
        return base_dict


@dataclass(frozen=True)
class DownloadSweptEvent(DomainEvent):
    """Emitted after a download's output has been reclaimed."""
    output_dir: str
    entries_removed: int

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            "output_dir": self.output_dir,
            "entries_removed": self.entries_removed,
        })
        return base_dict


@dataclass(frozen=True)
class SweepFailedEvent(DomainEvent):
    """Emitted for each entry the reaper could not read or delete."""
    path: str
    error_message: str

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            "path": self.path,
            "error_message": self.error_message,
        })
        return base_dict

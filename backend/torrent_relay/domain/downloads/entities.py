"""
Download Entities

Domain entity tracking one launched download from upload to sweep.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from .value_objects import DownloadStatus
from ..events import DownloadFinishedEvent, DownloadLaunchedEvent, DownloadSweptEvent


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_download_id() -> str:
    return uuid.uuid4().hex


@dataclass
class DownloadRecord:
    """
    Entity representing one download agent run and its output location.

    Lifecycle: launched -> completed|failed -> swept. The expiry is only
    known once the agent exits; records without one are never reaped.
    """

    download_id: str
    torrent_path: str
    output_dir: str
    status: DownloadStatus
    created_at: datetime
    isolated: bool = True
    pid: Optional[int] = None
    exit_code: Optional[int] = None
    finished_at: Optional[datetime] = None
    expire_at: Optional[datetime] = None
    swept_at: Optional[datetime] = None

    @classmethod
    def create(
        cls,
        torrent_path: str,
        output_dir: str,
        download_id: Optional[str] = None,
        isolated: bool = True,
    ) -> "DownloadRecord":
        """
        Factory method for a record in the launched state.

        Args:
            torrent_path: Persisted torrent descriptor
            output_dir: Directory the agent will write into
            download_id: Identifier, generated when omitted
            isolated: Whether output_dir belongs to this download alone

        Returns:
            New DownloadRecord instance
        """
        return cls(
            download_id=download_id or new_download_id(),
            torrent_path=str(torrent_path),
            output_dir=str(output_dir),
            status=DownloadStatus.LAUNCHED,
            created_at=utcnow(),
            isolated=isolated,
        )

    def launched(self, pid: Optional[int]) -> DownloadLaunchedEvent:
        """Attach the agent process id and return the launch event."""
        self.pid = pid
        return DownloadLaunchedEvent(
            aggregate_id=self.download_id,
            occurred_at=self.created_at,
            torrent_path=self.torrent_path,
            output_dir=self.output_dir,
            pid=pid,
        )

    def finish(
        self,
        exit_code: int,
        grace_period: timedelta,
        failed_grace_period: Optional[timedelta] = None,
        now: Optional[datetime] = None,
    ) -> DownloadFinishedEvent:
        """
        Record agent termination and schedule the output for reaping.

        Args:
            exit_code: Agent process return code
            grace_period: Retention after a successful run
            failed_grace_period: Retention after a failed run, defaults to
                ``grace_period``
            now: Termination time, defaults to the current time

        Raises:
            ValueError: If the agent was already recorded as finished
        """
        if not self.status.is_active():
            raise ValueError(f"Cannot finish download in {self.status.value} state")

        self.finished_at = now or utcnow()
        self.exit_code = exit_code
        if exit_code == 0:
            self.status = DownloadStatus.COMPLETED
            self.expire_at = self.finished_at + grace_period
        else:
            self.status = DownloadStatus.FAILED
            if failed_grace_period is None:
                failed_grace_period = grace_period
            self.expire_at = self.finished_at + failed_grace_period

        return DownloadFinishedEvent(
            aggregate_id=self.download_id,
            occurred_at=self.finished_at,
            exit_code=exit_code,
            expire_at=self.expire_at,
        )

    def sweep(self, entries_removed: int, now: Optional[datetime] = None) -> DownloadSweptEvent:
        """Mark the output as reclaimed."""
        if not self.status.is_terminal():
            raise ValueError(f"Cannot sweep download in {self.status.value} state")

        self.status = DownloadStatus.SWEPT
        self.swept_at = now or utcnow()
        return DownloadSweptEvent(
            aggregate_id=self.download_id,
            occurred_at=self.swept_at,
            output_dir=self.output_dir,
            entries_removed=entries_removed,
        )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check if the record is due for reaping."""
        if not self.status.is_terminal() or self.expire_at is None:
            return False
        return (now or utcnow()) >= self.expire_at

    def to_dict(self) -> dict:
        """Convert record to dictionary for serialization."""
        return {
            "download_id": self.download_id,
            "torrent_path": self.torrent_path,
            "output_dir": self.output_dir,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "isolated": self.isolated,
            "pid": self.pid,
            "exit_code": self.exit_code,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "expire_at": self.expire_at.isoformat() if self.expire_at else None,
            "swept_at": self.swept_at.isoformat() if self.swept_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DownloadRecord":
        """Create DownloadRecord from dictionary."""

        def _dt(key: str) -> Optional[datetime]:
            value = data.get(key)
            return datetime.fromisoformat(value) if value else None

        return cls(
            download_id=data["download_id"],
            torrent_path=data["torrent_path"],
            output_dir=data["output_dir"],
            status=DownloadStatus(data["status"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            isolated=data.get("isolated", True),
            pid=data.get("pid"),
            exit_code=data.get("exit_code"),
            finished_at=_dt("finished_at"),
            expire_at=_dt("expire_at"),
            swept_at=_dt("swept_at"),
        )

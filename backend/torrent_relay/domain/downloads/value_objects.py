"""
Download Value Objects

Immutable value objects for download status and agent outcomes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List

from ..errors import SweepError


class DownloadStatus(Enum):
    """Download lifecycle status."""
    LAUNCHED = "launched"
    COMPLETED = "completed"
    FAILED = "failed"
    SWEPT = "swept"

    def is_terminal(self) -> bool:
        """Check if the agent has exited (completed or failed)."""
        return self in (DownloadStatus.COMPLETED, DownloadStatus.FAILED)

    def is_active(self) -> bool:
        """Check if the agent is still running."""
        return self == DownloadStatus.LAUNCHED


@dataclass(frozen=True)
class AgentOutcome:
    """
    Result of a supervised download agent run.

    Attributes:
        download_id: Download the agent was launched for
        exit_code: Process return code (negative when killed by a signal)
    """
    download_id: str
    exit_code: int

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    def to_dict(self) -> dict:
        return {
            "download_id": self.download_id,
            "exit_code": self.exit_code,
            "succeeded": self.succeeded,
        }


@dataclass
class SweepReport:
    """
    Summary of one reaper pass.

    Attributes:
        records_swept: Downloads whose output was reclaimed
        entries_removed: Filesystem entries deleted
        errors: Non-fatal failures encountered while sweeping
    """
    records_swept: int = 0
    entries_removed: int = 0
    errors: List[SweepError] = field(default_factory=list)

    def merge(self, other: "SweepReport") -> None:
        self.records_swept += other.records_swept
        self.entries_removed += other.entries_removed
        self.errors.extend(other.errors)

    def to_dict(self) -> dict:
        return {
            "records_swept": self.records_swept,
            "entries_removed": self.entries_removed,
            "errors": [str(e) for e in self.errors],
        }


"""
Download Submission Value Object

Outcome of handing an uploaded torrent to the download agent.
"""

from concurrent.futures import Future
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class DownloadSubmission:
    """
    Handle returned to the API layer once the agent has been launched.

    Attributes:
        download_id: Identifier of the download record
        torrent_path: Path of the persisted torrent descriptor
        output_dir: Directory the agent writes into
        outcome: Future resolving to an AgentOutcome when the agent exits
    """
    download_id: str
    torrent_path: str
    output_dir: str
    outcome: Optional[Future] = None

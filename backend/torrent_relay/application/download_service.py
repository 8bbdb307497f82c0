"""
Download Service

Application service orchestrating the upload path: persist the torrent,
register the download, launch the agent and hand its lifecycle to the
supervisor. Returns as soon as the agent is running.
"""

import logging
import os
from datetime import timedelta
from typing import BinaryIO, Optional

from torrent_relay.domain.downloads.entities import DownloadRecord, new_download_id
from torrent_relay.domain.downloads.repositories import DownloadRegistry
from torrent_relay.domain.downloads.storage_repository import IOutputStorage, ITorrentStorage
from torrent_relay.domain.downloads.value_objects import AgentOutcome
from torrent_relay.domain.errors import LaunchError, StorageError, SweepError
from torrent_relay.infrastructure.download_agent import Aria2DownloadAgent, ProcessSupervisor

from .download_result import DownloadSubmission
from .event_publisher import EventPublisher

logger = logging.getLogger(__name__)


class DownloadService:
    """
    Handles one uploaded torrent from persistence to agent launch.

    With ``isolate_downloads`` each download writes into its own
    ``<download_dir>/<download_id>`` directory. Without it every agent writes
    straight into ``download_dir`` and sweeps clear that shared directory.
    """

    def __init__(
        self,
        torrent_storage: ITorrentStorage,
        output_storage: IOutputStorage,
        registry: DownloadRegistry,
        agent: Aria2DownloadAgent,
        supervisor: ProcessSupervisor,
        event_publisher: EventPublisher,
        download_dir: str,
        grace_period: timedelta = timedelta(seconds=30),
        failed_grace_period: Optional[timedelta] = None,
        isolate_downloads: bool = True,
    ):
        self.torrent_storage = torrent_storage
        self.output_storage = output_storage
        self.registry = registry
        self.agent = agent
        self.supervisor = supervisor
        self.event_publisher = event_publisher
        self.download_dir = download_dir
        self.grace_period = grace_period
        self.failed_grace_period = failed_grace_period
        self.isolate_downloads = isolate_downloads

    def submit(self, upload: BinaryIO) -> DownloadSubmission:
        """
        Persist an uploaded torrent and start downloading it.

        Args:
            upload: Binary stream of the uploaded torrent descriptor

        Returns:
            DownloadSubmission whose ``outcome`` future resolves when the
            agent exits

        Raises:
            StorageError: If the torrent or output directory cannot be written,
                or the download cannot be registered
            LaunchError: If the agent process cannot be started
        """
        torrent_path = self.torrent_storage.persist(upload)

        download_id = new_download_id()
        output_dir = self._output_dir_for(download_id)
        self.output_storage.prepare(output_dir)

        record = DownloadRecord.create(
            torrent_path, output_dir, download_id=download_id, isolated=self.isolate_downloads
        )
        # Registered before launch so the exit handler always finds it
        if not self.registry.save(record):
            self._discard_output(record)
            raise StorageError(f"Failed to register download {download_id}")

        try:
            process = self.agent.launch(torrent_path, output_dir)
        except LaunchError:
            self.registry.delete(download_id)
            self._discard_output(record)
            raise

        event = record.launched(process.pid)
        self.registry.save(record)
        self.event_publisher.publish(event)

        outcome = self.supervisor.watch(download_id, process, on_exit=self.handle_agent_exit)

        return DownloadSubmission(
            download_id=download_id,
            torrent_path=torrent_path,
            output_dir=output_dir,
            outcome=outcome,
        )

    def handle_agent_exit(self, outcome: AgentOutcome) -> None:
        """Record the agent's exit status and schedule its output for reaping."""
        record = self.registry.get(outcome.download_id)
        if record is None:
            logger.warning(f"[SUPERVISOR] No record for finished download {outcome.download_id}")
            return

        event = record.finish(
            outcome.exit_code,
            grace_period=self.grace_period,
            failed_grace_period=self.failed_grace_period,
        )
        self.registry.save(record)
        self.event_publisher.publish(event)

    def _output_dir_for(self, download_id: str) -> str:
        if self.isolate_downloads:
            return os.path.join(self.download_dir, download_id)
        return self.download_dir

    def _discard_output(self, record: DownloadRecord) -> None:
        if not record.isolated:
            return
        try:
            self.output_storage.remove_output(record.output_dir, recursive=True)
        except SweepError as e:
            logger.warning(f"[UPLOAD] Could not remove unused output directory: {e}")

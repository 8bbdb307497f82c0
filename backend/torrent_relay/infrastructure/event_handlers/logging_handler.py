"""
Logging Event Handler

Infrastructure event handler for logging download lifecycle events.
Domain layer remains unaware of logging infrastructure.
"""

import logging

from torrent_relay.domain.events import (
    DomainEvent,
    DownloadFinishedEvent,
    DownloadLaunchedEvent,
    DownloadSweptEvent,
    SweepFailedEvent,
)


class LoggingEventHandler:
    """Subscribes to domain events and logs them."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event by logging it.

        Args:
            event: Domain event to log
        """
        try:
            if isinstance(event, DownloadLaunchedEvent):
                self._handle_launched(event)
            elif isinstance(event, DownloadFinishedEvent):
                self._handle_finished(event)
            elif isinstance(event, DownloadSweptEvent):
                self._handle_swept(event)
            elif isinstance(event, SweepFailedEvent):
                self._handle_sweep_failed(event)
            else:
                self.logger.debug(
                    f"Unhandled event: {event.__class__.__name__} "
                    f"(aggregate_id={event.aggregate_id})"
                )
        except Exception as e:
            # Log handler errors but don't fail the operation
            self.logger.error(
                f"Error in logging event handler for {event.__class__.__name__}: {e}",
                exc_info=True,
            )

    def _handle_launched(self, event: DownloadLaunchedEvent) -> None:
        self.logger.info(
            f"Download launched: download_id={event.aggregate_id}, "
            f"pid={event.pid}, torrent={event.torrent_path}, output={event.output_dir}"
        )

    def _handle_finished(self, event: DownloadFinishedEvent) -> None:
        if event.succeeded:
            self.logger.info(
                f"Download completed: download_id={event.aggregate_id}, "
                f"expire_at={event.expire_at.isoformat()}"
            )
        else:
            self.logger.warning(
                f"Download agent failed: download_id={event.aggregate_id}, "
                f"exit_code={event.exit_code}, expire_at={event.expire_at.isoformat()}"
            )

    def _handle_swept(self, event: DownloadSweptEvent) -> None:
        self.logger.info(
            f"Download swept: download_id={event.aggregate_id}, "
            f"removed={event.entries_removed} from {event.output_dir}"
        )

    def _handle_sweep_failed(self, event: SweepFailedEvent) -> None:
        self.logger.warning(
            f"Sweep error: download_id={event.aggregate_id}, "
            f"path={event.path}, error={event.error_message}"
        )

"""
Download Domain Services

Retention sweeping of finished downloads.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from .entities import DownloadRecord, utcnow
from .repositories import DownloadRegistry
from .storage_repository import IOutputStorage
from .value_objects import SweepReport
from ..errors import SweepError
from ..events import DomainEvent, SweepFailedEvent

logger = logging.getLogger(__name__)


class RetentionSweeper:
    """
    Reclaims the output of downloads whose retention window has elapsed.

    Only records returned by the registry as expired are touched; output of
    running or unexpired downloads is left alone. In shared-directory mode
    every expired record clears the whole shared directory, so concurrent
    downloads there can lose each other's output.
    """

    def __init__(
        self,
        registry: DownloadRegistry,
        output_storage: IOutputStorage,
        publish: Optional[Callable[[DomainEvent], None]] = None,
    ):
        self.registry = registry
        self.output_storage = output_storage
        self._publish = publish or (lambda event: None)

    def reap_expired(self, now: Optional[datetime] = None) -> SweepReport:
        """
        Sweep every expired download once.

        Args:
            now: Reference time, defaults to the current time

        Returns:
            Combined SweepReport for this pass
        """
        now = now or utcnow()
        report = SweepReport()

        for record in self.registry.get_expired(now):
            report.merge(self.sweep_record(record, now))

        if report.records_swept or report.errors:
            logger.info(
                f"[REAPER] Swept {report.records_swept} downloads, "
                f"removed {report.entries_removed} entries, "
                f"{len(report.errors)} errors"
            )
        return report

    def sweep_record(self, record: DownloadRecord, now: Optional[datetime] = None) -> SweepReport:
        """
        Remove one download's output and mark it swept.

        A directory read failure leaves the record unswept so the next pass
        retries it.
        """
        now = now or utcnow()
        try:
            result = self.output_storage.remove_output(
                record.output_dir, recursive=record.isolated
            )
        except SweepError as e:
            logger.warning(f"[REAPER] Sweep aborted for {record.download_id}: {e}")
            self._report_error(record, e, now)
            return SweepReport(errors=[e])

        for error in result.errors:
            logger.warning(f"[REAPER] {error}")
            self._report_error(record, error, now)

        event = record.sweep(result.entries_removed, now)
        self.registry.save(record)
        self._publish(event)

        result.records_swept = 1
        return result

    def _report_error(self, record: DownloadRecord, error: SweepError, now: datetime) -> None:
        self._publish(
            SweepFailedEvent(
                aggregate_id=record.download_id,
                occurred_at=now,
                path=error.path or record.output_dir,
                error_message=str(error),
            )
        )

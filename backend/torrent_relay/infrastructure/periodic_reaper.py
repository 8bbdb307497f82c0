"""
Periodic Reaper

Background thread that runs the retention sweep at a fixed interval.
"""

import logging
import threading
from typing import Optional

from torrent_relay.domain.downloads.services import RetentionSweeper

logger = logging.getLogger(__name__)


class PeriodicReaper:
    """
    Calls RetentionSweeper.reap_expired every ``interval`` seconds.

    Exactly one reaper should run per registry; it only removes output of
    expired records.
    """

    def __init__(self, sweeper: RetentionSweeper, interval: float = 5.0):
        self.sweeper = sweeper
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="retention-reaper", daemon=True)
        self._thread.start()
        logger.info(f"[REAPER] Started with {self.interval}s interval")

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def run_once(self):
        """Run a single sweep pass; failures are logged, never raised."""
        try:
            return self.sweeper.reap_expired()
        except Exception as e:
            logger.error(f"[REAPER] Sweep pass failed: {e}", exc_info=True)
            return None

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.run_once()

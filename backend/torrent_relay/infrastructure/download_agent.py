"""
Download Agent

Launches the external aria2c process for a persisted torrent and watches
it from a background thread until it exits.
"""

import logging
import subprocess
import threading
from concurrent.futures import Future
from typing import Callable, Dict, List, Optional

from torrent_relay.domain.downloads.value_objects import AgentOutcome
from torrent_relay.domain.errors import LaunchError

logger = logging.getLogger(__name__)

DEFAULT_EXECUTABLE = "aria2c"

FIXED_ARGUMENTS = ("--file-allocation=trunc", "--enable-mmap=true")


class Aria2DownloadAgent:
    """
    Starts the download agent executable.

    The agent must accept ``--dir=<output>`` and the torrent path as its last
    positional argument, and must write regular files into that directory.
    """

    def __init__(self, executable: str = DEFAULT_EXECUTABLE):
        self.executable = executable

    def build_command(self, torrent_path: str, output_dir: str) -> List[str]:
        return [
            self.executable,
            f"--dir={output_dir}",
            *FIXED_ARGUMENTS,
            torrent_path,
        ]

    def launch(self, torrent_path: str, output_dir: str) -> subprocess.Popen:
        """
        Start the agent without waiting for it.

        Raises:
            LaunchError: If the executable cannot be started
        """
        command = self.build_command(torrent_path, output_dir)
        try:
            process = subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except (OSError, ValueError) as e:
            raise LaunchError(f"Failed to start {self.executable}: {e}", e) from e

        logger.info(f"[AGENT] Started {self.executable} (pid {process.pid}) for {torrent_path}")
        return process


class ProcessSupervisor:
    """
    Waits for agent processes on daemon threads.

    Each watched process gets a Future that resolves to its AgentOutcome
    after the exit callback has run. Thread-safe.
    """

    def __init__(self):
        self._active: Dict[str, subprocess.Popen] = {}
        self._lock = threading.Lock()

    def watch(
        self,
        download_id: str,
        process: subprocess.Popen,
        on_exit: Optional[Callable[[AgentOutcome], None]] = None,
    ) -> "Future[AgentOutcome]":
        """
        Start a background wait on ``process``.

        Args:
            download_id: Download the process belongs to
            process: Running agent process
            on_exit: Called with the outcome before the future resolves

        Returns:
            Future resolving to the AgentOutcome
        """
        future: "Future[AgentOutcome]" = Future()
        future.set_running_or_notify_cancel()

        with self._lock:
            self._active[download_id] = process

        thread = threading.Thread(
            target=self._wait,
            args=(download_id, process, on_exit, future),
            name=f"agent-{download_id[:8]}",
            daemon=True,
        )
        thread.start()
        return future

    def active_count(self) -> int:
        with self._lock:
            return len(self._active)

    def _wait(
        self,
        download_id: str,
        process: subprocess.Popen,
        on_exit: Optional[Callable[[AgentOutcome], None]],
        future: "Future[AgentOutcome]",
    ) -> None:
        try:
            exit_code = process.wait()
        except Exception as e:
            logger.error(f"[SUPERVISOR] Wait failed for {download_id}: {e}", exc_info=True)
            with self._lock:
                self._active.pop(download_id, None)
            future.set_exception(e)
            return

        with self._lock:
            self._active.pop(download_id, None)

        outcome = AgentOutcome(download_id=download_id, exit_code=exit_code)
        logger.info(f"[SUPERVISOR] Agent for {download_id} exited with {exit_code}")

        if on_exit is not None:
            try:
                on_exit(outcome)
            except Exception as e:
                logger.error(
                    f"[SUPERVISOR] Exit handler failed for {download_id}: {e}",
                    exc_info=True,
                )

        future.set_result(outcome)

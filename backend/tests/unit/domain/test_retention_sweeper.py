"""
Unit tests for RetentionSweeper.

Uses the in-memory registry and the local output storage on temporary
directories so the filesystem effects are real.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from torrent_relay.domain.downloads.entities import DownloadRecord
from torrent_relay.domain.downloads.services import RetentionSweeper
from torrent_relay.domain.downloads.value_objects import DownloadStatus, SweepReport
from torrent_relay.domain.errors import SweepError
from torrent_relay.domain.events import DownloadSweptEvent, SweepFailedEvent
from torrent_relay.infrastructure.local_output_storage import LocalOutputStorage
from torrent_relay.infrastructure.memory_download_registry import InMemoryDownloadRegistry

NOW = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)
GRACE = timedelta(seconds=30)


@pytest.fixture
def registry():
    return InMemoryDownloadRegistry()


@pytest.fixture
def published():
    return []


@pytest.fixture
def sweeper(registry, published):
    return RetentionSweeper(registry, LocalOutputStorage(), publish=published.append)


def _finished_record(registry, output_dir, finished_at, isolated=True, exit_code=0):
    output_dir.mkdir(parents=True, exist_ok=True)
    (output_dir / "movie.mkv").write_bytes(b"data")
    record = DownloadRecord.create("/t/x.torrent", str(output_dir), isolated=isolated)
    record.finish(exit_code, GRACE, now=finished_at)
    registry.save(record)
    return record


class TestIsolatedSweep:

    def test_removes_expired_output_directory(self, sweeper, registry, tmp_path):
        record = _finished_record(registry, tmp_path / "a", NOW - GRACE)

        report = sweeper.reap_expired(now=NOW)

        assert report.records_swept == 1
        assert report.entries_removed == 1
        assert not (tmp_path / "a").exists()
        assert registry.get(record.download_id).status == DownloadStatus.SWEPT

    def test_keeps_output_inside_grace_period(self, sweeper, registry, tmp_path):
        record = _finished_record(registry, tmp_path / "a", NOW - GRACE + timedelta(seconds=1))

        report = sweeper.reap_expired(now=NOW)

        assert report.records_swept == 0
        assert (tmp_path / "a" / "movie.mkv").exists()
        assert registry.get(record.download_id).status == DownloadStatus.COMPLETED

    def test_never_touches_running_downloads(self, sweeper, registry, tmp_path):
        running_dir = tmp_path / "running"
        running_dir.mkdir()
        (running_dir / "partial.bin").write_bytes(b"...")
        registry.save(DownloadRecord.create("/t/r.torrent", str(running_dir)))
        _finished_record(registry, tmp_path / "done", NOW - GRACE)

        sweeper.reap_expired(now=NOW)

        assert (running_dir / "partial.bin").exists()
        assert not (tmp_path / "done").exists()

    def test_removes_nested_output(self, sweeper, registry, tmp_path):
        record = _finished_record(registry, tmp_path / "a", NOW - GRACE)
        nested = tmp_path / "a" / "Season 1"
        nested.mkdir()
        (nested / "e01.mkv").write_bytes(b"x")

        sweeper.reap_expired(now=NOW)

        assert not (tmp_path / "a").exists()
        assert registry.get(record.download_id).status == DownloadStatus.SWEPT

    def test_sweeps_each_record_once(self, sweeper, registry, tmp_path):
        _finished_record(registry, tmp_path / "a", NOW - GRACE)

        first = sweeper.reap_expired(now=NOW)
        second = sweeper.reap_expired(now=NOW + timedelta(minutes=5))

        assert first.records_swept == 1
        assert second.records_swept == 0

    def test_missing_output_directory_is_not_an_error(self, sweeper, registry, tmp_path):
        record = DownloadRecord.create("/t/x.torrent", str(tmp_path / "never-created"))
        record.finish(1, GRACE, now=NOW - GRACE)
        registry.save(record)

        report = sweeper.reap_expired(now=NOW)

        assert report.records_swept == 1
        assert report.errors == []

    def test_publishes_swept_event(self, sweeper, registry, published, tmp_path):
        record = _finished_record(registry, tmp_path / "a", NOW - GRACE)

        sweeper.reap_expired(now=NOW)

        swept = [e for e in published if isinstance(e, DownloadSweptEvent)]
        assert [e.aggregate_id for e in swept] == [record.download_id]


class TestSharedDirectorySweep:

    def test_clears_every_top_level_file(self, sweeper, registry, tmp_path):
        shared = tmp_path / "shared"
        _finished_record(registry, shared, NOW - GRACE, isolated=False)
        (shared / "other-download.iso").write_bytes(b"someone else's")

        report = sweeper.reap_expired(now=NOW)

        # Accepted hazard of the shared layout: output of other downloads
        # present at sweep time is removed too
        assert report.entries_removed == 2
        assert shared.is_dir()
        assert list(shared.iterdir()) == []

    def test_keeps_non_empty_subdirectories(self, sweeper, registry, tmp_path):
        shared = tmp_path / "shared"
        record = _finished_record(registry, shared, NOW - GRACE, isolated=False)
        (shared / "album").mkdir()
        (shared / "album" / "track.flac").write_bytes(b"x")

        report = sweeper.reap_expired(now=NOW)

        assert (shared / "album" / "track.flac").exists()
        assert len(report.errors) == 1
        assert registry.get(record.download_id).status == DownloadStatus.SWEPT


class TestErrorHandling:

    def test_directory_read_failure_leaves_record_for_retry(self, registry, published):
        storage = Mock()
        storage.remove_output.side_effect = SweepError("cannot read", "/d/a")
        sweeper = RetentionSweeper(registry, storage, publish=published.append)
        record = DownloadRecord.create("/t/x.torrent", "/d/a")
        record.finish(0, GRACE, now=NOW - GRACE)
        registry.save(record)

        report = sweeper.reap_expired(now=NOW)

        assert report.records_swept == 0
        assert len(report.errors) == 1
        assert registry.get(record.download_id).status == DownloadStatus.COMPLETED
        assert any(isinstance(e, SweepFailedEvent) for e in published)

    def test_entry_failures_are_reported_not_raised(self, registry, published):
        storage = Mock()
        storage.remove_output.return_value = SweepReport(
            entries_removed=1,
            errors=[SweepError("permission denied", "/d/a/locked")],
        )
        sweeper = RetentionSweeper(registry, storage, publish=published.append)
        record = DownloadRecord.create("/t/x.torrent", "/d/a")
        record.finish(0, GRACE, now=NOW - GRACE)
        registry.save(record)

        report = sweeper.reap_expired(now=NOW)

        assert report.records_swept == 1
        assert [e.path for e in report.errors] == ["/d/a/locked"]
        failed = [e for e in published if isinstance(e, SweepFailedEvent)]
        assert failed[0].path == "/d/a/locked"

    def test_storage_called_with_record_layout(self, registry):
        storage = Mock()
        storage.remove_output.return_value = SweepReport()
        sweeper = RetentionSweeper(registry, storage)
        record = DownloadRecord.create("/t/x.torrent", "/shared", isolated=False)
        record.finish(0, GRACE, now=NOW - GRACE)
        registry.save(record)

        sweeper.reap_expired(now=NOW)

        storage.remove_output.assert_called_once_with("/shared", recursive=False)

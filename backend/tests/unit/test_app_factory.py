"""
Unit tests for AppConfig and create_app.
"""

import pytest

from app_factory import AppConfig, create_app
from torrent_relay.application.download_service import DownloadService
from torrent_relay.domain.downloads.repositories import DownloadRegistry
from torrent_relay.domain.downloads.services import RetentionSweeper
from torrent_relay.infrastructure.memory_download_registry import InMemoryDownloadRegistry
from torrent_relay.infrastructure.redis_download_registry import RedisDownloadRegistry


class TestAppConfig:

    def test_defaults(self, monkeypatch):
        for name in (
            "TORRENT_DIR", "DOWNLOAD_DIR", "PUBLIC_URL", "FLASK_PORT",
            "AGENT_EXECUTABLE", "GRACE_PERIOD_SECONDS", "FAILED_GRACE_PERIOD_SECONDS",
            "REAPER_MODE", "REGISTRY_BACKEND",
        ):
            monkeypatch.delenv(name, raising=False)

        config = AppConfig()

        assert config.torrent_dir == "/srv/torrents/.torrents"
        assert config.download_dir == "/srv/torrents"
        assert config.public_url == "http://YOUR_DOMAIN/files"
        assert config.port == 8080
        assert config.agent_executable == "aria2c"
        assert config.grace_period.total_seconds() == 30
        assert config.failed_grace_period == config.grace_period
        assert config.reaper_mode == "thread"
        assert config.registry_backend == "memory"
        assert config.isolate_downloads is True

    def test_reads_environment(self, monkeypatch):
        monkeypatch.delenv("FAILED_GRACE_PERIOD_SECONDS", raising=False)
        monkeypatch.setenv("PUBLIC_URL", "https://cdn.example.test/dl")
        monkeypatch.setenv("GRACE_PERIOD_SECONDS", "120")
        monkeypatch.setenv("ISOLATE_DOWNLOADS", "false")

        config = AppConfig()

        assert config.public_url == "https://cdn.example.test/dl"
        assert config.grace_period.total_seconds() == 120
        assert config.failed_grace_period.total_seconds() == 120
        assert config.isolate_downloads is False

    def test_failed_grace_period_is_opt_in(self, monkeypatch):
        monkeypatch.setenv("GRACE_PERIOD_SECONDS", "30")
        monkeypatch.setenv("FAILED_GRACE_PERIOD_SECONDS", "0")

        config = AppConfig()

        assert config.grace_period.total_seconds() == 30
        assert config.failed_grace_period.total_seconds() == 0

    def test_failed_grace_period_follows_overridden_grace_period(self, monkeypatch):
        monkeypatch.delenv("FAILED_GRACE_PERIOD_SECONDS", raising=False)

        config = AppConfig(grace_period_seconds=90)

        assert config.failed_grace_period.total_seconds() == 90

    def test_overrides_win_over_environment(self, monkeypatch):
        monkeypatch.setenv("FLASK_PORT", "9000")

        assert AppConfig(port=8181).port == 8181

    def test_unknown_override_rejected(self):
        with pytest.raises(TypeError):
            AppConfig(torrent_directory="/tmp")

    @pytest.mark.parametrize("option", [{"reaper_mode": "cron"}, {"registry_backend": "sqlite"}])
    def test_invalid_modes_rejected(self, option):
        with pytest.raises(ValueError):
            AppConfig(**option)


class TestCreateApp:

    def test_registers_services(self, app):
        assert isinstance(app.container.resolve(DownloadService), DownloadService)
        assert isinstance(app.container.resolve(RetentionSweeper), RetentionSweeper)
        assert isinstance(app.container.resolve(DownloadRegistry), InMemoryDownloadRegistry)

    def test_max_content_length_from_config(self, app_config):
        app_config.max_upload_bytes = 1234

        assert create_app(app_config).config["MAX_CONTENT_LENGTH"] == 1234

    def test_redis_backend_uses_redis_registry(self, app_config):
        app_config.registry_backend = "redis"

        app = create_app(app_config)

        assert isinstance(app.container.resolve(DownloadRegistry), RedisDownloadRegistry)

    def test_thread_reaper_started_and_stoppable(self, app_config):
        app_config.reaper_mode = "thread"
        app_config.reaper_interval_seconds = 0.05

        app = create_app(app_config)
        try:
            assert app.reaper.running
        finally:
            app.reaper.stop(timeout=5)
        assert not app.reaper.running

    def test_no_reaper_thread_when_off(self, app):
        assert app.reaper is None


class TestHealth:

    def test_healthy(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.get_json()
        assert body["status"] == "ok"
        assert body["registry"] == "memory"
        assert body["active_downloads"] == 0

    def test_degraded_when_registry_unreachable(self, app, client):
        registry = app.container.resolve(DownloadRegistry)
        registry.health_check = lambda: False

        response = client.get("/health")

        assert response.status_code == 503
        assert response.get_json()["status"] == "degraded"

    def test_swagger_docs_served(self, client):
        response = client.get("/api/swagger.json")

        assert response.status_code == 200
        assert "/download" in response.get_json()["paths"]

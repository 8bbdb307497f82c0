"""
Application Factory

Creates and configures the Flask application with all dependencies.
Every path, URL and timing value comes from AppConfig, so tests can build
an app against temporary directories and a fake download agent.
"""

import logging
import os
from datetime import timedelta
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS

from torrent_relay.application.dependency_container import DependencyContainer
from torrent_relay.application.download_service import DownloadService
from torrent_relay.application.event_publisher import EventPublisher
from torrent_relay.config.celery_config import make_celery
from torrent_relay.domain.downloads.repositories import DownloadRegistry
from torrent_relay.domain.downloads.services import RetentionSweeper
from torrent_relay.domain.events import (
    DownloadFinishedEvent,
    DownloadLaunchedEvent,
    DownloadSweptEvent,
    SweepFailedEvent,
)
from torrent_relay.infrastructure.download_agent import Aria2DownloadAgent, ProcessSupervisor
from torrent_relay.infrastructure.event_handlers import LoggingEventHandler
from torrent_relay.infrastructure.local_output_storage import LocalOutputStorage
from torrent_relay.infrastructure.local_torrent_storage import LocalTorrentStorage
from torrent_relay.infrastructure.memory_download_registry import InMemoryDownloadRegistry
from torrent_relay.infrastructure.periodic_reaper import PeriodicReaper

logger = logging.getLogger(__name__)

REAPER_MODES = ("thread", "celery", "off")
REGISTRY_BACKENDS = ("memory", "redis")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class AppConfig:
    """
    Application configuration.

    Values are read from the environment; keyword arguments override them.
    """

    def __init__(self, **overrides):
        self.torrent_dir = os.getenv("TORRENT_DIR", "/srv/torrents/.torrents")
        self.download_dir = os.getenv("DOWNLOAD_DIR", "/srv/torrents")
        self.public_url = os.getenv("PUBLIC_URL", "http://YOUR_DOMAIN/files")
        self.host = os.getenv("FLASK_HOST", "0.0.0.0")
        self.port = int(os.getenv("FLASK_PORT", 8080))
        self.debug = _env_bool("FLASK_DEBUG", "false")

        # Download agent
        self.agent_executable = os.getenv("AGENT_EXECUTABLE", "aria2c")
        self.isolate_downloads = _env_bool("ISOLATE_DOWNLOADS", "true")
        self.max_upload_bytes = int(os.getenv("MAX_UPLOAD_BYTES", 10 * 1024 * 1024))

        # Retention
        self.grace_period_seconds = float(os.getenv("GRACE_PERIOD_SECONDS", 30))
        # Unset means failed runs keep the regular grace period
        failed_grace = os.getenv("FAILED_GRACE_PERIOD_SECONDS")
        self.failed_grace_period_seconds = float(failed_grace) if failed_grace else None
        self.reaper_interval_seconds = float(os.getenv("REAPER_INTERVAL_SECONDS", 5))
        self.reaper_mode = os.getenv("REAPER_MODE", "thread").lower()
        self.registry_backend = os.getenv("REGISTRY_BACKEND", "memory").lower()

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise TypeError(f"Unknown configuration option: {key}")
            setattr(self, key, value)

        if self.reaper_mode not in REAPER_MODES:
            raise ValueError(f"REAPER_MODE must be one of {REAPER_MODES}, got {self.reaper_mode}")
        if self.registry_backend not in REGISTRY_BACKENDS:
            raise ValueError(
                f"REGISTRY_BACKEND must be one of {REGISTRY_BACKENDS}, got {self.registry_backend}"
            )

    @property
    def grace_period(self) -> timedelta:
        return timedelta(seconds=self.grace_period_seconds)

    @property
    def failed_grace_period(self) -> timedelta:
        if self.failed_grace_period_seconds is None:
            return self.grace_period
        return timedelta(seconds=self.failed_grace_period_seconds)


def create_app(config: Optional[AppConfig] = None) -> Flask:
    """
    Create and configure Flask application.

    Args:
        config: Application configuration, uses default if None

    Returns:
        Configured Flask application
    """
    if config is None:
        config = AppConfig()

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = config.max_upload_bytes
    app.relay_config = config

    CORS(
        app,
        resources={
            r"/api/*": {
                "origins": "*",
                "methods": ["POST", "OPTIONS"],
                "allow_headers": ["Content-Type"],
                "max_age": 3600,
            }
        },
    )

    _initialize_infrastructure(app)
    _initialize_services(app, config)
    _start_reaper(app, config)
    _register_blueprints(app)
    _register_health_endpoint(app)

    return app


def _initialize_infrastructure(app: Flask) -> None:
    """
    Initialize Celery. Failure only disables the Celery reaper driver.

    Args:
        app: Flask application
    """
    try:
        app.celery = make_celery(app)
        logger.debug("Celery initialized")
    except Exception as e:
        logger.warning(f"Could not initialize Celery: {e}")
        app.celery = None


def _create_registry(config: AppConfig) -> DownloadRegistry:
    if config.registry_backend == "redis":
        from torrent_relay.config.redis_config import get_redis_repository, init_redis
        from torrent_relay.infrastructure.redis_download_registry import RedisDownloadRegistry

        init_redis()
        return RedisDownloadRegistry(get_redis_repository())

    return InMemoryDownloadRegistry()


def _initialize_services(app: Flask, config: AppConfig) -> None:
    """
    Build all services and register them in a DependencyContainer attached
    to the app. API handlers and Celery tasks resolve services from it.

    Args:
        app: Flask application
        config: Application configuration
    """
    container = DependencyContainer()

    event_publisher = EventPublisher()
    logging_handler = LoggingEventHandler(logging.getLogger("torrent_relay.events"))
    for event_type in (
        DownloadLaunchedEvent,
        DownloadFinishedEvent,
        DownloadSweptEvent,
        SweepFailedEvent,
    ):
        event_publisher.subscribe(event_type, logging_handler.handle)

    registry = _create_registry(config)
    output_storage = LocalOutputStorage(protected_paths=[config.torrent_dir])
    supervisor = ProcessSupervisor()

    download_service = DownloadService(
        torrent_storage=LocalTorrentStorage(config.torrent_dir),
        output_storage=output_storage,
        registry=registry,
        agent=Aria2DownloadAgent(config.agent_executable),
        supervisor=supervisor,
        event_publisher=event_publisher,
        download_dir=config.download_dir,
        grace_period=config.grace_period,
        failed_grace_period=config.failed_grace_period,
        isolate_downloads=config.isolate_downloads,
    )
    sweeper = RetentionSweeper(registry, output_storage, publish=event_publisher.publish)

    container.register_singleton(EventPublisher, event_publisher)
    container.register_singleton(DownloadRegistry, registry)
    container.register_singleton(ProcessSupervisor, supervisor)
    container.register_singleton(DownloadService, download_service)
    container.register_singleton(RetentionSweeper, sweeper)

    app.container = container
    logger.info(
        f"Services initialized: registry={config.registry_backend}, "
        f"agent={config.agent_executable}, isolated={config.isolate_downloads}"
    )


def _start_reaper(app: Flask, config: AppConfig) -> None:
    """
    Start the in-process reaper thread when REAPER_MODE is ``thread``.

    In ``celery`` mode the beat schedule drives the sweep instead.
    """
    app.reaper = None

    if config.reaper_mode == "celery" and config.registry_backend != "redis":
        logger.warning(
            "REAPER_MODE=celery with an in-memory registry: the worker cannot see "
            "downloads launched by this process"
        )

    if config.reaper_mode != "thread":
        return

    reaper = PeriodicReaper(
        app.container.resolve(RetentionSweeper),
        interval=config.reaper_interval_seconds,
    )
    reaper.start()
    app.reaper = reaper


def _register_blueprints(app: Flask) -> None:
    from torrent_relay.api import api_bp

    app.register_blueprint(api_bp)
    logger.debug("API registered at /api with Swagger UI at /api/docs")


def _get_health_status(app: Flask) -> tuple[dict, int]:
    """
    Get health status of the registry, reaper and running agents.

    Returns:
        Tuple of (health_status_dict, http_status_code)
    """
    config = app.relay_config
    health_status = {
        "status": "ok",
        "registry": config.registry_backend,
        "reaper": config.reaper_mode,
        "active_downloads": app.container.resolve(ProcessSupervisor).active_count(),
    }

    registry = app.container.resolve(DownloadRegistry)
    if not registry.health_check():
        health_status["registry"] = f"{config.registry_backend}: unavailable"
        health_status["status"] = "degraded"

    if config.reaper_mode == "thread" and not (app.reaper and app.reaper.running):
        health_status["reaper"] = "thread: stopped"
        health_status["status"] = "degraded"

    if config.reaper_mode == "celery" and app.celery is None:
        health_status["reaper"] = "celery: unavailable"
        health_status["status"] = "degraded"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code


def _register_health_endpoint(app: Flask) -> None:
    @app.route("/health", methods=["GET"])
    def health():
        """Overall health of the service and its dependencies."""
        health_status, status_code = _get_health_status(app)
        return jsonify(health_status), status_code

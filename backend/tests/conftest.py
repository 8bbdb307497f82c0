"""
Shared pytest fixtures and configuration for the torrent relay test suite.

This module provides:
- Hypothesis configuration for property-based testing
- Environment defaults so importing the Celery app never touches /srv
- A fake download agent that records how it was invoked
- Application fixtures built on temporary directories
"""

import os
import tempfile

import pytest
from hypothesis import HealthCheck, settings

# The Celery app module builds an application at import time
_ENV_ROOT = tempfile.mkdtemp(prefix="torrent-relay-env-")
os.environ.setdefault("TORRENT_DIR", os.path.join(_ENV_ROOT, "torrents"))
os.environ.setdefault("DOWNLOAD_DIR", os.path.join(_ENV_ROOT, "downloads"))
os.environ.setdefault("REAPER_MODE", "off")
os.environ.setdefault("REGISTRY_BACKEND", "memory")

from app_factory import AppConfig, create_app  # noqa: E402
from tests.fixtures.agent import FakeAgent, make_fake_agent  # noqa: E402

settings.register_profile(
    "default",
    max_examples=50,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)
settings.load_profile("default")

PUBLIC_URL = "http://files.example.test/files"


# =============================================================================
# Fake Download Agent
# =============================================================================

@pytest.fixture
def fake_agent(tmp_path) -> FakeAgent:
    """A fake agent that writes one payload file and exits 0."""
    return make_fake_agent(tmp_path / "agent")


@pytest.fixture
def agent_factory(tmp_path):
    """Build fake agents with custom exit codes, delays and payloads."""
    counter = {"n": 0}

    def factory(**kwargs) -> FakeAgent:
        counter["n"] += 1
        return make_fake_agent(tmp_path / f"agent{counter['n']}", **kwargs)

    return factory


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest.fixture
def torrent_dir(tmp_path):
    return tmp_path / "torrents"


@pytest.fixture
def download_dir(tmp_path):
    return tmp_path / "downloads"


@pytest.fixture
def app_config(torrent_dir, download_dir, fake_agent) -> AppConfig:
    """Configuration pointing every path at temporary directories."""
    return AppConfig(
        torrent_dir=str(torrent_dir),
        download_dir=str(download_dir),
        public_url=PUBLIC_URL,
        agent_executable=fake_agent.executable,
        reaper_mode="off",
        registry_backend="memory",
        grace_period_seconds=30,
        failed_grace_period_seconds=0,
    )


@pytest.fixture
def app(app_config):
    application = create_app(app_config)
    application.config["TESTING"] = True
    yield application
    if application.reaper is not None:
        application.reaper.stop(timeout=5)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def torrent_bytes() -> bytes:
    """A small bencoded torrent descriptor."""
    return (
        b"d8:announce35:http://tracker.example.test/announce"
        b"4:infod6:lengthi1024e4:name8:file.bin12:piece lengthi16384e"
        b"6:pieces20:aaaaaaaaaaaaaaaaaaaaee"
    )


# =============================================================================
# Pytest Configuration Hooks
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external processes)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (spawn the fake agent)"
    )


def pytest_collection_modifyitems(config, items):
    """Mark tests based on their location."""
    for item in items:
        test_path = str(item.fspath)

        if "/unit/" in test_path or "\\unit\\" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path or "\\integration\\" in test_path:
            item.add_marker(pytest.mark.integration)

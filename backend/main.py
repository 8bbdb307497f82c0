"""
main.py

Flask backend that accepts torrent uploads, runs aria2c on them and
reclaims the downloaded files after a grace period.

Dependencies:
  - Python packages: Flask, flask-restx, flask-cors, celery, redis
  - System: aria2c (or AGENT_EXECUTABLE) on PATH
  - Infrastructure: Redis server only with REGISTRY_BACKEND=redis

Notes:
  - Upload endpoint at POST /api/download, Swagger docs at /api/docs
  - Downloaded files must be served from PUBLIC_URL by an external file server
"""

from app_factory import create_app
from torrent_relay.config.logging_config import configure_logging

configure_logging()
app = create_app()

if __name__ == "__main__":
    config = app.relay_config
    # The reaper thread lives in this process; the reloader would start a second one
    app.run(host=config.host, port=config.port, debug=config.debug, use_reloader=False)

"""
Torrent Relay REST API

Upload endpoint with OpenAPI/Swagger documentation.
"""

from flask import Blueprint
from flask_restx import Api

api_bp = Blueprint("api", __name__, url_prefix="/api")

# Initialize Flask-RESTX API with Swagger documentation
api = Api(
    api_bp,
    version="1.0",
    title="Torrent Relay API",
    description="Upload a torrent descriptor and fetch its content from the public file location",
    doc="/docs",  # Swagger UI will be available at /api/docs
    license="MIT",
    # No authentication required
)

# Import namespaces after api is created to avoid circular imports
from .namespaces import download_ns  # noqa: E402

api.add_namespace(download_ns, path="/download")

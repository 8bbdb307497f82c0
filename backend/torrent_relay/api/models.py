"""
API Models for request/response validation and Swagger documentation
"""

from flask_restx import fields, reqparse
from werkzeug.datastructures import FileStorage

from torrent_relay.api import api

TORRENT_FIELD = "torrent"

# =============================================================================
# Request Models
# =============================================================================

upload_parser = reqparse.RequestParser()
upload_parser.add_argument(
    TORRENT_FIELD,
    location="files",
    type=FileStorage,
    required=True,
    help="Torrent descriptor file",
)

# =============================================================================
# Response Models
# =============================================================================

download_response = api.model(
    "DownloadResponse",
    {
        "download_url": fields.String(
            description="Public location serving downloaded content",
            example="http://YOUR_DOMAIN/files",
        ),
        "download_id": fields.String(
            description="Subdirectory under download_url holding this upload's files",
            example="3f2b9c0d7e1a4b6c8d9e0f1a2b3c4d5e",
        ),
    },
)

error_response = api.model(
    "ErrorResponse",
    {
        "error": fields.String(description="Error category", example="launch_error"),
        "title": fields.String(description="Short error title"),
        "message": fields.String(description="User-friendly error message"),
        "action": fields.String(description="Suggested action for the user"),
    },
)

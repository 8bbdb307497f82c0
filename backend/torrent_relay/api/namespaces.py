"""
API Namespaces - Organized endpoint groups
"""

from flask import Response, current_app, request
from flask_restx import Namespace, Resource
from werkzeug.datastructures import FileStorage
from werkzeug.exceptions import RequestEntityTooLarge

from torrent_relay.api.models import (
    TORRENT_FIELD,
    download_response,
    error_response,
    upload_parser,
)
from torrent_relay.application.download_service import DownloadService
from torrent_relay.domain.errors import (
    BadRequestError,
    ErrorCategory,
    LaunchError,
    StorageError,
    create_error_response,
)

TORRENT_REQUIRED = "torrent required"

# =============================================================================
# Download Namespace - Torrent upload
# =============================================================================

download_ns = Namespace("download", description="Torrent download operations")


@download_ns.route("")
class TorrentDownload(Resource):
    """Start a download from an uploaded torrent"""

    @download_ns.doc("submit_torrent")
    @download_ns.expect(upload_parser)
    @download_ns.response(200, "Download started", download_response)
    @download_ns.response(400, "Torrent required")
    @download_ns.response(413, "Upload Too Large", error_response)
    @download_ns.response(500, "Internal Server Error", error_response)
    def post(self):
        """
        Upload a torrent descriptor

        Saves the torrent, starts the download agent and returns right away
        with the public location the downloaded files will appear under.
        The files are removed a fixed grace period after the agent exits.
        """
        try:
            upload = _get_upload()
        except RequestEntityTooLarge:
            current_app.logger.info("[UPLOAD] Rejected upload above MAX_CONTENT_LENGTH")
            return create_error_response(ErrorCategory.FILE_TOO_LARGE, status_code=413)
        except BadRequestError:
            current_app.logger.info("[UPLOAD] Rejected request without torrent part")
            return Response(f"{TORRENT_REQUIRED}\n", status=400, mimetype="text/plain")

        download_service = current_app.container.resolve(DownloadService)

        try:
            submission = download_service.submit(upload.stream)
        except StorageError as e:
            current_app.logger.error(f"[UPLOAD] Could not persist torrent: {e}")
            return create_error_response(ErrorCategory.STORAGE_ERROR, status_code=500)
        except LaunchError as e:
            current_app.logger.error(f"[UPLOAD] Could not start download agent: {e}")
            return create_error_response(ErrorCategory.LAUNCH_ERROR, status_code=500)

        current_app.logger.info(
            f"[UPLOAD] Download {submission.download_id} started for {submission.torrent_path}"
        )

        return {
            "download_url": current_app.relay_config.public_url,
            "download_id": submission.download_id,
        }, 200


# =============================================================================
# Helper Functions
# =============================================================================

def _get_upload() -> FileStorage:
    """
    Return the multipart part named ``torrent``.

    Raises:
        BadRequestError: If the request carries no such file part
    """
    upload = request.files.get(TORRENT_FIELD)
    if upload is None:
        raise BadRequestError(f"Missing multipart field '{TORRENT_FIELD}'")
    return upload

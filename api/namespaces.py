"""
API Namespaces - Organized endpoint groups
"""

from flask import Response, current_app, render_template, request, send_file
from flask_restx import Namespace, Resource

from domain.errors import ObjectNotFoundError

from api.models import error_response, object_response, upload_parser, upload_response


def _base_url() -> str:
    """Scheme and host of the current request, without trailing slash."""
    return request.host_url.rstrip("/")


# =============================================================================
# Upload Namespace - Write path
# =============================================================================

upload_ns = Namespace("upload", description="File upload")


@upload_ns.route("")
class Upload(Resource):
    """Upload a file to share"""

    @upload_ns.doc("upload_file")
    @upload_ns.expect(upload_parser)
    @upload_ns.response(200, "Success", upload_response)
    @upload_ns.response(400, "No file uploaded", error_response)
    @upload_ns.response(413, "File too large", error_response)
    @upload_ns.response(500, "Storage failure", error_response)
    def post(self):
        """
        Upload a single file

        Stores the file and returns its id with a share link and a direct
        file link. The object expires after the configured retention window.
        """
        upload = upload_parser.parse_args().get("file")

        result = current_app.upload_service.upload(
            upload.stream if upload is not None else None,
            upload.filename if upload is not None else None,
            upload.mimetype if upload is not None else None,
            _base_url(),
        )

        return result.to_dict(), 200


# =============================================================================
# Metadata Namespace - JSON view of a shared object
# =============================================================================

metadata_ns = Namespace("metadata", description="Shared object metadata")


@metadata_ns.route("/<string:object_id>")
@metadata_ns.param("object_id", "The object identifier")
class ObjectMetadata(Resource):
    """Object metadata"""

    @metadata_ns.doc("get_object_metadata")
    @metadata_ns.response(200, "Success", object_response)
    @metadata_ns.response(404, "File Not Found", error_response)
    def get(self, object_id):
        """
        Get the metadata record of a shared object

        URLs in the response are derived from the host of this request.
        """
        share_service = current_app.share_service
        record = share_service.resolve(object_id)
        return share_service.describe(record, _base_url()), 200


# =============================================================================
# Share Namespace - Human-facing share page
# =============================================================================

share_ns = Namespace("share", description="Share pages")


@share_ns.route("/<string:object_id>")
@share_ns.param("object_id", "The object identifier")
class SharePage(Resource):
    """HTML share page"""

    @share_ns.doc("get_share_page")
    @share_ns.produces(["text/html"])
    @share_ns.response(200, "Share page")
    @share_ns.response(404, "Not-found page")
    def get(self, object_id):
        """
        Render the share page for an object

        Shows name, type, size, an inline preview where the browser can
        render one, and a download button.
        """
        share_service = current_app.share_service

        try:
            record = share_service.resolve(object_id)
        except ObjectNotFoundError:
            html = render_template("not_found.html")
            return Response(html, status=404, mimetype="text/html")

        html = render_template("share.html", **share_service.page_context(record, _base_url()))
        return Response(html, status=200, mimetype="text/html")


# =============================================================================
# Files Namespace - Blob delivery
# =============================================================================

files_ns = Namespace("files", description="File delivery")


@files_ns.route("/<string:key>")
@files_ns.param("key", "The storage key (equal to the object identifier)")
class InlineFile(Resource):
    """Raw file, inline"""

    @files_ns.doc("get_file_inline")
    @files_ns.response(200, "File content")
    @files_ns.response(404, "File Not Found", error_response)
    def get(self, key):
        """
        Serve the raw file with its declared content type

        Used by the share page for previews.
        """
        record, stream = current_app.share_service.open_blob(key)

        response = send_file(
            stream,
            mimetype=record.mime_type,
            as_attachment=False,
            download_name=record.original_name,
            max_age=0,
        )
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Browsers refuse to run their PDF viewer in a sandboxed document
        if record.mime_type != "application/pdf":
            response.headers["Content-Security-Policy"] = "sandbox"
        return response


@files_ns.route("/<string:key>/download")
@files_ns.param("key", "The storage key (equal to the object identifier)")
class DownloadFile(Resource):
    """Raw file, forced download"""

    @files_ns.doc("download_file")
    @files_ns.response(200, "File content")
    @files_ns.response(404, "File Not Found", error_response)
    def get(self, key):
        """
        Download the file under its original name

        The response forces a save-as dialog regardless of content type.
        """
        record, stream = current_app.share_service.open_blob(key)

        current_app.logger.debug(f"Serving download of {key}")

        return send_file(
            stream,
            mimetype="application/octet-stream",
            as_attachment=True,
            download_name=record.original_name,
            max_age=0,
        )

"""
API Models for request parsing and Swagger documentation
"""

from flask_restx import fields
from werkzeug.datastructures import FileStorage

from api import api

# =============================================================================
# Request Parsers
# =============================================================================

upload_parser = api.parser()
upload_parser.add_argument(
    "file",
    location="files",
    type=FileStorage,
    required=False,
    help="The file to share",
)

# =============================================================================
# Response Models
# =============================================================================

upload_response = api.model(
    "UploadResponse",
    {
        "message": fields.String(description="Status message", example="Upload successful"),
        "id": fields.String(description="Object identifier, also the storage key"),
        "shareUrl": fields.String(description="Human-facing share page URL"),
        "fileUrl": fields.String(description="Raw file URL, served inline"),
    },
)

object_response = api.model(
    "ObjectRecord",
    {
        "id": fields.String(description="Object identifier"),
        "originalName": fields.String(description="Filename as uploaded"),
        "mimeType": fields.String(description="Declared content type"),
        "sizeBytes": fields.Integer(description="Size in bytes", min=0),
        "createdAt": fields.String(description="Upload time (ISO timestamp)"),
        "expiresAt": fields.String(description="Expiry time (ISO timestamp)"),
        "fileUrl": fields.String(description="Raw file URL, derived from the request host"),
        "shareUrl": fields.String(description="Share page URL, derived from the request host"),
    },
)

error_response = api.model(
    "ErrorResponse",
    {
        "error": fields.String(description="Error message"),
        "code": fields.String(
            description="Machine-readable error category",
            enum=["invalid_request", "file_too_large", "file_not_found", "system_error"],
        ),
        "title": fields.String(description="Short error title"),
    },
)

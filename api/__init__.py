"""
DropLink HTTP API

Upload, share-page, metadata and file-delivery endpoints, with
OpenAPI/Swagger documentation at /docs.
"""

import logging

from flask import Blueprint
from flask_restx import Api
from werkzeug.exceptions import RequestEntityTooLarge

from domain.errors import (
    DomainError,
    ErrorCategory,
    WriteError,
    create_error_response,
)

logger = logging.getLogger(__name__)

STATUS_BY_CATEGORY = {
    ErrorCategory.INVALID_REQUEST: 400,
    ErrorCategory.FILE_TOO_LARGE: 413,
    ErrorCategory.FILE_NOT_FOUND: 404,
    ErrorCategory.SYSTEM_ERROR: 500,
}

# Routes live at the site root, so no url_prefix
sharing_bp = Blueprint("sharing", __name__, template_folder="templates")

api = Api(
    sharing_bp,
    version="1.0",
    title="DropLink API",
    description="Ephemeral file sharing: upload a file, share the link, it expires",
    doc="/docs",
)


@api.errorhandler(RequestEntityTooLarge)
def handle_request_too_large(error):
    """Declared body length is over the transport limit."""
    logger.debug(f"Upload rejected by transport limit: {error}")
    return create_error_response(ErrorCategory.FILE_TOO_LARGE, status_code=413)


@api.errorhandler(DomainError)
def handle_domain_error(error):
    """
    Map domain errors to the stable JSON error shape.

    Storage faults are logged with full detail but answered with the
    generic system error message, so no internal paths leak.
    """
    status_code = STATUS_BY_CATEGORY.get(error.category, 500)

    if isinstance(error, WriteError) or status_code >= 500:
        logger.error(f"Storage failure: {error}", exc_info=error)
    else:
        logger.debug(f"{error.__class__.__name__}: {error}")

    return create_error_response(error.category, status_code=status_code)


# Import namespaces after api is created to avoid circular imports
from .namespaces import files_ns, metadata_ns, share_ns, upload_ns  # noqa: E402

api.add_namespace(upload_ns, path="/upload")
api.add_namespace(metadata_ns, path="/api/file")
api.add_namespace(share_ns, path="/file")
api.add_namespace(files_ns, path="/files")

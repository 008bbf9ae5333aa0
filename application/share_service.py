"""
Share Service

Application service for the read paths: share-page resolution, JSON
metadata, and blob download. All of them apply the same expiry rule, so
an object past its deadline is not servable even if the next sweep has
not reclaimed it yet.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import BinaryIO, Callable, Dict, Tuple

from domain.errors import ObjectNotFoundError
from domain.file_sharing.entities import ObjectRecord, utcnow
from domain.file_sharing.repositories import IMetadataIndex
from domain.file_sharing.storage_repository import IBlobStore
from domain.file_sharing.value_objects import ObjectKey

from .upload_service import build_file_url, build_share_url

logger = logging.getLogger(__name__)

SIZE_UNITS = ["Bytes", "KB", "MB", "GB", "TB"]


def format_bytes(size: int) -> str:
    """
    Human-readable size with binary prefixes and two decimals.

    Examples:
        >>> format_bytes(0)
        '0 Bytes'
        >>> format_bytes(1536)
        '1.50 KB'
    """
    if size == 0:
        return "0 Bytes"

    exponent = 0
    while exponent < len(SIZE_UNITS) - 1 and size >= 1024 ** (exponent + 1):
        exponent += 1

    return f"{size / 1024 ** exponent:.2f} {SIZE_UNITS[exponent]}"


def preview_kind(mime_type: str) -> str:
    """
    Choose how the share page previews a content type.

    Returns:
        'image' for image types, 'pdf' for PDF documents, 'none' otherwise
    """
    mime_type = (mime_type or "").lower()
    if mime_type.startswith("image/"):
        return "image"
    if mime_type == "application/pdf":
        return "pdf"
    return "none"


class ShareService:
    """Resolves object ids for the share page, the JSON API and downloads."""

    def __init__(
        self,
        metadata_index: IMetadataIndex,
        blob_store: IBlobStore,
        retention: timedelta,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.metadata_index = metadata_index
        self.blob_store = blob_store
        self.retention = retention
        self._clock = clock

    def resolve(self, object_id: str) -> ObjectRecord:
        """
        Look up a live object.

        Args:
            object_id: Object id (equal to its storage key)

        Returns:
            ObjectRecord

        Raises:
            ObjectNotFoundError: If the id is unknown or the object expired
        """
        if not ObjectKey.is_valid(object_id):
            raise ObjectNotFoundError(f"Malformed object id: {object_id!r}")

        record = self.metadata_index.get(object_id)
        if record is None:
            raise ObjectNotFoundError(f"Object not found: {object_id}")

        if record.is_expired(self._clock(), self.retention):
            raise ObjectNotFoundError(f"Object expired: {object_id}")

        return record

    def open_blob(self, key: str) -> Tuple[ObjectRecord, BinaryIO]:
        """
        Resolve an object and open its bytes for streaming.

        Args:
            key: Storage key (equal to the object id)

        Returns:
            (record, open binary stream); the caller closes the stream

        Raises:
            ObjectNotFoundError: If the object is unknown, expired, or its
                blob is missing
        """
        record = self.resolve(key)

        stream = self.blob_store.get(record.storage_key)
        if stream is None:
            logger.error(f"Indexed object {key} has no blob in storage")
            raise ObjectNotFoundError(f"Blob missing for object: {key}")

        return record, stream

    def describe(self, record: ObjectRecord, base_url: str) -> Dict:
        """
        Build the public metadata view of a record.

        URLs are derived from the base URL of the current request, never
        read from storage.
        """
        data = record.to_dict()
        data.update({
            "expiresAt": record.expires_at(self.retention).isoformat(),
            "fileUrl": build_file_url(base_url, record.id),
            "shareUrl": build_share_url(base_url, record.id),
        })
        return data

    def page_context(self, record: ObjectRecord, base_url: str) -> Dict:
        """Template context for the share page."""
        now = self._clock()
        return {
            "file": self.describe(record, base_url),
            "readable_size": format_bytes(record.size_bytes),
            "preview": preview_kind(record.mime_type),
            "remaining_minutes": math.ceil(record.get_remaining_seconds(now, self.retention) / 60),
        }

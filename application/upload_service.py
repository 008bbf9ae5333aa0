"""
Upload Service

Application service for the upload write path: stream the blob, then
commit its metadata record. The two steps form an explicit two-phase
create; a failure after the blob is written is compensated by deleting
the blob, so a failed upload never leaves bytes or metadata behind.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, Callable, Optional
from urllib.parse import quote

from domain.errors import BadRequestError, DomainError, WriteError
from domain.events import ObjectUploadedEvent, UploadFailedEvent
from domain.file_sharing.entities import DEFAULT_MIME_TYPE, ObjectRecord, utcnow
from domain.file_sharing.repositories import IMetadataIndex
from domain.file_sharing.storage_repository import IBlobStore
from domain.file_sharing.value_objects import ObjectKey

logger = logging.getLogger(__name__)


def build_file_url(base_url: str, object_id: str) -> str:
    """URL of the raw blob, served inline."""
    return f"{base_url.rstrip('/')}/files/{quote(object_id, safe='')}"


def build_share_url(base_url: str, object_id: str) -> str:
    """URL of the human-facing share page."""
    return f"{base_url.rstrip('/')}/file/{quote(object_id, safe='')}"


@dataclass(frozen=True)
class UploadResult:
    """Committed upload plus the links derived from the request host."""
    record: ObjectRecord
    file_url: str
    share_url: str

    def to_dict(self) -> dict:
        return {
            "message": "Upload successful",
            "id": self.record.id,
            "shareUrl": self.share_url,
            "fileUrl": self.file_url,
        }


class UploadService:
    """
    Accepts one file stream and turns it into a shared object.

    The stream is never buffered whole: it is copied chunk by chunk into
    the blob store, which enforces the size cap while streaming.
    """

    def __init__(
        self,
        metadata_index: IMetadataIndex,
        blob_store: IBlobStore,
        max_upload_bytes: int,
        clock: Callable[[], datetime] = utcnow,
        event_publisher=None,
    ):
        """
        Initialize UploadService.

        Args:
            metadata_index: Index receiving the new record
            blob_store: Store receiving the bytes
            max_upload_bytes: Largest accepted file, inclusive
            clock: Source of the creation timestamp
            event_publisher: Optional publisher for lifecycle events
        """
        self.metadata_index = metadata_index
        self.blob_store = blob_store
        self.max_upload_bytes = max_upload_bytes
        self._clock = clock
        self._event_publisher = event_publisher

    def upload(
        self,
        stream: Optional[BinaryIO],
        filename: Optional[str],
        mime_type: Optional[str],
        base_url: str,
    ) -> UploadResult:
        """
        Store a file and register its metadata.

        Args:
            stream: Readable binary stream of the file content
            filename: Client-supplied filename, display data only
            mime_type: Client-declared content type
            base_url: Scheme and host of the incoming request

        Returns:
            UploadResult with the committed record and derived URLs

        Raises:
            BadRequestError: If no file was supplied
            PayloadTooLargeError: If the file exceeds max_upload_bytes
            WriteError: If the blob or the metadata cannot be persisted
        """
        if stream is None or not filename:
            self._publish_failure("", BadRequestError("No file uploaded"))
            raise BadRequestError("No file uploaded")

        key = ObjectKey.generate(filename).value

        try:
            size = self.blob_store.put(key, stream, max_bytes=self.max_upload_bytes)
        except DomainError as e:
            self._publish_failure(key, e)
            raise

        record = ObjectRecord(
            id=key,
            original_name=filename,
            mime_type=mime_type or DEFAULT_MIME_TYPE,
            size_bytes=size,
            created_at=self._clock(),
        )

        try:
            self.metadata_index.upsert(record)
        except WriteError as e:
            self._discard_blob(key)
            self._publish_failure(key, e)
            raise

        if self._event_publisher is not None:
            self._event_publisher.publish(
                ObjectUploadedEvent(
                    aggregate_id=key,
                    occurred_at=record.created_at,
                    original_name=record.original_name,
                    size_bytes=record.size_bytes,
                )
            )

        return UploadResult(
            record=record,
            file_url=build_file_url(base_url, key),
            share_url=build_share_url(base_url, key),
        )

    def _discard_blob(self, key: str) -> None:
        try:
            self.blob_store.delete(key)
        except (WriteError, OSError) as e:
            # The sweep reclaims it later as an orphan
            logger.error(f"Could not remove blob {key} after failed commit: {e}")

    def _publish_failure(self, key: str, error: DomainError) -> None:
        if self._event_publisher is None:
            return
        self._event_publisher.publish(
            UploadFailedEvent(
                aggregate_id=key,
                occurred_at=self._clock(),
                error_message=error.message,
                error_category=error.category.value,
            )
        )

"""
Blob Store Interface

Abstract interface for physical blob storage. The blob store owns the
bytes on disk; it knows nothing about metadata records.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import BinaryIO, Iterator, Optional, Tuple


class IBlobStore(ABC):
    """
    Unified interface for blob storage operations.

    Contract Guarantees:
    - put() publishes a key only after all bytes are written; readers
      never observe a partially written blob
    - put() never overwrites an existing key
    - get() returns None for missing keys (no exceptions)
    - delete() is idempotent
    - Keys that are not well-formed storage keys behave as missing
    """

    @abstractmethod
    def put(self, key: str, content: BinaryIO, max_bytes: Optional[int] = None) -> int:
        """
        Stream content into storage under a new key.

        Args:
            key: Caller-generated unique storage key
            content: Readable binary stream, consumed until EOF
            max_bytes: Optional cap; exceeded as soon as the running byte
                count passes it

        Returns:
            Number of bytes stored

        Raises:
            PayloadTooLargeError: If more than max_bytes were read
            WriteError: On disk full, permission denial, I/O fault or key
                collision

        Notes:
            - Any partially written data is removed before an error
              propagates, including errors raised by the source stream
        """
        pass  # pragma: no cover

    @abstractmethod
    def get(self, key: str) -> Optional[BinaryIO]:
        """
        Open a blob for streaming.

        Returns:
            Binary stream positioned at the start, or None if missing.
            The caller must close it.
        """
        pass  # pragma: no cover

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Delete a blob.

        Returns:
            True if the blob was deleted or did not exist

        Raises:
            WriteError: If an existing blob cannot be removed
        """
        pass  # pragma: no cover

    @abstractmethod
    def iter_blobs(self) -> Iterator[Tuple[str, datetime]]:
        """
        Enumerate published blobs.

        Yields:
            (key, last modified time) pairs
        """
        pass  # pragma: no cover

    @abstractmethod
    def discard_partials(self, older_than: datetime) -> int:
        """
        Remove in-flight write files abandoned before a given time.

        Returns:
            Number of partial files removed
        """
        pass  # pragma: no cover

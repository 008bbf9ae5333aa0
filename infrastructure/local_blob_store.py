"""
Local Blob Store

Concrete implementation of IBlobStore for the local filesystem.

Writes go to a private ``.partial`` directory first and are published
under their key with a hard link only once every byte is on disk. Linking
fails if the key already exists, so a key collision is reported instead
of silently replacing another object's bytes.
"""

import logging
import os
import secrets
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional, Tuple

from domain.errors import PayloadTooLargeError, WriteError
from domain.file_sharing.storage_repository import IBlobStore
from domain.file_sharing.value_objects import ObjectKey

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
PARTIAL_DIR_NAME = ".partial"


class LocalBlobStore(IBlobStore):
    """
    Local filesystem implementation of IBlobStore.

    Thread Safety:
        Safe for concurrent use without locking as long as keys are
        unique: every in-flight write has its own partial file, and
        publishing is a single atomic link.

    Attributes:
        base_path: Directory holding published blobs
        partial_path: Directory holding in-flight writes
    """

    def __init__(self, base_path: str):
        """
        Initialize the local blob store.

        Args:
            base_path: Base directory for blob storage

        Raises:
            WriteError: If the storage directories cannot be created
        """
        self.base_path = Path(base_path)
        self.partial_path = self.base_path / PARTIAL_DIR_NAME
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        try:
            self.partial_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WriteError(f"Failed to create storage directory: {self.base_path}", e) from e

    def _resolve(self, key: str) -> Optional[Path]:
        """Map a key to its path, or None if the key is not well formed."""
        if not ObjectKey.is_valid(key):
            return None
        return self.base_path / key

    def put(self, key: str, content: BinaryIO, max_bytes: Optional[int] = None) -> int:
        target = self._resolve(key)
        if target is None:
            raise WriteError(f"Refusing to store under malformed key {key!r}")

        partial = self.partial_path / f"{key}.{secrets.token_hex(4)}.part"
        size = 0

        try:
            with open(partial, "xb") as f:
                while True:
                    chunk = content.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if max_bytes is not None and size > max_bytes:
                        raise PayloadTooLargeError(
                            f"Upload exceeds limit of {max_bytes} bytes", limit=max_bytes
                        )
                    f.write(chunk)
                f.flush()
                os.fsync(f.fileno())

            try:
                os.link(partial, target)
            except FileExistsError as e:
                raise WriteError(f"Storage key collision: {key}", e) from e

            return size

        except OSError as e:
            raise WriteError(f"Failed to store blob {key}: {e}", e) from e
        finally:
            self._unlink_quietly(partial)

    def get(self, key: str) -> Optional[BinaryIO]:
        target = self._resolve(key)
        if target is None:
            return None

        try:
            return open(target, "rb")
        except (FileNotFoundError, IsADirectoryError):
            return None
        except OSError as e:
            logger.warning(f"Could not open blob {key}: {e}")
            return None

    def delete(self, key: str) -> bool:
        target = self._resolve(key)
        if target is None:
            return True

        try:
            target.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise WriteError(f"Failed to delete blob {key}: {e}", e) from e

        return True

    def iter_blobs(self) -> Iterator[Tuple[str, datetime]]:
        # Materialized so callers can delete while iterating
        entries: List[Tuple[str, datetime]] = []
        with os.scandir(self.base_path) as it:
            for entry in it:
                if not entry.is_file() or not ObjectKey.is_valid(entry.name):
                    continue
                entries.append((entry.name, _mtime(entry)))
        return iter(entries)

    def discard_partials(self, older_than: datetime) -> int:
        count = 0
        with os.scandir(self.partial_path) as it:
            stale = [entry for entry in it if entry.is_file() and _mtime(entry) < older_than]

        for entry in stale:
            if self._unlink_quietly(Path(entry.path)):
                logger.info(f"Removed abandoned partial upload: {entry.name}")
                count += 1

        return count

    def is_available(self) -> bool:
        """
        Check if the storage directory is writable.

        Returns:
            True if storage directory is accessible
        """
        return self.partial_path.is_dir() and os.access(self.partial_path, os.W_OK)

    @staticmethod
    def _unlink_quietly(path: Path) -> bool:
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Could not remove {path.name}: {e}")
            return False


def _mtime(entry: os.DirEntry) -> datetime:
    return datetime.fromtimestamp(entry.stat().st_mtime, tz=timezone.utc)

"""
JSON Metadata Index

Concrete implementation of IMetadataIndex persisting the whole mapping as
one JSON snapshot file. Snapshots are replaced atomically: the new
content is written to a temporary file in the same directory, flushed to
disk, then renamed over the previous snapshot.
"""

import json
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional

from domain.errors import CorruptStateError, WriteError
from domain.file_sharing.entities import ObjectRecord
from domain.file_sharing.repositories import IMetadataIndex

from .index_lock import ConfirmHeld, IndexLock, ThreadIndexLock

logger = logging.getLogger(__name__)


class JsonMetadataIndex(IMetadataIndex):
    """
    JSON-file implementation of IMetadataIndex.

    Snapshot layout: a JSON object keyed by object id, each value the
    record's camelCase dictionary (see ObjectRecord.to_dict).

    Thread Safety:
        Every public operation runs under the injected IndexLock. Readers
        hold it only while reading the file, which gives them a consistent
        snapshot without waiting on anything but an in-flight save.
    """

    def __init__(self, snapshot_path: str, lock: Optional[IndexLock] = None):
        """
        Initialize the JSON metadata index.

        Args:
            snapshot_path: Path of the snapshot file
            lock: Lock shared by all mutators (default: in-process lock)
        """
        self.snapshot_path = Path(snapshot_path)
        self.lock = lock or ThreadIndexLock()
        self.snapshot_path.parent.mkdir(parents=True, exist_ok=True)

    def load(self) -> Dict[str, ObjectRecord]:
        with self.lock.hold():
            return self._read_snapshot()

    def save(self, records: Dict[str, ObjectRecord]) -> None:
        with self.lock.hold() as confirm_held:
            self._write_snapshot(records, confirm_held)

    @contextmanager
    def mutate(self) -> Iterator[Dict[str, ObjectRecord]]:
        with self.lock.hold() as confirm_held:
            records = self._read_snapshot()
            before = dict(records)

            yield records

            if records != before:
                self._write_snapshot(records, confirm_held)

    # Snapshot I/O, callers must hold the lock

    def _read_snapshot(self) -> Dict[str, ObjectRecord]:
        try:
            return self._parse_snapshot()
        except CorruptStateError as e:
            logger.error(f"Metadata snapshot unreadable, treating index as empty: {e}")
            return {}

    def _parse_snapshot(self) -> Dict[str, ObjectRecord]:
        """
        Parse the snapshot file.

        Raises:
            CorruptStateError: If the file exists but is not a valid snapshot
        """
        try:
            raw = self.snapshot_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except (OSError, UnicodeDecodeError) as e:
            raise CorruptStateError(f"Cannot read {self.snapshot_path.name}: {e}", e) from e

        if not raw.strip():
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptStateError(f"Invalid JSON in {self.snapshot_path.name}: {e}", e) from e

        if not isinstance(data, dict):
            raise CorruptStateError(
                f"Snapshot root must be an object, got {type(data).__name__}"
            )

        records = {}
        for object_id, entry in data.items():
            try:
                record = ObjectRecord.from_dict(entry)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Skipping malformed metadata record {object_id!r}: {e}")
                continue
            records[record.id] = record

        return records

    def _write_snapshot(self, records: Dict[str, ObjectRecord], confirm_held: ConfirmHeld) -> None:
        payload = {object_id: record.to_dict() for object_id, record in records.items()}
        directory = self.snapshot_path.parent
        tmp_path = None

        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=directory,
                prefix=f".{self.snapshot_path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_path = tmp.name
                json.dump(payload, tmp, indent=2)
                tmp.flush()
                os.fsync(tmp.fileno())

            confirm_held()
            os.replace(tmp_path, self.snapshot_path)
            tmp_path = None
        except (OSError, TypeError, ValueError) as e:
            raise WriteError(f"Failed to write metadata snapshot: {e}", e) from e
        finally:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    logger.warning(f"Could not remove temporary snapshot {tmp_path}")

    def is_readable(self) -> bool:
        """
        Check that the snapshot is either absent or parseable.

        Used by the health endpoint; never raises.
        """
        try:
            with self.lock.hold():
                self._parse_snapshot()
            return True
        except (CorruptStateError, WriteError):
            return False

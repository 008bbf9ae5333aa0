"""
Metadata Index Interface

Abstract interface for the object metadata index. The index is the single
owner of the id -> ObjectRecord mapping; no other component reads or
writes the persisted snapshot directly.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Dict, Optional

from .entities import ObjectRecord


class IMetadataIndex(ABC):
    """
    Interface for the persisted metadata mapping.

    Contract Guarantees:
    - The whole mapping is loaded and saved as one snapshot
    - Every read-modify-write cycle runs under one mutual-exclusion
      section, so concurrent mutators never lose updates
    - load() never raises for a missing or corrupt snapshot; it returns
      an empty mapping and logs the corruption
    - save() replaces the previous snapshot atomically; a failed save
      leaves the previous snapshot readable
    """

    @abstractmethod
    def load(self) -> Dict[str, ObjectRecord]:
        """
        Reconstruct the full mapping from persisted state.

        Returns:
            Mapping of object id to record; empty if no state exists or it
            is unreadable
        """
        pass  # pragma: no cover

    @abstractmethod
    def save(self, records: Dict[str, ObjectRecord]) -> None:
        """
        Persist the full mapping, replacing prior state.

        Raises:
            WriteError: If the snapshot cannot be written
        """
        pass  # pragma: no cover

    @abstractmethod
    def mutate(self) -> AbstractContextManager:
        """
        Hold the index lock across one load-mutate-save cycle.

        Yields the loaded mapping; changes made to it are persisted once
        when the block exits normally. Nothing is saved if the block
        raises or leaves the mapping unchanged.

        Example:
            >>> with index.mutate() as records:
            ...     records.pop(object_id, None)
        """
        pass  # pragma: no cover

    def get(self, object_id: str) -> Optional[ObjectRecord]:
        """
        Retrieve one record by id.

        Returns:
            ObjectRecord if found, None otherwise
        """
        return self.load().get(object_id)

    def upsert(self, record: ObjectRecord) -> None:
        """
        Insert or replace one record.

        Raises:
            WriteError: If the snapshot cannot be written
        """
        with self.mutate() as records:
            records[record.id] = record

    def remove(self, object_id: str) -> bool:
        """
        Remove one record.

        Returns:
            True if a record was removed, False if the id was unknown
        """
        with self.mutate() as records:
            return records.pop(object_id, None) is not None

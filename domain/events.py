"""
Domain Events

Immutable records of significant state changes in the object lifecycle.
Events decouple side effects (logging) from core business logic.
"""

from abc import ABC
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict


@dataclass(frozen=True)
class DomainEvent(ABC):
    """
    Base class for all domain events.

    Attributes:
        aggregate_id: ID of the object that generated the event
        occurred_at: Timestamp when the event occurred
    """
    aggregate_id: str
    occurred_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert event to dictionary for serialization.

        Returns:
            Dictionary representation of the event
        """
        return {
            "event_type": self.__class__.__name__,
            "aggregate_id": self.aggregate_id,
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass(frozen=True)
class ObjectUploadedEvent(DomainEvent):
    """
    Event emitted when an upload commits both blob and metadata.

    Attributes:
        aggregate_id: Object ID
        occurred_at: Commit time (equal to the record's created_at)
        original_name: Filename as supplied by the client
        size_bytes: Stored byte length
    """
    original_name: str
    size_bytes: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict.update({
            "original_name": self.original_name,
            "size_bytes": self.size_bytes,
        })
        return base_dict


@dataclass(frozen=True)
class UploadFailedEvent(DomainEvent):
    """
    Event emitted when an upload is rejected or aborted.

    aggregate_id is the storage key that was generated for the attempt,
    or an empty string when validation failed before one was generated.
    """
    error_message: str
    error_category: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict.update({
            "error_message": self.error_message,
            "error_category": self.error_category,
        })
        return base_dict


@dataclass(frozen=True)
class ObjectExpiredEvent(DomainEvent):
    """
    Event emitted when the garbage collector reclaims an object.

    Attributes:
        aggregate_id: Object ID
        occurred_at: Sweep time
        created_at: Original upload time
        blob_deleted: False when the blob delete failed and was skipped
    """
    created_at: datetime
    blob_deleted: bool

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict.update({
            "created_at": self.created_at.isoformat(),
            "blob_deleted": self.blob_deleted,
        })
        return base_dict


@dataclass(frozen=True)
class SweepCompletedEvent(DomainEvent):
    """Event emitted after every garbage collection sweep."""
    expired_count: int
    orphans_removed: int
    error_count: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict.update({
            "expired_count": self.expired_count,
            "orphans_removed": self.orphans_removed,
            "error_count": self.error_count,
        })
        return base_dict

"""
File Sharing Entities

Domain entities for shared object metadata.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict


DEFAULT_MIME_TYPE = "application/octet-stream"


def utcnow() -> datetime:
    """Timezone-aware current UTC time; the default clock everywhere."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ObjectRecord:
    """
    Metadata record for one shared object.

    The id doubles as the storage key of the blob. File and share URLs
    are not part of the record: they depend on the host serving the
    request and are derived at read time.
    """
    id: str
    original_name: str
    mime_type: str
    size_bytes: int
    created_at: datetime

    def __post_init__(self):
        if self.size_bytes < 0:
            raise ValueError(f"size_bytes must be non-negative, got {self.size_bytes}")
        if self.created_at.tzinfo is None:
            raise ValueError("created_at must be timezone-aware")

    @property
    def storage_key(self) -> str:
        return self.id

    def expires_at(self, retention: timedelta) -> datetime:
        """
        Get the deadline after which the object is expired.

        Args:
            retention: Retention window

        Returns:
            created_at + retention
        """
        return self.created_at + retention

    def is_expired(self, now: datetime, retention: timedelta) -> bool:
        """
        Check if the object's age exceeds the retention window.

        The object is still live at exactly the deadline and expired any
        time after it.

        Args:
            now: Current time
            retention: Retention window

        Returns:
            True if expired, False otherwise
        """
        return now - self.created_at > retention

    def get_remaining_seconds(self, now: datetime, retention: timedelta) -> int:
        """
        Get remaining seconds until expiration.

        Returns:
            Seconds remaining (0 if expired)
        """
        remaining = self.expires_at(retention) - now
        return max(0, int(remaining.total_seconds()))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "originalName": self.original_name,
            "mimeType": self.mime_type,
            "sizeBytes": self.size_bytes,
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ObjectRecord":
        """
        Create ObjectRecord from dictionary.

        Raises:
            KeyError, TypeError, ValueError: If the data is malformed
        """
        created_at = datetime.fromisoformat(data["createdAt"])
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)

        return cls(
            id=str(data["id"]),
            original_name=str(data["originalName"]),
            mime_type=str(data.get("mimeType") or DEFAULT_MIME_TYPE),
            size_bytes=int(data["sizeBytes"]),
            created_at=created_at,
        )

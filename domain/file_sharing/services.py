"""
File Sharing Services

Domain service for time-based reclamation of shared objects.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from domain.errors import WriteError
from domain.events import ObjectExpiredEvent, SweepCompletedEvent

from .entities import ObjectRecord, utcnow
from .repositories import IMetadataIndex
from .storage_repository import IBlobStore

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    """Outcome of one garbage collection sweep."""
    started_at: datetime
    expired_ids: List[str] = field(default_factory=list)
    orphans_removed: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def expired_count(self) -> int:
        return len(self.expired_ids)

    def to_dict(self) -> dict:
        return {
            "started_at": self.started_at.isoformat(),
            "expired_count": self.expired_count,
            "expired_ids": list(self.expired_ids),
            "orphans_removed": self.orphans_removed,
            "errors": list(self.errors),
        }


class GarbageCollector:
    """
    Deletes every object whose age exceeds the retention window.

    A sweep holds the index lock for its whole enumeration, so it is
    serialized against uploads like any other mutator. Expired blobs are
    deleted best-effort and the index is rewritten once per sweep.
    Blobs with no index entry and abandoned partial uploads older than the
    retention window are reclaimed in the same pass.
    """

    def __init__(
        self,
        metadata_index: IMetadataIndex,
        blob_store: IBlobStore,
        retention: timedelta,
        clock: Callable[[], datetime] = utcnow,
        event_publisher=None,
        file_clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize GarbageCollector.

        Args:
            metadata_index: Index to enumerate and prune
            blob_store: Store holding the object bytes
            retention: Retention window measured from created_at
            clock: Source of the current time for record expiry
            event_publisher: Optional publisher for lifecycle events
            file_clock: Wall clock compared against file modification
                times when reclaiming orphans; must track real time
        """
        if retention <= timedelta(0):
            raise ValueError("retention must be positive")

        self.metadata_index = metadata_index
        self.blob_store = blob_store
        self.retention = retention
        self._clock = clock
        self._file_clock = file_clock
        self._event_publisher = event_publisher

    def sweep(self) -> SweepReport:
        """
        Run one enumerate-and-delete cycle.

        Returns:
            SweepReport with the reclaimed ids and any non-fatal errors

        Raises:
            WriteError: If the pruned index cannot be persisted; the
                previous snapshot stays intact and the next sweep retries
        """
        now = self._clock()
        report = SweepReport(started_at=now)
        expired: List[ObjectRecord] = []
        failed_blob_ids = set()

        with self.metadata_index.mutate() as records:
            for object_id, record in list(records.items()):
                if not record.is_expired(now, self.retention):
                    continue

                if not self._delete_blob(record.storage_key, report):
                    failed_blob_ids.add(object_id)

                del records[object_id]
                expired.append(record)
                report.expired_ids.append(object_id)

            live_keys = {record.storage_key for record in records.values()}
            report.orphans_removed = self._reclaim_orphans(live_keys, report)

        if report.expired_ids:
            logger.info(
                f"Sweep removed {report.expired_count} expired object(s), "
                f"{report.orphans_removed} orphan(s)"
            )

        self._publish_events(now, expired, failed_blob_ids, report)
        return report

    def _delete_blob(self, key: str, report: SweepReport) -> bool:
        try:
            self.blob_store.delete(key)
            return True
        except (WriteError, OSError) as e:
            error_msg = f"Failed to delete blob {key}: {e}"
            report.errors.append(error_msg)
            logger.warning(error_msg)
            return False

    def _reclaim_orphans(self, live_keys: set, report: SweepReport) -> int:
        """
        Remove blobs no record refers to, and stale partial writes.

        Only files older than the retention window are touched, which
        leaves alone a blob whose upload has not committed its record yet.
        """
        cutoff = self._file_clock() - self.retention
        count = 0

        try:
            for key, modified_at in self.blob_store.iter_blobs():
                if key in live_keys or modified_at > cutoff:
                    continue
                if self._delete_blob(key, report):
                    logger.info(f"Removed orphaned blob: {key}")
                    count += 1

            count += self.blob_store.discard_partials(older_than=cutoff)
        except OSError as e:
            error_msg = f"Error scanning blob storage for orphans: {e}"
            report.errors.append(error_msg)
            logger.warning(error_msg)

        return count

    def _publish_events(
        self,
        now: datetime,
        expired: List[ObjectRecord],
        failed_blob_ids: set,
        report: SweepReport,
    ) -> None:
        if self._event_publisher is None:
            return

        for record in expired:
            self._event_publisher.publish(
                ObjectExpiredEvent(
                    aggregate_id=record.id,
                    occurred_at=now,
                    created_at=record.created_at,
                    blob_deleted=record.id not in failed_blob_ids,
                )
            )

        self._event_publisher.publish(
            SweepCompletedEvent(
                aggregate_id="sweep",
                occurred_at=now,
                expired_count=report.expired_count,
                orphans_removed=report.orphans_removed,
                error_count=len(report.errors),
            )
        )

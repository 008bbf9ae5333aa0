"""
Logging Event Handler

Infrastructure event handler for logging domain events.
Domain layer remains unaware of logging infrastructure.
"""

import logging

from domain.events import (
    DomainEvent,
    ObjectExpiredEvent,
    ObjectUploadedEvent,
    SweepCompletedEvent,
    UploadFailedEvent,
)


class LoggingEventHandler:
    """
    Infrastructure event handler for logging domain events.

    Subscribes to domain events and logs them at a level matching their
    significance.
    """

    def __init__(self, logger: logging.Logger):
        """
        Initialize with logger instance.

        Args:
            logger: Python logging.Logger instance
        """
        self.logger = logger

    def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event by logging it.

        Args:
            event: Domain event to log
        """
        if isinstance(event, ObjectUploadedEvent):
            self.logger.info(
                f"Object uploaded: id={event.aggregate_id}, "
                f"name={event.original_name!r}, size={event.size_bytes} bytes"
            )
        elif isinstance(event, UploadFailedEvent):
            self.logger.warning(
                f"Upload failed: key={event.aggregate_id or '-'}, "
                f"category={event.error_category}, error={event.error_message}"
            )
        elif isinstance(event, ObjectExpiredEvent):
            self.logger.info(
                f"Object expired: id={event.aggregate_id}, "
                f"created_at={event.created_at.isoformat()}, blob_deleted={event.blob_deleted}"
            )
        elif isinstance(event, SweepCompletedEvent):
            # Idle sweeps run every interval, keep them out of INFO
            level = logging.INFO if event.expired_count or event.orphans_removed else logging.DEBUG
            if event.error_count:
                level = logging.WARNING
            self.logger.log(
                level,
                f"Sweep completed: expired={event.expired_count}, "
                f"orphans={event.orphans_removed}, errors={event.error_count}",
            )
        else:
            self.logger.debug(
                f"Unhandled event: {event.__class__.__name__} "
                f"(aggregate_id={event.aggregate_id})"
            )

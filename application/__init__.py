"""
Application Services Layer

Orchestrates domain services and coordinates use cases.
"""

from .event_publisher import EventPublisher
from .share_service import ShareService
from .sweep_scheduler import SweepScheduler
from .upload_service import UploadResult, UploadService

__all__ = [
    'EventPublisher',
    'ShareService',
    'SweepScheduler',
    'UploadResult',
    'UploadService',
]

"""
File Sharing Domain

Shared object metadata, storage contracts, and expiry-based reclamation.
"""

from .entities import ObjectRecord, utcnow
from .repositories import IMetadataIndex
from .services import GarbageCollector, SweepReport
from .storage_repository import IBlobStore
from .value_objects import InvalidObjectKeyError, ObjectKey, sanitize_filename

__all__ = [
    "ObjectRecord",
    "ObjectKey",
    "IMetadataIndex",
    "IBlobStore",
    "GarbageCollector",
    "SweepReport",
    "InvalidObjectKeyError",
    "sanitize_filename",
    "utcnow",
]

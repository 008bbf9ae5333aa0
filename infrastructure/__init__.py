"""Infrastructure layer: filesystem storage, metadata snapshot and locks."""

from .index_lock import IndexLock, RedisIndexLock, ThreadIndexLock
from .json_metadata_index import JsonMetadataIndex
from .local_blob_store import LocalBlobStore

__all__ = [
    'IndexLock',
    'RedisIndexLock',
    'ThreadIndexLock',
    'JsonMetadataIndex',
    'LocalBlobStore',
]

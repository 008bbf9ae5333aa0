"""
Metadata Index Locks

Mutual-exclusion sections guarding the metadata snapshot. Every
read-modify-write cycle on the index runs inside exactly one of these.

hold() yields a confirm_held callable. Writers call it right before
replacing the snapshot; it raises IndexLockTimeout if exclusive ownership
was lost in the meantime.
"""

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Callable, Iterator

from redis.exceptions import LockError, RedisError

from domain.errors import IndexLockTimeout

logger = logging.getLogger(__name__)

ConfirmHeld = Callable[[], None]

# Longest a sweep may hold the lock; kept above the Celery hard time limit
DEFAULT_LEASE_SECONDS = 300.0


class IndexLock(ABC):
    """Lock that serializes all mutations of the metadata index."""

    @abstractmethod
    def hold(self) -> Iterator[ConfirmHeld]:
        """
        Context manager holding the lock for the duration of the block.

        Yields:
            Callable raising IndexLockTimeout if the lock is no longer held

        Raises:
            IndexLockTimeout: If the lock cannot be acquired in time
        """
        pass  # pragma: no cover


def _always_held() -> None:
    pass


class ThreadIndexLock(IndexLock):
    """
    In-process lock for a single server process.

    Sufficient when request handlers and the sweep thread share one
    process, which is the default deployment. Never lost once acquired.
    """

    def __init__(self, timeout: float = 30.0):
        self._lock = threading.Lock()
        self.timeout = timeout

    @contextmanager
    def hold(self) -> Iterator[ConfirmHeld]:
        if not self._lock.acquire(timeout=self.timeout):
            raise IndexLockTimeout(
                f"Timed out after {self.timeout}s waiting for the metadata index lock"
            )
        try:
            yield _always_held
        finally:
            self._lock.release()


class RedisIndexLock(IndexLock):
    """
    Distributed lock backed by Redis.

    Required when the sweep runs in a Celery worker process: the worker
    and the web process then share one lock instead of one each.

    Attributes:
        name: Redis key of the lock
        lease_seconds: Lock auto-expiry, bounds how long a crashed holder
            blocks everyone else; must exceed the longest holder
        blocking_timeout: Maximum seconds to wait for acquisition
    """

    def __init__(
        self,
        redis_client,
        name: str = "droplink:metadata-index:lock",
        lease_seconds: float = DEFAULT_LEASE_SECONDS,
        blocking_timeout: float = 30.0,
    ):
        self._client = redis_client
        self.name = name
        self.lease_seconds = lease_seconds
        self.blocking_timeout = blocking_timeout

    @contextmanager
    def hold(self) -> Iterator[ConfirmHeld]:
        lock = self._client.lock(
            self.name,
            timeout=self.lease_seconds,
            blocking_timeout=self.blocking_timeout,
        )

        try:
            acquired = lock.acquire()
        except RedisError as e:
            raise IndexLockTimeout(f"Could not reach Redis for index lock: {e}", e) from e

        if not acquired:
            raise IndexLockTimeout(
                f"Timed out after {self.blocking_timeout}s waiting for lock {self.name}"
            )

        def confirm_held() -> None:
            try:
                owned = lock.owned()
            except RedisError as e:
                raise IndexLockTimeout(f"Could not confirm lock {self.name}: {e}", e) from e
            if not owned:
                raise IndexLockTimeout(
                    f"Lease on {self.name} ran out after {self.lease_seconds}s; "
                    f"refusing to write a stale snapshot"
                )

        try:
            yield confirm_held
        finally:
            try:
                lock.release()
            except LockError as e:
                logger.warning(f"Index lock {self.name} expired before release: {e}")

"""
Per-resource locking.

GPA and standing are derived by load -> mutate -> save sequences against a
student record. Two of those running for the same student would lose one
update, so every such sequence runs under the student's lock.
"""

import logging
import threading
import time
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from ..core.exceptions import ConcurrencyError

logger = logging.getLogger(__name__)


def student_resource(student_id: str) -> str:
    """Lock key serialising writes to one student's GPA and standing."""
    return f"student:{student_id}"


@dataclass
class LockInfo:
    """Information about a held lock."""
    resource_id: str
    holder_id: int
    acquired_at: float
    depth: int = 1


class ConcurrencyManager:
    """Hands out one re-entrant lock per resource id."""

    def __init__(self, default_timeout: Optional[float] = 5.0):
        self._default_timeout = default_timeout
        self._locks: Dict[str, threading.RLock] = defaultdict(threading.RLock)
        self._holders: Dict[str, LockInfo] = {}
        # Threads between looking a lock up and finishing their acquire attempt
        self._pending: Dict[str, int] = defaultdict(int)
        self._lock = threading.Lock()

    def _lock_for(self, resource_id: str) -> threading.RLock:
        with self._lock:
            self._pending[resource_id] += 1
            return self._locks[resource_id]

    def acquire_lock(self, resource_id: str, timeout: Optional[float] = None) -> None:
        """Acquire the lock on a resource, waiting at most ``timeout`` seconds."""
        timeout = self._default_timeout if timeout is None else timeout
        resource_lock = self._lock_for(resource_id)
        holder_id = threading.get_ident()
        acquired = False
        try:
            acquired = resource_lock.acquire(timeout=timeout) if timeout is not None else resource_lock.acquire()
        finally:
            with self._lock:
                self._pending[resource_id] -= 1
                if not self._pending[resource_id]:
                    del self._pending[resource_id]
                if acquired:
                    info = self._holders.get(resource_id)
                    if info is not None and info.holder_id == holder_id:
                        info.depth += 1
                    else:
                        self._holders[resource_id] = LockInfo(resource_id, holder_id, time.time())
                elif resource_id not in self._pending and resource_id not in self._holders:
                    self._locks.pop(resource_id, None)
        if not acquired:
            logger.warning("Lock timeout on %s after %ss", resource_id, timeout)
            raise ConcurrencyError(
                f"Timed out after {timeout}s waiting for lock on {resource_id}",
                details={'resource_id': resource_id, 'timeout': timeout}
            )

    def release_lock(self, resource_id: str) -> None:
        """Release a lock held by the calling thread."""
        with self._lock:
            info = self._holders.get(resource_id)
            if info is None or info.holder_id != threading.get_ident():
                raise ConcurrencyError(
                    f"Lock on {resource_id} is not held by this thread",
                    details={'resource_id': resource_id}
                )
            info.depth -= 1
            resource_lock = self._locks[resource_id]
            if info.depth == 0:
                del self._holders[resource_id]
                if resource_id not in self._pending:
                    del self._locks[resource_id]
        resource_lock.release()

    @contextmanager
    def lock(self, resource_id: str, timeout: Optional[float] = None) -> Iterator[None]:
        """Context manager for acquiring and releasing a resource lock."""
        self.acquire_lock(resource_id, timeout)
        try:
            yield
        finally:
            self.release_lock(resource_id)

    def is_locked(self, resource_id: str) -> bool:
        with self._lock:
            return resource_id in self._holders

    def get_lock_info(self) -> List[LockInfo]:
        """Get information about all currently held locks."""
        with self._lock:
            return list(self._holders.values())

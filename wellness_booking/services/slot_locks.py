"""
Per-service serialization for hold creation.
Keeps the conflict check and the insert of a hold from interleaving with
another request for the same service.

Locks only cover engines holding the same registry object: pass one shared
registry to every BookingEngine in a process. Separate processes fall back to
the unique (service, start) constraint, which catches identical starts but
not overlapping ones.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator

logger = logging.getLogger(__name__)


class SlotLockRegistry:
    """Lazily created mutex per service ID, shared by every engine given this registry"""

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, service_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(service_id)
            if lock is None:
                lock = self._locks[service_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, service_ids: Iterable[str]) -> Iterator[None]:
        """
        Acquire the locks for all given services.

        Locks are taken in sorted order so bundle requests sharing services
        cannot deadlock each other.

        Raises:
            TimeoutError: If a lock is not acquired within ``timeout`` seconds
        """
        acquired = []
        try:
            for service_id in sorted(set(service_ids)):
                lock = self._lock_for(service_id)
                if not lock.acquire(timeout=self.timeout):
                    logger.error(f"Timed out waiting for hold lock on {service_id}")
                    raise TimeoutError(f"Could not lock service {service_id}")
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()

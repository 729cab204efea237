from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from slotbook.application.exceptions import BookingTimeout


class ProviderLocks:
    """One exclusive section per provider. Different providers never share a lock."""

    def __init__(self, timeout_seconds: float = 10.0) -> None:
        self._timeout = timeout_seconds
        self._locks: dict[str, threading.Lock] = {}
        self._lock_lock = threading.Lock()  # guards the locks dict

    def _get_lock(self, provider_id: str) -> threading.Lock:
        with self._lock_lock:
            if provider_id not in self._locks:
                self._locks[provider_id] = threading.Lock()
            return self._locks[provider_id]

    @contextmanager
    def hold(self, provider_id: str) -> Iterator[None]:
        lock = self._get_lock(provider_id)
        if not lock.acquire(timeout=self._timeout):
            raise BookingTimeout(f"Calendar for provider {provider_id} is busy, retry shortly")
        try:
            yield
        finally:
            lock.release()

"""
Stats Cache
===========

In-process cache for the dashboard statistics.

Entries expire after a TTL and are dropped on every contact write. A
version counter keeps a computation that raced with a write from being
stored.
"""

import threading
from datetime import datetime, timedelta
from typing import Optional

from intake.contacts.application import IStatsCache
from intake.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class StatsCache(IStatsCache):
    """Thread-safe single-entry TTL cache."""

    def __init__(self, ttl_seconds: int = 300):
        self._ttl = timedelta(seconds=ttl_seconds)
        self._lock = threading.Lock()
        self._value: Optional[dict] = None
        self._stored_at: Optional[datetime] = None
        self._version = 0

    @property
    def version(self) -> int:
        with self._lock:
            return self._version

    def get(self, now: datetime) -> Optional[dict]:
        with self._lock:
            if self._value is None or self._stored_at is None:
                return None
            if now - self._stored_at >= self._ttl:
                self._value = None
                self._stored_at = None
                return None
            return self._value

    def put(self, value: dict, now: datetime, version: int) -> None:
        with self._lock:
            if version != self._version:
                logger.debug(
                    "Discarding stale stats",
                    extra={"computed_version": version, "current_version": self._version}
                )
                return
            self._value = value
            self._stored_at = now

    def invalidate(self) -> None:
        with self._lock:
            self._version += 1
            self._value = None
            self._stored_at = None

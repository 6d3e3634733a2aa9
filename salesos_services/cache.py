"""
salesos_services.cache -- Injectable in-process TTL cache and its sweeper.

Responsibility:
    Hold read-through copies of accounting-platform data (contacts,
    branding themes) for a short time.  Entries expire lazily on read; a
    ``CacheSweeper`` thread can additionally purge expired entries on an
    interval so memory stays bounded for keys that are never read again.

Architecture position:
    Services -- imperative shell.  Caches are constructed and passed to the
    directories that use them; there is no module-level cache.

Invariants enforced:
    - An entry older than ``ttl_seconds`` is never returned.
    - Time comes from the injected Clock.
    - All operations are safe to call from the sweeper thread and request
      threads at once.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Generic, Hashable, TypeVar

from salesos_kernel.domain.clock import Clock, SystemClock
from salesos_kernel.logging_config import get_logger

logger = get_logger("services.cache")

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass(frozen=True)
class _Entry(Generic[V]):
    value: V
    stored_at: datetime


class TTLCache(Generic[K, V]):
    """Key/value cache whose entries expire ``ttl_seconds`` after ``put``."""

    def __init__(self, ttl_seconds: float, clock: Clock | None = None, name: str = "cache"):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock or SystemClock()
        self._name = name
        self._entries: dict[K, _Entry[V]] = {}
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    def _is_expired(self, entry: _Entry[V], now: datetime) -> bool:
        return now - entry.stored_at >= self._ttl

    def get(self, key: K) -> V | None:
        now = self._clock.now_utc()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._is_expired(entry, now):
                del self._entries[key]
                return None
            return entry.value

    def put(self, key: K, value: V) -> None:
        now = self._clock.now_utc()
        with self._lock:
            self._entries[key] = _Entry(value=value, stored_at=now)

    def age_seconds(self, key: K) -> float | None:
        """Seconds since ``key`` was stored, or None when absent."""
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return None
        return (self._clock.now_utc() - entry.stored_at).total_seconds()

    def invalidate(self, key: K) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def sweep(self) -> int:
        """Remove every expired entry.  Returns how many were removed."""
        now = self._clock.now_utc()
        with self._lock:
            expired = [k for k, e in self._entries.items() if self._is_expired(e, now)]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("cache_swept", extra={"cache": self._name, "removed": len(expired)})
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return self.get(key) is not None  # type: ignore[arg-type]


class CacheSweeper:
    """Background thread that calls ``sweep()`` on caches at an interval."""

    def __init__(self, caches: list[TTLCache], interval_seconds: float = 600.0):
        self._caches = list(caches)
        self._interval = interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def tick(self) -> int:
        """Sweep every cache once (public for testing).

        Returns the total number of entries removed.
        """
        return sum(cache.sweep() for cache in self._caches)

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="cache-sweeper",
            daemon=True,
        )
        self._thread.start()
        logger.info(
            "cache_sweeper_started",
            extra={"interval_seconds": self._interval, "caches": len(self._caches)},
        )

    def stop(self, timeout: float = 5.0) -> None:
        """Signal stop and wait for the thread to finish."""
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        logger.info("cache_sweeper_stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run_loop(self) -> None:
        while not self._stop_event.wait(timeout=self._interval):
            try:
                self.tick()
            except Exception:
                logger.exception("cache_sweep_failed")

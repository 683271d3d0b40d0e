"""Lifetime counters and the cached node-info snapshot for an upstream."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class UpstreamStats:
    """Point-in-time copy of an upstream's lifetime counters."""

    accepts: int = 0
    rejects: int = 0
    last_submission_at: int = 0  # Unix seconds, 0 if nothing submitted yet
    fails_count: int = 0

    @property
    def total_submissions(self) -> int:
        """Total block submissions recorded."""
        return self.accepts + self.rejects


class UpstreamCounters:
    """
    Monotonic telemetry counters for one upstream.

    Thread Safety:
        Uses its own threading.Lock, independent of the health record lock.
        No ordering is guaranteed between a counter update and a concurrent
        health transition.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._accepts = 0
        self._rejects = 0
        self._last_submission_at = 0
        self._fails_count = 0

    def record_accepted(self) -> None:
        """Record an accepted block submission."""
        now = int(time.time())
        with self._lock:
            self._accepts += 1
            self._last_submission_at = now

    def record_rejected(self) -> None:
        """Record a rejected block submission."""
        now = int(time.time())
        with self._lock:
            self._rejects += 1
            self._last_submission_at = now

    def record_failure_streak(self) -> None:
        """Record the start of a failure streak."""
        with self._lock:
            self._fails_count += 1

    def snapshot(self) -> UpstreamStats:
        """Get a consistent copy of all counters."""
        with self._lock:
            return UpstreamStats(
                accepts=self._accepts,
                rejects=self._rejects,
                last_submission_at=self._last_submission_at,
                fails_count=self._fails_count,
            )


class SnapshotCache(Generic[T]):
    """
    Holds the most recently published immutable value.

    Readers never take a lock. store() swaps a single reference, which
    CPython performs atomically, so a reader sees either the previous value
    or the new one in full. Values must be immutable (frozen models).
    """

    def __init__(self):
        self._value: Optional[T] = None

    def store(self, value: Optional[T]) -> None:
        """Publish a new value, replacing the previous one wholesale."""
        self._value = value

    def load(self) -> Optional[T]:
        """Get the most recently published value, or None."""
        return self._value

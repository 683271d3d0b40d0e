"""Sick/alive health tracking for a single upstream.

States:
- ALIVE: Normal operation, work may be routed to the upstream
- SICK: SICK_THRESHOLD consecutive failures seen, callers should avoid it

An upstream leaves SICK only after SICK_THRESHOLD consecutive successful
liveness checks. Ordinary successful calls do not count as successes.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from loguru import logger

from xmr_pool_rpc.rpc.constants import SICK_THRESHOLD


class ReadWriteLock:
    """
    Lock allowing many concurrent readers or a single writer.

    Writers wait for active readers to drain; new readers wait while a
    writer is waiting so a steady stream of readers cannot starve it.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        """Hold the lock in shared mode."""
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        """Hold the lock in exclusive mode."""
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


@dataclass(frozen=True)
class HealthSnapshot:
    """Point-in-time copy of the health record."""

    sick: bool = False
    sick_rate: int = 0
    success_rate: int = 0


class UpstreamHealth:
    """
    Health record of one upstream: the sick flag plus both streak counters.

    All three fields are only touched under a single read/write lock, so a
    reader never sees a flag that disagrees with the counters.
    """

    def __init__(self, name: str, threshold: int = SICK_THRESHOLD):
        self.name = name
        self._threshold = threshold
        self._lock = ReadWriteLock()
        self._sick = False
        self._sick_rate = 0
        self._success_rate = 0

    def is_sick(self) -> bool:
        """Check if the upstream is currently sick."""
        with self._lock.read_locked():
            return self._sick

    def snapshot(self) -> HealthSnapshot:
        """Get a consistent copy of the flag and counters."""
        with self._lock.read_locked():
            return HealthSnapshot(
                sick=self._sick,
                sick_rate=self._sick_rate,
                success_rate=self._success_rate,
            )

    def mark_sick(self) -> bool:
        """
        Record a failure.

        Returns:
            True if this failure started a new failure streak on an alive
            upstream (used for the lifetime failure counter).
        """
        became_sick = False
        with self._lock.write_locked():
            streak_started = not self._sick and self._sick_rate == 0
            self._sick_rate += 1
            self._success_rate = 0
            if self._sick_rate >= self._threshold and not self._sick:
                self._sick = True
                became_sick = True
            sick_rate = self._sick_rate

        if became_sick:
            logger.warning(
                f"Upstream {self.name}: ALIVE -> SICK "
                f"({sick_rate} consecutive failures)"
            )
        return streak_started

    def mark_alive(self) -> None:
        """Record a successful liveness check."""
        recovered = False
        with self._lock.write_locked():
            self._success_rate += 1
            self._sick_rate = 0
            if self._success_rate >= self._threshold:
                recovered = self._sick
                self._sick = False
                self._sick_rate = 0
                self._success_rate = 0

        if recovered:
            logger.info(
                f"Upstream {self.name}: SICK -> ALIVE "
                f"({self._threshold} consecutive successful checks)"
            )

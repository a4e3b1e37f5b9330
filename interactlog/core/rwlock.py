"""
interactlog/core/rwlock.py

Shared/exclusive lock for the ledger.

    read()   — shared. Any number of readers at once.
    write()  — exclusive. Waits for active readers to drain.

A waiting writer blocks new readers from entering, so a steady stream
of reads cannot starve appends. The thread holding the write lock may
also enter read(); observers notified during an append can therefore
query the ledger they are observing. Writes are not reentrant.
Single-process only. No timeouts.
"""

import threading
from contextlib import contextmanager
from typing import Iterator, Optional


class ReadWriteLock:
    """Writer-preferring readers/writer lock built on threading.Condition."""

    def __init__(self) -> None:
        self._cond:            threading.Condition = threading.Condition(threading.Lock())
        self._readers:         int                 = 0
        self._writer:          Optional[int]       = None
        self._writers_waiting: int                 = 0

    # ── Shared ────────────────────────────────────────────────

    def acquire_read(self) -> None:
        with self._cond:
            if self._writer == threading.get_ident():
                self._readers += 1
                return
            while self._writer is not None or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            if self._readers <= 0:
                raise RuntimeError("release_read() called without a matching acquire_read()")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    @contextmanager
    def read(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    # ── Exclusive ─────────────────────────────────────────────

    def acquire_write(self) -> None:
        me = threading.get_ident()
        with self._cond:
            if self._writer == me:
                raise RuntimeError("write lock is not reentrant")
            self._writers_waiting += 1
            try:
                while self._writer is not None or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
                if self._writer is None and not self._writers_waiting:
                    self._cond.notify_all()
            self._writer = me

    def release_write(self) -> None:
        with self._cond:
            if self._writer != threading.get_ident():
                raise RuntimeError("release_write() called by a thread that does not hold the write lock")
            self._writer = None
            self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()

"""
interactlog/core/store.py

JSONL backing store for the ledger.

One canonical JSON object per line:
    {"index":0,"timestamp":100,"user":"0x..."}

Several processes may share one store file. Writers serialise on an
exclusive POSIX file lock (fcntl) taken on a sidecar "<store>.lock"
file; load() takes the same lock shared. Under the exclusive lock a
writer MUST:
  1. sync()    — read every line other writers added since our last
                 look, and repair the tail left by a crashed writer
  2. assign the next index from the now current length
  3. append()  — write, fsync, or roll the file back to its old size

load() and sync() are strict: a malformed line or an index gap before
the tail raises StoreCorruptedError. A torn tail, a final line with no
trailing newline that does not parse, is what an interrupted write
leaves behind. load() skips it with a RuntimeWarning and leaves the file
alone; the next sync() cuts it off. For a forgiving read that reports
problems instead, use ReplayEngine.

POSIX only: fcntl is not available on Windows.
"""

import fcntl
import json
import logging
import os
import threading
import warnings
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator, List, Optional

from interactlog.core.canonical import canonical_line
from interactlog.core.exceptions import StoreCorruptedError, StoreError
from interactlog.core.models import Interaction

logger = logging.getLogger(__name__)


class JsonlStore:
    """Durable, append-only sequence of interactions."""

    def __init__(self, path) -> None:
        self.path      = Path(path)
        self.lock_path = self.path.with_name(self.path.name + ".lock")

        # Bytes and physical lines already consumed by load()/sync().
        self._offset: int = 0
        self._lines:  int = 0

        self._thread_lock: threading.RLock = threading.RLock()
        self._lock_file:   Optional[IO]    = None
        self._lock_depth:  int             = 0

    # ── Locking ───────────────────────────────────────────────

    @contextmanager
    def locked(self) -> Iterator[None]:
        """Hold the store exclusively, across threads and processes."""
        with self._thread_lock:
            if self._lock_depth == 0:
                self._lock_file = self._open_lock(fcntl.LOCK_EX)
            self._lock_depth += 1
            try:
                yield
            finally:
                self._lock_depth -= 1
                if self._lock_depth == 0:
                    self._lock_file.close()
                    self._lock_file = None

    def _open_lock(self, mode: int) -> IO:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        f = open(self.lock_path, "a+b")
        try:
            fcntl.flock(f.fileno(), mode)
        except BaseException:
            f.close()
            raise
        return f

    # ── Read ──────────────────────────────────────────────────

    def load(self) -> List[Interaction]:
        """
        Read every stored interaction in index order. Never writes the
        store file.

        Missing file → empty list. Blank lines are skipped.
        """
        with self._thread_lock:
            self._offset = 0
            self._lines  = 0
            if not self.path.exists():
                return []
            if self._lock_depth:
                return self._read_tail(first_index=0, repair=False)
            lock_file = self._open_lock(fcntl.LOCK_SH)
            try:
                return self._read_tail(first_index=0, repair=False)
            finally:
                lock_file.close()

    def sync(self, first_index: int) -> List[Interaction]:
        """
        Interactions appended by other writers since the last load() or
        sync(). first_index is the index the first of them must carry.

        Call under locked(). Repairs the tail so the next append()
        starts on a clean line.
        """
        if not self.path.exists():
            return []
        return self._read_tail(first_index=first_index, repair=True)

    def _read_tail(self, first_index: int, repair: bool) -> List[Interaction]:
        try:
            with open(self.path, "r+b" if repair else "rb") as f:
                f.seek(self._offset)
                raw = f.read()
                interactions = self._parse(f, raw, first_index, repair)
                if repair:
                    self._terminate(f)
        except OSError as exc:
            raise StoreError(f"Failed to read store: {exc}", {"path": self.path}) from exc

        logger.debug(
            "read %d interaction(s) from %s (offset=%d)",
            len(interactions), self.path, self._offset,
        )
        return interactions

    def _parse(self, f, raw: bytes, first_index: int, repair: bool) -> List[Interaction]:
        interactions: List[Interaction] = []
        lines = raw.splitlines(keepends=True)

        for n, raw_line in enumerate(lines):
            line_start = self._offset
            line_num   = self._lines + 1

            line = raw_line.strip()
            if line:
                try:
                    interaction = Interaction.from_dict(json.loads(line.decode("utf-8")))
                except (UnicodeDecodeError, json.JSONDecodeError, ValueError, TypeError) as exc:
                    torn = n == len(lines) - 1 and not raw_line.endswith(b"\n")
                    if torn:
                        self._discard_torn(f, line_start, exc, repair)
                        break
                    raise StoreCorruptedError(
                        f"Invalid store line: {exc}",
                        {"path": self.path, "line": line_num},
                    ) from exc

                expected = first_index + len(interactions)
                if interaction.index != expected:
                    raise StoreCorruptedError(
                        "Index out of order",
                        {
                            "path":     self.path,
                            "line":     line_num,
                            "expected": expected,
                            "got":      interaction.index,
                        },
                    )
                interactions.append(interaction)

            self._offset += len(raw_line)
            self._lines  += 1

        return interactions

    def _discard_torn(self, f, size: int, cause: Exception, repair: bool) -> None:
        if not repair:
            warnings.warn(
                f"JsonlStore: ignoring torn final line in {self.path}: {cause}",
                RuntimeWarning,
                stacklevel=5,
            )
            return
        warnings.warn(
            f"JsonlStore: discarding torn final line in {self.path}: {cause}",
            RuntimeWarning,
            stacklevel=5,
        )
        f.truncate(size)
        f.flush()
        os.fsync(f.fileno())

    def _terminate(self, f) -> None:
        # A valid last line without a newline; end it before the next append.
        end = f.seek(0, os.SEEK_END)
        if end == 0:
            return
        f.seek(end - 1)
        if f.read(1) != b"\n":
            f.seek(0, os.SEEK_END)
            f.write(b"\n")
            f.flush()
            os.fsync(f.fileno())
            end += 1
        self._offset = end

    # ── Write ─────────────────────────────────────────────────

    def append(self, interaction: Interaction) -> None:
        """
        Write one interaction as a durable line.

        Call under locked(), after sync(). Any failure truncates the file
        back to its size before the write and is then re-raised.
        """
        data = canonical_line(interaction.to_dict()).encode("utf-8")

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "ab", buffering=0) as f:
            size = f.seek(0, os.SEEK_END)
            try:
                _write_all(f, data)
                os.fsync(f.fileno())
            except BaseException:
                self._rollback(f, size)
                raise

        self._offset = size + len(data)
        self._lines += 1

    def _rollback(self, f, size: int) -> None:
        # The write error is the one the caller sees. A line left behind
        # here is either torn (cut off by the next sync()) or complete
        # (adopted by the next sync()), so the index sequence holds.
        try:
            os.ftruncate(f.fileno(), size)
            os.fsync(f.fileno())
        except OSError:
            logger.exception("failed to roll %s back to %d bytes", self.path, size)

    def __repr__(self) -> str:
        return f"JsonlStore(path={str(self.path)!r})"


def _write_all(f, data: bytes) -> None:
    view = memoryview(data)
    while view:
        written = f.write(view)
        view    = view[written:]

"""
interactlog/core/ledger.py

Interaction Ledger

append() MUST, in this exact order, under the write lock:
  1. Read current length           — becomes the new index. With a
                                     store, first take the store lock
                                     and catch up on lines other
                                     processes appended
  2. Build the Interaction         — frozen from here on
  3. Persist to the store          — if one is attached
  4. Push onto the sequence        — only after a confirmed write
  5. Publish the InteractionNotice — fire-and-forget
  6. Return the index

A failure in steps 1–4 leaves the ledger exactly as it was and reaches
the caller unmodified. Step 5 cannot fail the append.

Reads take the shared lock and return fresh lists. No caller ever holds
a reference into the backing sequence.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from interactlog.core.models import (
    Interaction,
    InteractionNotice,
    ZERO_IDENTITY,
)
from interactlog.core.observers import NotificationBus, Observer
from interactlog.core.rwlock import ReadWriteLock
from interactlog.core.store import JsonlStore

logger = logging.getLogger(__name__)


class InteractionLedger:
    """
    Append-only, indexed sequence of interactions.

    Thread-safe: appends are exclusive, reads are shared.
    With a store attached, state survives restarts by reloading it on
    __init__.
    """

    def __init__(
        self,
        store:         Optional[JsonlStore]      = None,
        bus:           Optional[NotificationBus] = None,
        zero_identity: Any                       = ZERO_IDENTITY,
    ) -> None:
        self.store         = store
        self.bus           = bus if bus is not None else NotificationBus()
        self.zero_identity = zero_identity

        self._lock:         ReadWriteLock     = ReadWriteLock()
        self._interactions: List[Interaction] = []

        if self.store is not None:
            self._interactions = self.store.load()
            logger.debug(
                "restored %d interaction(s) from %s",
                len(self._interactions), self.store.path,
            )

    # ── Append ────────────────────────────────────────────────

    def append(self, caller_identity: Any, current_time: int) -> int:
        """
        Record one interaction and return its index.

        Identity and time come from the trusted calling context and are
        stored exactly as given. The time must be an int (not a bool);
        anything else raises TypeError before anything is written.

        Lines picked up from other processes are kept even when this
        append then fails: they are already durable. They are not
        published; only this ledger's own appends are.
        """
        with self._lock.write():
            if self.store is None:
                interaction = self._next(caller_identity, current_time)
            else:
                with self.store.locked():
                    self._interactions.extend(self.store.sync(len(self._interactions)))
                    interaction = self._next(caller_identity, current_time)
                    self.store.append(interaction)

            self._interactions.append(interaction)
            logger.debug(
                "appended interaction #%d user=%s timestamp=%s",
                interaction.index, interaction.user, interaction.timestamp,
            )

            self.bus.publish(InteractionNotice.for_interaction(interaction))

            return interaction.index

    def _next(self, caller_identity: Any, current_time: int) -> Interaction:
        return Interaction(
            user=      caller_identity,
            timestamp= current_time,
            index=     len(self._interactions),
        )

    # ── Reads ─────────────────────────────────────────────────

    def total(self) -> int:
        with self._lock.read():
            return len(self._interactions)

    def all_users(self) -> List[Any]:
        """Every user, in append order."""
        with self._lock.read():
            return [i.user for i in self._interactions]

    def all_timestamps(self) -> List[int]:
        """Every timestamp, in append order."""
        with self._lock.read():
            return [i.timestamp for i in self._interactions]

    def latest(self) -> Tuple[Any, int]:
        """
        (user, timestamp) of the most recent interaction.

        Empty ledger → (zero_identity, 0). That pair is also what a real
        interaction by the zero identity at time 0 looks like; check
        total() to tell an empty ledger apart.
        """
        with self._lock.read():
            if not self._interactions:
                return (self.zero_identity, 0)
            return self._interactions[-1].as_pair()

    def entries(self) -> List[Interaction]:
        with self._lock.read():
            return list(self._interactions)

    def get(self, index: int) -> Optional[Interaction]:
        """Interaction at index, or None if out of range."""
        with self._lock.read():
            if 0 <= index < len(self._interactions):
                return self._interactions[index]
            return None

    def get_stats(self) -> Dict[str, Any]:
        """Return current ledger state snapshot."""
        with self._lock.read():
            interactions = self._interactions
            return {
                "total":           len(interactions),
                "distinct_users":  len({i.user for i in interactions}),
                "first_timestamp": interactions[0].timestamp if interactions else None,
                "last_timestamp":  interactions[-1].timestamp if interactions else None,
                "store":           str(self.store.path) if self.store is not None else None,
                "observers":       len(self.bus.observers),
            }

    def __len__(self) -> int:
        return self.total()

    # ── Notifications ─────────────────────────────────────────

    def subscribe(self, observer: Observer) -> None:
        self.bus.subscribe(observer)

    def unsubscribe(self, observer: Observer) -> None:
        self.bus.unsubscribe(observer)

    def __repr__(self) -> str:
        return f"InteractionLedger(total={self.total()}, store={self.store!r})"


# ── Global Instance Helpers ───────────────────────────────────

_global_ledger: Optional[InteractionLedger] = None


def init_global_ledger(
    store:         Optional[JsonlStore]      = None,
    bus:           Optional[NotificationBus] = None,
    zero_identity: Any                       = ZERO_IDENTITY,
) -> InteractionLedger:
    """
    Initialize and return the process-wide InteractionLedger.
    Safe to call multiple times — replaces the previous in-memory instance.
    Stored interactions are preserved on disk.
    """
    global _global_ledger
    _global_ledger = InteractionLedger(
        store=         store,
        bus=           bus,
        zero_identity= zero_identity,
    )
    return _global_ledger


def get_global_ledger() -> Optional[InteractionLedger]:
    """Return the global InteractionLedger, or None if not yet initialized."""
    return _global_ledger


def reset_global_ledger() -> None:
    """Drop the process-wide ledger. Used at shutdown and between tests."""
    global _global_ledger
    _global_ledger = None

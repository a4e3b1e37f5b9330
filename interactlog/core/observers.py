"""
interactlog/core/observers.py

Notification stream for appended interactions.

The ledger publishes one InteractionNotice per successful append to a
NotificationBus. It does not know who listens. Observers subscribe to
the bus; indexers, monitors and tests are all just observers.

Delivery is synchronous, in subscription order, fire-and-forget: an
observer that raises is logged and skipped. It never undoes the append
and never stops the remaining observers.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Callable, List

from interactlog.core.models import InteractionNotice

logger = logging.getLogger(__name__)


class Observer:
    """
    Observer base class.

    Override notify() to react to appended interactions.
    """

    def __init__(self, observer_id: str):
        self.observer_id = observer_id

    def notify(self, notice: InteractionNotice) -> None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(observer_id={self.observer_id!r})"


class CallbackObserver(Observer):
    """Observer that hands each notice to a plain function."""

    def __init__(self, observer_id: str, callback: Callable[[InteractionNotice], None]):
        super().__init__(observer_id)
        self._callback = callback

    def notify(self, notice: InteractionNotice) -> None:
        self._callback(notice)


class RecordingObserver(Observer):
    """Keeps every notice it receives, in delivery order."""

    def __init__(self, observer_id: str = "recorder"):
        super().__init__(observer_id)
        self._lock = threading.Lock()
        self._notices: List[InteractionNotice] = []

    @property
    def notices(self) -> List[InteractionNotice]:
        with self._lock:
            return list(self._notices)

    def notify(self, notice: InteractionNotice) -> None:
        with self._lock:
            self._notices.append(notice)

    def clear(self) -> None:
        with self._lock:
            self._notices.clear()


class JsonlObserver(Observer):
    """
    Appends each notice to a JSONL file.

    Stands in for an external indexing service tailing the stream.
    """

    def __init__(self, observer_id: str, path):
        super().__init__(observer_id)
        self.path = Path(path)

    def notify(self, notice: InteractionNotice) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(notice.to_dict()) + "\n")


class NotificationBus:
    """Ordered set of observers with synchronous broadcast."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._observers: List[Observer] = []

    @property
    def observers(self) -> List[Observer]:
        with self._lock:
            return list(self._observers)

    def subscribe(self, observer: Observer) -> None:
        """Add an observer. Subscribing the same observer twice is a no-op."""
        with self._lock:
            if observer not in self._observers:
                self._observers.append(observer)

    def unsubscribe(self, observer: Observer) -> None:
        """Remove an observer. Unknown observers are ignored."""
        with self._lock:
            if observer in self._observers:
                self._observers.remove(observer)

    def publish(self, notice: InteractionNotice) -> int:
        """
        Deliver a notice to every current observer.

        Returns the number of observers that accepted it without raising.
        """
        delivered = 0
        for observer in self.observers:
            try:
                observer.notify(notice)
            except Exception:
                logger.exception(
                    "observer %s failed on interaction #%d",
                    observer.observer_id, notice.index,
                )
                continue
            delivered += 1
        return delivered

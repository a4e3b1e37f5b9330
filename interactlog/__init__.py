"""
interactlog/__init__.py

interactlog: append-only interaction ledger.

Any caller records an interaction tagged with its identity and a
timestamp; anyone may enumerate the recorded interactions or read the
aggregate views (count, users, timestamps, latest).
"""

__version__ = "0.1.0"

from interactlog.core.models import (
    EMPTY_LATEST,
    Interaction,
    InteractionNotice,
    ZERO_IDENTITY,
)
from interactlog.core.ledger import (
    InteractionLedger,
    init_global_ledger,
    get_global_ledger,
    reset_global_ledger,
)
from interactlog.core.observers import (
    CallbackObserver,
    JsonlObserver,
    NotificationBus,
    Observer,
    RecordingObserver,
)
from interactlog.core.store import JsonlStore
from interactlog.core.exceptions import (
    ConfigError,
    InteractLogError,
    StoreCorruptedError,
    StoreError,
    UnknownOperationError,
)
from interactlog.core.time import ledger_timestamp
from interactlog.contract import CallContext, InteractionContract, OPERATIONS
from interactlog.config import LedgerConfig, build_ledger

__all__ = [
    # Core types
    "Interaction",
    "InteractionNotice",
    "InteractionLedger",
    "JsonlStore",
    # Notifications
    "Observer",
    "CallbackObserver",
    "RecordingObserver",
    "JsonlObserver",
    "NotificationBus",
    # Boundary
    "CallContext",
    "InteractionContract",
    "OPERATIONS",
    # Config
    "LedgerConfig",
    "build_ledger",
    # Errors
    "InteractLogError",
    "StoreError",
    "StoreCorruptedError",
    "ConfigError",
    "UnknownOperationError",
    # Helpers
    "init_global_ledger",
    "get_global_ledger",
    "reset_global_ledger",
    "ledger_timestamp",
    # Constants
    "ZERO_IDENTITY",
    "EMPTY_LATEST",
]

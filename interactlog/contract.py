"""
interactlog/contract.py

External operation surface of the ledger.

    interact            → InteractionContract.interact(context)
    totalInteractions   → InteractionContract.total_interactions()
    getAllUsers         → InteractionContract.get_all_users()
    getAllTimestamps    → InteractionContract.get_all_timestamps()
    latestInteraction   → InteractionContract.latest_interaction()

None of these take caller-chosen arguments. interact() reads identity
and time from the CallContext, which the hosting environment builds;
callers cannot choose either value for themselves.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Tuple

from interactlog.core.exceptions import UnknownOperationError
from interactlog.core.ledger import InteractionLedger
from interactlog.core.time import ledger_timestamp


OPERATIONS = (
    "interact",
    "totalInteractions",
    "getAllUsers",
    "getAllTimestamps",
    "latestInteraction",
)


@dataclass(frozen=True)
class CallContext:
    """Trusted execution context for one call: who is calling, and when."""

    identity: Any
    clock:    Callable[[], int] = field(default=ledger_timestamp, compare=False)

    def now(self) -> int:
        return self.clock()

    @classmethod
    def fixed(cls, identity: Any, timestamp: int) -> "CallContext":
        """Context whose clock always reads the given timestamp."""
        return cls(identity=identity, clock=lambda: timestamp)


class InteractionContract:
    """Boundary operations over one InteractionLedger."""

    def __init__(self, ledger: InteractionLedger):
        self.ledger = ledger

    def interact(self, context: CallContext) -> int:
        """Record an interaction by the calling identity. Returns its index."""
        return self.ledger.append(context.identity, context.now())

    def total_interactions(self) -> int:
        return self.ledger.total()

    def get_all_users(self) -> List[Any]:
        return self.ledger.all_users()

    def get_all_timestamps(self) -> List[int]:
        return self.ledger.all_timestamps()

    def latest_interaction(self) -> Tuple[Any, int]:
        return self.ledger.latest()

    def call(self, operation: str, context: Optional[CallContext] = None) -> Any:
        """
        Dispatch by external operation name.

        Raises:
            UnknownOperationError — name is not one of OPERATIONS
            ValueError            — interact called without a context
        """
        if operation == "interact":
            if context is None:
                raise ValueError("'interact' needs a CallContext")
            return self.interact(context)
        if operation == "totalInteractions":
            return self.total_interactions()
        if operation == "getAllUsers":
            return self.get_all_users()
        if operation == "getAllTimestamps":
            return self.get_all_timestamps()
        if operation == "latestInteraction":
            return self.latest_interaction()
        raise UnknownOperationError(
            f"Unknown operation: {operation}",
            {"known": ", ".join(OPERATIONS)},
        )

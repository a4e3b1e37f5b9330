"""
interactlog: Basic Usage Example

Demonstrates:
- A store-backed ledger
- Subscribing an observer to the notification stream
- Calling the boundary operations
- Replaying the store
"""

import tempfile
from pathlib import Path

from interactlog import (
    CallContext,
    CallbackObserver,
    InteractionContract,
    InteractionLedger,
    JsonlStore,
)
from interactlog.core.replay import ReplayEngine


def main():
    """Basic interactlog usage."""

    print("=" * 60)
    print("interactlog: Basic Usage Example")
    print("=" * 60)
    print()

    workdir    = Path(tempfile.mkdtemp(prefix="interactlog-demo-"))
    store_path = workdir / "interactions.jsonl"

    # 1️⃣ Ledger + observer
    print("1️⃣ Opening ledger...")
    ledger = InteractionLedger(store=JsonlStore(store_path))
    ledger.subscribe(CallbackObserver(
        "printer",
        lambda n: print(f"  📣 #{n.index}  {n.user} @ {n.timestamp}"),
    ))
    contract = InteractionContract(ledger)
    print(f"✅ Store: {store_path}")
    print()

    # 2️⃣ Interactions — identity and time come from the calling context
    print("2️⃣ Recording interactions...")
    alice = "0x" + "a1" * 20
    bob   = "0x" + "b0" * 20
    contract.interact(CallContext.fixed(alice, 100))
    contract.interact(CallContext.fixed(bob,   200))
    contract.interact(CallContext.fixed(alice, 300))
    print()

    # 3️⃣ Reads
    print("3️⃣ Reading views...")
    print(f"  totalInteractions : {contract.total_interactions()}")
    print(f"  getAllUsers       : {contract.get_all_users()}")
    print(f"  getAllTimestamps  : {contract.get_all_timestamps()}")
    print(f"  latestInteraction : {contract.latest_interaction()}")
    print()

    # 4️⃣ Replay
    print("4️⃣ Replaying store...")
    engine = ReplayEngine()
    engine.load(store_path)
    engine.print_timeline()


if __name__ == "__main__":
    main()

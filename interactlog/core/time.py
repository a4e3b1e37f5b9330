"""
interactlog/core/time.py

THE ONLY CLOCK IN INTERACTLOG.

Ledger timestamps are integer Unix seconds, UTC. Every module that needs
the current time imports ledger_timestamp() from here.
"""

from datetime import datetime, timezone


def ledger_timestamp() -> int:
    """Return the current UTC time as integer Unix seconds."""
    return int(datetime.now(timezone.utc).timestamp())

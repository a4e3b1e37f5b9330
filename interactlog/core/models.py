"""
interactlog/core/models.py

Interaction Data Model

═══════════════════════════════════════════════════════════════════
CONTRACTS
═══════════════════════════════════════════════════════════════════

CONTRACT 1 — Immutability
    Interaction is a frozen dataclass. Once the ledger has built one,
    nothing changes it.

CONTRACT 2 — Index
    index == ledger length immediately before the append.
    The k-th appended interaction has index k.

CONTRACT 3 — Identity
    user is an opaque token handed over by the calling context.
    It is never validated, normalized or compared against anything.

CONTRACT 4 — Timestamp
    timestamp is whatever integer the environment supplied.
    Monotonicity is expected in practice, never enforced.
    A bool or non-integer is refused with TypeError when the
    Interaction is built, the same rule from_dict() applies on reload.

CONTRACT 5 — Empty latest
    latest() on an empty ledger returns (ZERO_IDENTITY, 0).
    This is indistinguishable from a genuine interaction by the zero
    identity at time 0. Consult total() to tell them apart.

CONTRACT 6 — Wire format
    One store line = {"index": int, "timestamp": int, "user": identity}
    A bytes identity is written as {"$bytes": "<hex>"} and read back
    as bytes. Every other identity must be a JSON value.
═══════════════════════════════════════════════════════════════════
"""

from dataclasses import dataclass
from typing import Any, Dict, Tuple


# ─────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────

# 20-byte account identifier, all zero
ZERO_IDENTITY = "0x" + "00" * 20

EMPTY_LATEST: Tuple[Any, int] = (ZERO_IDENTITY, 0)

_REQUIRED_FIELDS = ("index", "timestamp", "user")

_BYTES_TAG = "$bytes"


def encode_identity(user: Any) -> Any:
    """JSON form of an identity. bytes become a tagged hex object."""
    if isinstance(user, (bytes, bytearray)):
        return {_BYTES_TAG: bytes(user).hex()}
    return user


def decode_identity(value: Any) -> Any:
    """Inverse of encode_identity()."""
    if isinstance(value, dict) and list(value) == [_BYTES_TAG]:
        tagged = value[_BYTES_TAG]
        if not isinstance(tagged, str):
            raise ValueError(f"'{_BYTES_TAG}' must be a hex string")
        return bytes.fromhex(tagged)
    return value


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# ─────────────────────────────────────────────────────────────
# Interaction — THE ONLY LEDGER ENTRY TYPE
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Interaction:
    """One recorded interaction. See module docstring for contracts."""

    user:      Any
    timestamp: int
    index:     int

    def __post_init__(self) -> None:
        for name in ("index", "timestamp"):
            value = getattr(self, name)
            if not _is_integer(value):
                raise TypeError(
                    f"'{name}' must be an integer, got {type(value).__name__}"
                )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index":     self.index,
            "timestamp": self.timestamp,
            "user":      encode_identity(self.user),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Interaction":
        """
        Rebuild an Interaction from its stored form.

        Raises ValueError if a field is missing or index/timestamp is not
        an integer. A tagged bytes identity is decoded; any other user
        value is taken as-is.
        """
        missing = [name for name in _REQUIRED_FIELDS if name not in data]
        if missing:
            raise ValueError(f"missing field(s): {', '.join(missing)}")

        for name in ("index", "timestamp"):
            value = data[name]
            if not _is_integer(value):
                raise ValueError(
                    f"'{name}' must be an integer, got {type(value).__name__}"
                )

        return cls(
            user=      decode_identity(data["user"]),
            timestamp= data["timestamp"],
            index=     data["index"],
        )

    def as_pair(self) -> Tuple[Any, int]:
        """(user, timestamp), the shape returned by latest()."""
        return (self.user, self.timestamp)


@dataclass(frozen=True)
class InteractionNotice:
    """
    Notification emitted once per successful append.

    Carries exactly (user, timestamp, index). Observers receive this,
    never the ledger's own Interaction objects.
    """

    user:      Any
    timestamp: int
    index:     int

    @classmethod
    def for_interaction(cls, interaction: Interaction) -> "InteractionNotice":
        return cls(
            user=      interaction.user,
            timestamp= interaction.timestamp,
            index=     interaction.index,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user":      encode_identity(self.user),
            "timestamp": self.timestamp,
            "index":     self.index,
        }

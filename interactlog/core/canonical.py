"""
interactlog: Canonical JSON Encoding — RFC 8785 (JCS)

Every line written to a store goes through this module, so two stores
holding the same interactions are byte-identical.

RFC 8785: https://www.rfc-editor.org/rfc/rfc8785
"""

import hashlib

import jcs as _jcs


def canonicalize(obj: dict) -> bytes:
    """
    Encode a dict to RFC 8785 canonical JSON bytes.

    Output is deterministic regardless of key insertion order.
    All values must be JSON-primitive (str, int, float, bool, None, list, dict).
    """
    return _jcs.canonicalize(obj)


def canonical_line(obj: dict) -> str:
    """Canonical JSON as a newline-terminated text line."""
    return canonicalize(obj).decode("utf-8") + "\n"


def canonical_hash(obj: dict) -> str:
    """Lowercase hex SHA-256 of the canonical form."""
    return hashlib.sha256(canonicalize(obj)).hexdigest()

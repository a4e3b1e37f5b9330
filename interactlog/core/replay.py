"""
interactlog/core/replay.py

Store Replay Engine

Offline inspection of a JSONL store, independent of any live ledger.

Where JsonlStore.load() stops at the first problem, ReplayEngine keeps
going and reports every problem it finds:

    1. Load    → json.loads(line) + Interaction.from_dict()
                 unparseable lines become "malformed" violations
    2. Index   → entry k must carry index k ("index_gap" violations)
    3. Time    → timestamp regressions are NOTES, not violations.
                 The ledger stores whatever time it was handed.
    4. Head    → SHA-256 of the canonical form of the last entry

silent mode:
    ReplayEngine(silent=True) suppresses the "Loaded N interactions" print.
    Used by the CLI (interactlog verify) for clean formatted output.
"""

import json
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from interactlog.core.canonical import canonical_hash
from interactlog.core.models import Interaction


# ─────────────────────────────────────────────────────────────
# Result / Summary Types
# ─────────────────────────────────────────────────────────────

@dataclass
class IndexViolation:
    """A single detected violation in the store."""
    line:           int
    violation_type: str   # "malformed" | "index_gap"
    detail:         str


@dataclass
class TimestampNote:
    """A timestamp lower than its predecessor's. Informational only."""
    index:     int
    previous:  int
    timestamp: int


@dataclass
class ReplaySummary:
    """Aggregate result of a full store verification pass."""
    total_entries:   int
    violations:      List[IndexViolation]
    notes:           List[TimestampNote]
    user_counts:     Dict[Any, int]
    first_timestamp: Optional[int]
    last_timestamp:  Optional[int]
    latest:          Optional[Interaction]
    head_hash:       Optional[str]

    @property
    def is_valid(self) -> bool:
        return not self.violations

    @property
    def distinct_users(self) -> int:
        return len(self.user_counts)


# ─────────────────────────────────────────────────────────────
# Replay Engine
# ─────────────────────────────────────────────────────────────

class ReplayEngine:
    """
    Usage:
        engine = ReplayEngine()
        engine.load(Path(".interactlog/interactions.jsonl"))
        summary = engine.verify()
        engine.print_timeline()
        engine.export_json(Path("report.json"))

    Internal state:
        self.interactions — List[(line_num, Interaction)] in file order
        self.violations   — populated by load() and verify()
    """

    def __init__(self, silent: bool = False):
        self.interactions:      List[tuple]          = []
        self.violations:        List[IndexViolation] = []
        self._parse_violations: List[IndexViolation] = []
        self._store_path:       Optional[Path]       = None
        self._silent:           bool                 = silent

    # ── Load ──────────────────────────────────────────────────

    def load(self, store_path: Path) -> None:
        """
        Load a JSONL store.

        Raises:
            FileNotFoundError — store file does not exist
        """
        store_path             = Path(store_path)
        self._store_path       = store_path
        self.interactions      = []
        self.violations        = []
        self._parse_violations = []

        if not store_path.exists():
            raise FileNotFoundError(f"Interaction store not found: {store_path}")

        with open(store_path, "r", encoding="utf-8", errors="replace") as f:
            for line_num, raw in enumerate(f, 1):
                raw = raw.strip()
                if not raw:
                    continue

                try:
                    interaction = Interaction.from_dict(json.loads(raw))
                except json.JSONDecodeError as e:
                    self._parse_violations.append(IndexViolation(
                        line=           line_num,
                        violation_type= "malformed",
                        detail=         f"Malformed JSON: {e}",
                    ))
                    continue
                except (ValueError, TypeError) as e:
                    self._parse_violations.append(IndexViolation(
                        line=           line_num,
                        violation_type= "malformed",
                        detail=         f"Invalid interaction: {e}",
                    ))
                    continue

                self.interactions.append((line_num, interaction))

        if not self._silent:
            print(
                f"✅  Loaded {len(self.interactions)} interactions "
                f"from '{store_path.name}'"
            )

    # ── Verify ────────────────────────────────────────────────

    def verify(self) -> ReplaySummary:
        """
        Full verification pass over all loaded interactions.

        Returns ReplaySummary with full violation list.
        """
        violations: List[IndexViolation] = list(self._parse_violations)
        notes:      List[TimestampNote]  = []

        previous: Optional[Interaction] = None
        for position, (line_num, interaction) in enumerate(self.interactions):
            if interaction.index != position:
                violations.append(IndexViolation(
                    line=           line_num,
                    violation_type= "index_gap",
                    detail=         f"Expected index {position}, got {interaction.index}",
                ))

            if previous is not None and interaction.timestamp < previous.timestamp:
                notes.append(TimestampNote(
                    index=     interaction.index,
                    previous=  previous.timestamp,
                    timestamp= interaction.timestamp,
                ))
            previous = interaction

        violations.sort(key=lambda v: v.line)
        self.violations = violations

        entries = [i for _, i in self.interactions]
        latest  = entries[-1] if entries else None

        return ReplaySummary(
            total_entries=   len(entries),
            violations=      list(violations),
            notes=           notes,
            user_counts=     dict(Counter(_hashable(i.user) for i in entries)),
            first_timestamp= entries[0].timestamp if entries else None,
            last_timestamp=  latest.timestamp if latest else None,
            latest=          latest,
            head_hash=       canonical_hash(latest.to_dict()) if latest else None,
        )

    # ── Print Timeline ────────────────────────────────────────

    def print_timeline(self, max_entries: Optional[int] = None) -> None:
        """
        Pretty-print a human-readable timeline to stdout.

        Args:
            max_entries: If set, only the first N entries are shown.
                         Summary stats always reflect the full store.
        """
        summary = self.verify()
        bar     = "=" * 80

        print(f"\n{bar}")
        print("📋  interactlog Replay Timeline")
        print(bar)
        print(f"  Store       : {self._store_path or 'in-memory'}")
        print(f"  Entries     : {summary.total_entries:,}")
        print(f"  Users       : {summary.distinct_users:,}")
        print(f"  Indices     : {'✅ CONTIGUOUS' if summary.is_valid else '❌ VIOLATED'}")
        print(f"  First time  : {summary.first_timestamp}")
        print(f"  Last time   : {summary.last_timestamp}")
        print()

        entries = [i for _, i in self.interactions]
        to_show = entries[:max_entries] if max_entries else entries

        for interaction in to_show:
            print(f"  [{interaction.index:04d}] {interaction.timestamp}  {interaction.user}")

        if max_entries and len(entries) > max_entries:
            print(f"  ... and {len(entries) - max_entries:,} more entries not shown")
        print()

        if summary.violations:
            print(f"{'─' * 80}")
            print(f"❌  {len(summary.violations)} VIOLATION(S) DETECTED:")
            print(f"{'─' * 80}")
            for v in summary.violations:
                print(f"  [line {v.line:04d}] {v.violation_type.upper():12s} | {v.detail}")
            print(f"{'─' * 80}")
        else:
            print(f"{'─' * 80}")
            print("✅  All entries verified — indices contiguous from 0.")
            print(f"{'─' * 80}")

        print()

    # ── Export JSON ───────────────────────────────────────────

    def export_json(self, output_path: Path) -> None:
        """
        Export the replay summary as a JSON report.

        Args:
            output_path: Destination path. Parent directories created if missing.
        """
        summary     = self.verify()
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(summary_to_dict(summary, self._store_path), f, indent=2)

        if not self._silent:
            print(f"📄  Replay report exported to: {output_path}")


def summary_to_dict(summary: ReplaySummary, store_path: Optional[Path] = None) -> Dict[str, Any]:
    """JSON-ready form of a ReplaySummary."""
    return {
        "store":           str(store_path or "in-memory"),
        "valid":           summary.is_valid,
        "total_entries":   summary.total_entries,
        "distinct_users":  summary.distinct_users,
        "first_timestamp": summary.first_timestamp,
        "last_timestamp":  summary.last_timestamp,
        "latest":          summary.latest.to_dict() if summary.latest else None,
        "head_hash":       summary.head_hash,
        "violations": [
            {
                "line":           v.line,
                "violation_type": v.violation_type,
                "detail":         v.detail,
            }
            for v in summary.violations
        ],
        "timestamp_regressions": [
            {"index": n.index, "previous": n.previous, "timestamp": n.timestamp}
            for n in summary.notes
        ],
    }


def _hashable(user: Any) -> Any:
    # JSON arrays/objects are valid opaque identities but are not hashable
    if isinstance(user, (list, dict)):
        return json.dumps(user, sort_keys=True)
    return user

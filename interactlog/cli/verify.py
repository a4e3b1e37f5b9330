"""
interactlog/cli/verify.py

interactlog verify — Store Verification CLI
===========================================

Usage:
    interactlog verify [STORE]                       Human output (default)
    interactlog verify [STORE] --format json         Machine-readable JSON
    interactlog verify [STORE] --format compact      One-line pipeline output
    interactlog verify [STORE] --export report.json  Export full report
    interactlog verify [STORE] --quiet               Exit code only
    interactlog verify [STORE] --no-color            Disable ANSI

STORE defaults to the configured store path.

Exit codes:
    0  Store valid  (every line parses, indices contiguous from 0)
    1  Store has violations
    2  Error  (file missing, unreadable)

Timestamp regressions are reported but never make a store invalid.
"""

import json
import sys
import time
from pathlib import Path
from typing import Optional

import click

from interactlog.config import LedgerConfig
from interactlog.core.replay import ReplayEngine, ReplaySummary, summary_to_dict


# ── ANSI color ────────────────────────────────────────────────────────────────

class _Color:
    """
    Minimal ANSI color wrapper.
    Auto-disables when not a TTY or --no-color is passed.
    """
    _on: bool = True

    @classmethod
    def configure(cls, enabled: bool) -> None:
        cls._on = enabled and sys.stdout.isatty()

    @classmethod
    def green(cls, s: str) -> str:
        return f"\033[32m{s}\033[0m" if cls._on else s

    @classmethod
    def red(cls, s: str) -> str:
        return f"\033[31m{s}\033[0m" if cls._on else s

    @classmethod
    def yellow(cls, s: str) -> str:
        return f"\033[33m{s}\033[0m" if cls._on else s

    @classmethod
    def bold(cls, s: str) -> str:
        return f"\033[1m{s}\033[0m" if cls._on else s

    @classmethod
    def dim(cls, s: str) -> str:
        return f"\033[2m{s}\033[0m" if cls._on else s


def _row_ok(label: str, value: str) -> str:
    return f"  {_Color.dim(f'{label:<16}')}  {_Color.green('✅')}  {value}"

def _row_fail(label: str, value: str) -> str:
    return f"  {_Color.dim(f'{label:<16}')}  {_Color.red('❌')}  {value}"

def _row_info(label: str, value: str) -> str:
    return f"  {_Color.dim(f'{label:<16}')}     {_Color.dim(value)}"


# ── CLI command ───────────────────────────────────────────────────────────────

@click.command(name="verify")
@click.argument("store", type=click.Path(exists=False), required=False)
@click.option(
    "--format", "fmt",
    type=click.Choice(["human", "json", "compact"], case_sensitive=False),
    default="human",
    show_default=True,
    help="Output format: human (default), json (CI/automation), compact (pipelines).",
)
@click.option(
    "--export",
    "export_path",
    type=click.Path(),
    default=None,
    metavar="PATH",
    help="Export the full report to a JSON file.",
)
@click.option(
    "--quiet",
    is_flag=True,
    default=False,
    help="Suppress all output. Use exit code only (0=valid, 1=invalid, 2=error).",
)
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable ANSI color output.",
)
@click.pass_obj
def verify_command(
    config:      Optional[LedgerConfig],
    store:       Optional[str],
    fmt:         str,
    export_path: Optional[str],
    quiet:       bool,
    no_color:    bool,
) -> None:
    """
    Verify an interaction store: every line parses, indices run 0..N-1.

    \b
    Examples:
      interactlog verify .interactlog/interactions.jsonl
      interactlog verify interactions.jsonl --format json
      interactlog verify interactions.jsonl --quiet && echo "clean"
    """
    _Color.configure(not no_color)

    if store:
        store_path = Path(store)
    elif config is not None:
        store_path = Path(config.store_path)
    else:
        store_path = Path(LedgerConfig().store_path)

    if not store_path.exists():
        _emit_error(f"Store not found: {store_path}", fmt, quiet)
        sys.exit(2)

    engine  = ReplayEngine(silent=True)
    t_start = time.perf_counter()

    try:
        engine.load(store_path)
        summary = engine.verify()
    except OSError as e:
        _emit_error(str(e), fmt, quiet)
        sys.exit(2)

    elapsed = time.perf_counter() - t_start

    if export_path:
        try:
            engine.export_json(Path(export_path))
        except OSError as e:
            if not quiet and fmt == "human":
                click.echo(_Color.yellow(f"\n  ⚠️   Export failed: {e}"), err=True)

    if quiet:
        sys.exit(0 if summary.is_valid else 1)

    if fmt == "json":
        out = summary_to_dict(summary, store_path)
        out["elapsed_seconds"] = round(elapsed, 3)
        out["export_path"]     = export_path
        click.echo(json.dumps({"interactlog_verify": out}, indent=2))
    elif fmt == "compact":
        _output_compact(summary, store_path, elapsed)
    else:
        _output_human(summary, store_path, elapsed, export_path)

    sys.exit(0 if summary.is_valid else 1)


# ── Human output ──────────────────────────────────────────────────────────────

def _output_human(
    summary:     ReplaySummary,
    store_path:  Path,
    elapsed:     float,
    export_path: Optional[str],
) -> None:
    BAR_HEAVY = "═" * 68
    BAR_LIGHT = "─" * 68

    click.echo()
    click.echo(_Color.bold(f"  {BAR_HEAVY}"))
    click.echo(_Color.bold(  "  interactlog  ·  Store Verification"))
    click.echo(_Color.bold(f"  {BAR_HEAVY}"))
    click.echo()

    total = summary.total_entries
    click.echo(_row_info("Store",   str(store_path)))
    click.echo(_row_info("Entries", f"{total:,}"))
    click.echo(_row_info("Users",   f"{summary.distinct_users:,} distinct"))
    click.echo()

    malformed = [v for v in summary.violations if v.violation_type == "malformed"]
    gaps      = [v for v in summary.violations if v.violation_type == "index_gap"]

    if not malformed:
        click.echo(_row_ok("Lines", "all lines parse"))
    else:
        click.echo(_row_fail("Lines", _Color.red(f"{len(malformed)} malformed")))

    if not gaps:
        if total > 0:
            click.echo(_row_ok("Indices", f"0 → {total - 1:,}  (no gaps)"))
        else:
            click.echo(_row_ok("Indices", "empty store"))
    else:
        click.echo(_row_fail("Indices", _Color.red(f"{len(gaps)} gap(s) detected")))

    if summary.notes:
        click.echo(_row_info("Timestamps", f"{len(summary.notes)} regression(s), informational"))

    click.echo()

    if summary.latest is not None:
        click.echo(_row_info("Latest",
            f"{summary.latest.user}  @ {summary.latest.timestamp}  "
            + _Color.dim(f"[#{summary.latest.index:,}]")
        ))
    if summary.head_hash:
        short = summary.head_hash[:16] + "..." + summary.head_hash[-8:]
        click.echo(_row_info("Head", short))

    click.echo(_row_info("Verified", f"{elapsed:.3f}s"))
    if export_path:
        click.echo(_row_info("Exported", export_path))
    click.echo()

    if summary.violations:
        click.echo(f"  {BAR_LIGHT}")
        for v in summary.violations:
            click.echo(
                f"  {_Color.red(str(v.line)):>6}  "
                f"{_Color.yellow(f'{v.violation_type:<12}')}  {v.detail}"
            )
        click.echo(f"  {BAR_LIGHT}")
        click.echo()

    click.echo(f"  {BAR_LIGHT}")
    if summary.is_valid:
        click.echo(_Color.green(_Color.bold("  ✅  VALID  ·  0 violations")))
    else:
        n = len(summary.violations)
        click.echo(_Color.red(_Color.bold(f"  ❌  INVALID  ·  {n} violation(s)")))
    click.echo(f"  {BAR_LIGHT}")
    click.echo()


# ── Compact output ────────────────────────────────────────────────────────────

def _output_compact(summary: ReplaySummary, store_path: Path, elapsed: float) -> None:
    """
    Single-line output for shell pipelines.

    Format:
        VALID    interactions.jsonl   1,000 entries  0 violations  0.012s
    """
    status = "VALID" if summary.is_valid else "INVALID"
    color  = _Color.green if summary.is_valid else _Color.red
    click.echo(
        color(f"{status:<8}")
        + f"  {store_path.name:<30}  {summary.total_entries:>10,} entries  "
        + f"{len(summary.violations)} violations  {elapsed:.3f}s"
    )


# ── Error output ──────────────────────────────────────────────────────────────

def _emit_error(msg: str, fmt: str, quiet: bool) -> None:
    """Emit error in the correct format. Never raises."""
    if quiet:
        return
    if fmt == "json":
        click.echo(json.dumps({"interactlog_verify": {"error": msg, "valid": False}}))
    else:
        click.echo(_Color.red(f"\n  ❌  ERROR: {msg}\n"), err=True)

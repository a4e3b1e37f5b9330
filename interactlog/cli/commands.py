"""
interactlog/cli/commands.py

Ledger operations as CLI commands.

Every command opens the configured store, performs one operation and
exits. The CLI process plays the part of the execution environment:
it builds the CallContext from --user and --time (or the clock).
"""

import json
from typing import Any, Optional

import click

from interactlog.config import LedgerConfig, build_ledger
from interactlog.contract import OPERATIONS, CallContext, InteractionContract
from interactlog.core.exceptions import InteractLogError
from interactlog.core.time import ledger_timestamp


_format_option = click.option(
    "--format", "fmt",
    type=click.Choice(["text", "json"], case_sensitive=False),
    default="text",
    show_default=True,
    help="Output format.",
)


def _open_contract(config: LedgerConfig) -> InteractionContract:
    try:
        return InteractionContract(build_ledger(config))
    except InteractLogError as e:
        raise click.ClickException(str(e)) from e


def _context(user: str, timestamp: Optional[int]) -> CallContext:
    if timestamp is None:
        return CallContext(identity=user, clock=ledger_timestamp)
    return CallContext.fixed(user, timestamp)


def _echo(value: Any, fmt: str) -> None:
    if fmt == "json":
        click.echo(json.dumps(value))
        return
    if isinstance(value, tuple):
        click.echo(" ".join(str(v) for v in value))
    elif isinstance(value, list):
        for item in value:
            click.echo(item)
    else:
        click.echo(value)


# ── Commands ──────────────────────────────────────────────────

@click.command(name="interact")
@click.option("--user", required=True, help="Caller identity to record.")
@click.option("--time", "timestamp", type=int, default=None, help="Timestamp to record. Defaults to now (Unix seconds).")
@_format_option
@click.pass_obj
def interact_command(config: LedgerConfig, user: str, timestamp: Optional[int], fmt: str) -> None:
    """Record one interaction and print its index."""
    contract = _open_contract(config)
    _echo(contract.interact(_context(user, timestamp)), fmt)


@click.command(name="total")
@_format_option
@click.pass_obj
def total_command(config: LedgerConfig, fmt: str) -> None:
    """Print the number of recorded interactions."""
    _echo(_open_contract(config).total_interactions(), fmt)


@click.command(name="users")
@_format_option
@click.pass_obj
def users_command(config: LedgerConfig, fmt: str) -> None:
    """Print every user, in append order."""
    _echo(_open_contract(config).get_all_users(), fmt)


@click.command(name="timestamps")
@_format_option
@click.pass_obj
def timestamps_command(config: LedgerConfig, fmt: str) -> None:
    """Print every timestamp, in append order."""
    _echo(_open_contract(config).get_all_timestamps(), fmt)


@click.command(name="latest")
@_format_option
@click.pass_obj
def latest_command(config: LedgerConfig, fmt: str) -> None:
    """
    Print the most recent (user, timestamp).

    An empty ledger prints the zero identity and 0. Use `total` to tell
    that apart from a real interaction with those values.
    """
    _echo(_open_contract(config).latest_interaction(), fmt)


@click.command(name="call")
@click.argument("operation", type=click.Choice(OPERATIONS))
@click.option("--user", default=None, help="Caller identity (interact only).")
@click.option("--time", "timestamp", type=int, default=None, help="Timestamp (interact only).")
@_format_option
@click.pass_obj
def call_command(
    config:    LedgerConfig,
    operation: str,
    user:      Optional[str],
    timestamp: Optional[int],
    fmt:       str,
) -> None:
    """Invoke OPERATION by its external name."""
    if operation == "interact" and user is None:
        raise click.UsageError("'interact' requires --user")

    context  = _context(user, timestamp) if user is not None else None
    contract = _open_contract(config)
    _echo(contract.call(operation, context), fmt)

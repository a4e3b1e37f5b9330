"""
interactlog/cli/__init__.py

interactlog CLI — root Click command group.

This file is the sole entry point for the `interactlog` terminal command.
It is registered in pyproject.toml as:

    [project.scripts]
    interactlog = "interactlog.cli:cli"

Adding a new command:
    1. Create interactlog/cli/your_command.py with a @click.command()
    2. Import it here
    3. cli.add_command(your_command)
"""

from typing import Optional

import click

from interactlog.cli.commands import (
    call_command,
    interact_command,
    latest_command,
    timestamps_command,
    total_command,
    users_command,
)
from interactlog.cli.verify import verify_command
from interactlog.config import LedgerConfig, configure_logging
from interactlog.core.exceptions import ConfigError


@click.group()
@click.version_option(package_name="interactlog")
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="YAML configuration file.",
)
@click.option(
    "--store", "store_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Interaction store (JSONL). Overrides config and environment.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Logging level. Overrides config and environment.",
)
@click.pass_context
def cli(
    ctx:         click.Context,
    config_path: Optional[str],
    store_path:  Optional[str],
    log_level:   Optional[str],
) -> None:
    """
    interactlog — append-only interaction ledger.

    \b
    Commands:
      interact     Record an interaction.
      total        Number of recorded interactions.
      users        Every user, in append order.
      timestamps   Every timestamp, in append order.
      latest       Most recent (user, timestamp).
      call         Invoke an operation by its external name.
      verify       Check a store file for index gaps and damage.

    \b
    Quick start:
      interactlog interact --user 0xabc...
      interactlog latest --format json
      interactlog verify .interactlog/interactions.jsonl
    """
    overrides = {}
    if store_path:
        overrides["store_path"] = store_path
    if log_level:
        overrides["log_level"] = log_level

    try:
        config = LedgerConfig.load(config_path)
        config = LedgerConfig.from_mapping(overrides, config)
    except ConfigError as e:
        raise click.UsageError(str(e)) from e

    configure_logging(config.log_level)
    ctx.obj = config


cli.add_command(interact_command)
cli.add_command(total_command)
cli.add_command(users_command)
cli.add_command(timestamps_command)
cli.add_command(latest_command)
cli.add_command(call_command)
cli.add_command(verify_command)

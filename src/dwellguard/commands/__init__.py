"""Subcommand modules for dwellguard.

Provides register_commands() which uses deferred imports to keep
``dwellguard --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group."""
    # --- Groups ---
    from dwellguard.commands.event import event
    from dwellguard.commands.policy import policy

    cli.add_command(event)
    cli.add_command(policy)

    # --- Standalone commands ---
    from dwellguard.commands.listen import listen
    from dwellguard.commands.reset import reset
    from dwellguard.commands.status import status

    cli.add_command(listen)
    cli.add_command(status)
    cli.add_command(reset)

"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from realtor.cli_commands.ask import ask, chat
    from realtor.cli_commands.resources import resources
    from realtor.cli_commands.serve import info, serve
    from realtor.cli_commands.tools import tools

    cli.add_command(serve)
    cli.add_command(info)
    cli.add_command(tools)
    cli.add_command(resources)
    cli.add_command(ask)
    cli.add_command(chat)

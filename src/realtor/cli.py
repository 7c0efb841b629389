"""Realtor CLI entrypoint."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from realtor import __version__
from realtor.config import ConfigError, load_config
from realtor.utils.logs import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="realtor")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML client configuration.",
)
@click.option("--server-command", default=None, help="Command that starts the MCP server.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging on stderr.")
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Path | None,
    server_command: str | None,
    verbose: bool,
) -> None:
    """Realtor — chat with an estate catalog over a from-scratch MCP server."""
    # the server logs its traffic; client commands only surface problems
    serving = ctx.invoked_subcommand == "serve"
    configure_logging(verbose=verbose, default_level=logging.INFO if serving else logging.WARNING)
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        click.echo(f"Config error: {exc}", err=True)
        sys.exit(1)
    if server_command:
        config.server_command = server_command

    if config.telemetry is not None:
        from realtor.utils.telemetry import configure_telemetry

        try:
            configure_telemetry(
                config.telemetry, service_name="realtor-server" if serving else "realtor"
            )
        except ImportError as exc:
            click.echo(f"Telemetry error: {exc}", err=True)
            sys.exit(1)
    ctx.obj = config


# Register subcommands
from realtor.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()

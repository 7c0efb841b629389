"""``realtor serve`` and ``realtor info`` — run the server, or probe one."""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING

import click

from realtor.cli_commands._output import print_error, print_server_info

if TYPE_CHECKING:
    from realtor.config import ClientConfig


@click.command()
@click.option(
    "--case-sensitive",
    is_flag=True,
    help="Match estate names exactly instead of ignoring case.",
)
def serve(case_sensitive: bool) -> None:
    """Run the Realtor MCP server on stdin/stdout."""
    from realtor.server.dispatcher import Dispatcher
    from realtor.server.estates import build_registry
    from realtor.server.stdio import run_stdio

    dispatcher = Dispatcher(build_registry(case_sensitive=case_sensitive))
    asyncio.run(run_stdio(dispatcher))


@click.command()
@click.pass_obj
def info(config: ClientConfig) -> None:
    """Connect to the server and show what it advertises."""
    from realtor.protocol.client import MCPClient

    async def _info() -> None:
        async with MCPClient(config.server_command, env=config.server_env) as client:
            await client.ping()
            print_server_info(client)

    try:
        asyncio.run(_info())
    except Exception as exc:
        print_error("Connection error", exc)
        sys.exit(1)

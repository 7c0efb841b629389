"""``realtor resources`` — list and read the server's resources."""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING

import click

from realtor.cli_commands._output import (
    console,
    print_content,
    print_error,
    print_resources_table,
)

if TYPE_CHECKING:
    from realtor.config import ClientConfig
    from realtor.protocol.models import ReadResourceResult, ResourceDef


@click.group()
def resources() -> None:
    """List and read resources."""


@resources.command("list")
@click.pass_obj
def list_resources(config: ClientConfig) -> None:
    """List the resources the server advertises."""
    from realtor.protocol.client import MCPClient

    async def _list() -> list[ResourceDef]:
        async with MCPClient(config.server_command, env=config.server_env) as client:
            return list(client.resources)

    try:
        resource_defs = asyncio.run(_list())
    except Exception as exc:
        print_error("Connection error", exc)
        sys.exit(1)

    if not resource_defs:
        console.print("[yellow]Server advertises no resources.[/yellow]")
        return

    print_resources_table(resource_defs)


@resources.command("read")
@click.argument("uri")
@click.pass_obj
def read_resource(config: ClientConfig, uri: str) -> None:
    """Read the resource at URI."""
    from realtor.protocol.client import MCPClient

    async def _read() -> ReadResourceResult:
        async with MCPClient(config.server_command, env=config.server_env) as client:
            return await client.read_resource(uri)

    try:
        result = asyncio.run(_read())
    except Exception as exc:
        print_error("Resource error", exc)
        sys.exit(1)

    print_content([item.text for item in result.contents])

"""``realtor tools`` — list and call the server's tools."""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING, Any

import click
from rich.markup import escape

from realtor.cli_commands._output import console, print_content, print_error, print_tools_table

if TYPE_CHECKING:
    from realtor.config import ClientConfig
    from realtor.protocol.models import JsonRpcResponse, ToolDef


@click.group()
def tools() -> None:
    """List and call tools."""


@tools.command("list")
@click.pass_obj
def list_tools(config: ClientConfig) -> None:
    """List the tools the server advertises."""
    from realtor.protocol.client import MCPClient

    async def _list() -> list[ToolDef]:
        async with MCPClient(config.server_command, env=config.server_env) as client:
            return list(client.tools)

    try:
        tool_defs = asyncio.run(_list())
    except Exception as exc:
        print_error("Connection error", exc)
        sys.exit(1)

    if not tool_defs:
        console.print("[yellow]Server advertises no tools.[/yellow]")
        return

    print_tools_table(tool_defs)


def _parse_args(pairs: tuple[str, ...]) -> dict[str, Any]:
    arguments: dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {pair!r}", param_hint="--arg")
        arguments[key] = value
    return arguments


@tools.command("call")
@click.argument("name")
@click.option("--arg", "-a", "pairs", multiple=True, help="Tool argument as key=value.")
@click.pass_obj
def call_tool(config: ClientConfig, name: str, pairs: tuple[str, ...]) -> None:
    """Call tool NAME; string parameters not given with --arg are prompted for."""
    from realtor.protocol.client import MCPClient

    arguments = _parse_args(pairs)

    async def _call() -> JsonRpcResponse:
        async with MCPClient(config.server_command, env=config.server_env) as client:
            tool = client.get_tool(name)
            for key in tool.string_parameters():
                if key not in arguments:
                    # blocking read; no request is in flight until the arguments are complete
                    arguments[key] = click.prompt(f"Provide a {key}", default="", show_default=False)
            return await client.call_tool_raw(name, arguments)

    try:
        response = asyncio.run(_call())
    except Exception as exc:
        print_error("Tool call error", exc)
        sys.exit(1)

    if response.error is not None:
        console.print(
            f"[red]Server error {response.error.code}:[/red] {escape(response.error.message)}",
            highlight=False,
        )
        sys.exit(1)

    content = (response.result or {}).get("content", [])
    print_content([str(item.get("text", "")) for item in content if isinstance(item, dict)])

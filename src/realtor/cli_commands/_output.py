"""Shared CLI output formatters."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from realtor.orchestration.orchestrator import TurnResult
    from realtor.protocol.client import MCPClient
    from realtor.protocol.models import ResourceDef, ToolDef

console = Console()


def print_server_info(client: MCPClient) -> None:
    """Print the negotiated server identity and capabilities."""
    info = client.server_info
    name = f"{info.name} v{info.version}" if info else "unknown server"
    console.print(f"[bold]Connected to {name}[/bold]")
    console.print(f"  Protocol: {client.protocol_version}")
    console.print(f"  Tools: {'yes' if client.capabilities.tools is not None else 'no'}")
    console.print(f"  Resources: {'yes' if client.capabilities.resources is not None else 'no'}")


def print_tools_table(tools: list[ToolDef]) -> None:
    """Pretty-print the tool catalog as a table."""
    table = Table(title="Tools")
    table.add_column("Name", style="cyan")
    table.add_column("Parameters")
    table.add_column("Description")

    for tool in tools:
        params = ", ".join(tool.input_schema.get("properties", {})) or "-"
        table.add_row(tool.name, params, _truncate(tool.description))

    console.print(table)


def print_resources_table(resources: list[ResourceDef]) -> None:
    table = Table(title="Resources")
    table.add_column("URI", style="cyan")
    table.add_column("Name")

    for resource in resources:
        table.add_row(resource.uri, resource.name)

    console.print(table)


def print_content(texts: list[str]) -> None:
    """Print text payloads, pretty-printing the ones that hold JSON."""
    for text in texts:
        try:
            json.loads(text)
        except ValueError:
            console.print(text, markup=False)
        else:
            console.print_json(text)


def print_turn(result: TurnResult) -> None:
    """Print a conversation turn in the order it happened."""
    for text in result.texts:
        console.print(text, markup=False)
    if result.tool_call is not None:
        call = result.tool_call
        console.print(
            f"[bright_blue]Requesting tool call {call.name} - "
            f"{escape(json.dumps(call.args))}[/bright_blue]",
            highlight=False,
        )
    for text in result.follow_up_texts:
        console.print(text, markup=False)


def print_error(label: str, exc: BaseException) -> None:
    console.print(f"[red]{label}:[/red] {escape(str(exc))}", highlight=False)


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."

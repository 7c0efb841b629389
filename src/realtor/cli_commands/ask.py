"""``realtor ask`` and ``realtor chat`` — tool-augmented conversations."""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING

import click

from realtor.cli_commands._output import console, print_error, print_turn

if TYPE_CHECKING:
    from realtor.config import ClientConfig
    from realtor.llm.service import CompletionService
    from realtor.orchestration.orchestrator import TurnResult

_EXIT_WORDS = {"exit", "quit"}


def _completion_service(config: ClientConfig) -> CompletionService:
    """Build the completion service, failing fast on a missing credential."""
    from realtor.llm.errors import MissingCredentialError
    from realtor.llm.service import create_completion_service

    try:
        return create_completion_service(config.model)
    except MissingCredentialError as exc:
        print_error("Startup error", exc)
        sys.exit(1)


@click.command()
@click.argument("prompt", default="What estates do you have?")
@click.pass_obj
def ask(config: ClientConfig, prompt: str) -> None:
    """Ask the AI one question about the estates."""
    from realtor.orchestration.orchestrator import ToolAugmentedOrchestrator
    from realtor.protocol.client import MCPClient

    completion = _completion_service(config)

    async def _ask() -> TurnResult:
        async with MCPClient(config.server_command, env=config.server_env) as client:
            orchestrator = ToolAugmentedOrchestrator(client, completion)
            return await orchestrator.run_turn(prompt)

    try:
        result = asyncio.run(_ask())
    except Exception as exc:
        print_error("Turn failed", exc)
        sys.exit(1)

    print_turn(result)


@click.command()
@click.pass_obj
def chat(config: ClientConfig) -> None:
    """Talk to the AI until EOF, 'exit' or 'quit'.

    A failing turn is reported and the next prompt is offered; only a broken
    server connection ends the session.
    """
    from realtor.orchestration.orchestrator import ToolAugmentedOrchestrator
    from realtor.protocol.client import MCPClient
    from realtor.protocol.errors import ProtocolError

    completion = _completion_service(config)

    async def _chat() -> None:
        async with MCPClient(config.server_command, env=config.server_env) as client:
            info = client.server_info
            if info is not None:
                console.print(f"[bold]Connected to {info.name} v{info.version}[/bold]")
            orchestrator = ToolAugmentedOrchestrator(client, completion)
            while True:
                try:
                    # blocking read; the session is idle while the user types
                    prompt = click.prompt("You", prompt_suffix="> ")
                except click.Abort:
                    console.print()
                    return
                if prompt.strip().lower() in _EXIT_WORDS:
                    return
                try:
                    result = await orchestrator.run_turn(prompt)
                except ProtocolError:
                    raise
                except Exception as exc:
                    print_error("Turn failed", exc)
                    continue
                print_turn(result)

    try:
        asyncio.run(_chat())
    except Exception as exc:
        print_error("Session ended", exc)
        sys.exit(1)

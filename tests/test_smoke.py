"""Smoke test to verify the project scaffolding works."""

from __future__ import annotations


def test_import() -> None:
    import realtor

    assert realtor.__version__ == "0.1.0"
    assert realtor.PROTOCOL_VERSION == "2025-03-26"


def test_cli_entrypoint() -> None:
    from realtor.cli import main

    assert callable(main)


def test_package_exports() -> None:
    from realtor.llm import CompletionService, Conversation
    from realtor.orchestration import ToolAugmentedOrchestrator
    from realtor.protocol import MCPClient, StdioTransport
    from realtor.server import Dispatcher, build_registry

    assert MCPClient is not None
    assert StdioTransport is not None
    assert Dispatcher is not None
    assert build_registry is not None
    assert CompletionService is not None
    assert Conversation is not None
    assert ToolAugmentedOrchestrator is not None

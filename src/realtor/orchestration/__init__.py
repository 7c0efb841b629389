"""Orchestration — tool-augmented completion turns."""

from realtor.orchestration.orchestrator import (
    ToolAugmentedOrchestrator,
    ToolSession,
    TurnResult,
    TurnState,
)

__all__ = [
    "ToolAugmentedOrchestrator",
    "ToolSession",
    "TurnResult",
    "TurnState",
]

"""CompletionService protocol — the pluggable text-completion capability.

A service accepts the conversation so far plus the tool catalog (as function
declarations) and returns the candidates produced by the model.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from realtor.config import ModelConfig
    from realtor.llm.models import Candidate, Conversation


@runtime_checkable
class CompletionService(Protocol):
    """Generates model responses for a conversation."""

    async def complete(
        self,
        conversation: Conversation,
        tools: list[dict[str, Any]],
    ) -> list[Candidate]:
        """Return the model's candidates for *conversation*.

        Each entry of *tools* is a function declaration::

            {"name": "...", "description": "...", "parameters": { ... }}
        """
        ...


def create_completion_service(config: ModelConfig) -> CompletionService:
    """Build the service selected by ``config.backend``.

    Raises:
        MissingCredentialError: When the Gemini backend has no API key.
    """
    if config.backend == "litellm":
        from realtor.llm.litellm_service import LiteLLMCompletionService

        return LiteLLMCompletionService(config)

    from realtor.llm.gemini import GeminiCompletionService

    return GeminiCompletionService(config)

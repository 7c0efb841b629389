"""LiteLLMCompletionService — any LiteLLM-routable model behind the same protocol.

LiteLLM speaks OpenAI's chat format regardless of provider, so the
conversation is converted on the way in and the response is folded back
into a :class:`Candidate` on the way out.
"""

from __future__ import annotations

import json
import logging
from typing import Any
from uuid import uuid4

import litellm

from realtor.config import ModelConfig
from realtor.llm.errors import CompletionError
from realtor.llm.models import (
    Candidate,
    Conversation,
    FunctionCall,
    FunctionCallPart,
    FunctionResponsePart,
    Message,
    Part,
    TextPart,
)
from realtor.utils.telemetry import ATTR_BACKEND, ATTR_MODEL, ATTR_TOKENS_TOTAL, get_tracer

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class LiteLLMCompletionService:
    """Satisfies :class:`~realtor.llm.service.CompletionService` via ``litellm.acompletion``."""

    def __init__(self, config: ModelConfig) -> None:
        self.config = config

    async def complete(
        self,
        conversation: Conversation,
        tools: list[dict[str, Any]],
    ) -> list[Candidate]:
        with _tracer.start_as_current_span("completion.generate") as span:
            span.set_attribute(ATTR_BACKEND, "litellm")
            span.set_attribute(ATTR_MODEL, self.config.model)

            call_kwargs: dict[str, Any] = {
                "model": self.config.model,
                "messages": self.to_messages(conversation),
                "max_tokens": self.config.max_output_tokens,
                **self.config.extra,
            }
            if tools:
                call_kwargs["tools"] = [{"type": "function", "function": d} for d in tools]
            if self.config.api_key:
                call_kwargs["api_key"] = self.config.api_key
            if self.config.api_base:
                call_kwargs["api_base"] = self.config.api_base
            if self.config.request_timeout is not None:
                call_kwargs["timeout"] = self.config.request_timeout

            # Provider errors propagate as LiteLLM's own exception types
            response = await litellm.acompletion(**call_kwargs)  # pyright: ignore[reportUnknownMemberType]

            candidates = [self._to_candidate(choice, response) for choice in response.choices]
            if not candidates:
                raise CompletionError("Completion produced no candidates")
            usage = getattr(response, "usage", None)
            if usage:
                span.set_attribute(ATTR_TOKENS_TOTAL, int(usage.total_tokens or 0))
            return candidates

    def to_messages(self, conversation: Conversation) -> list[dict[str, Any]]:
        """Convert the conversation to OpenAI chat messages."""
        messages: list[dict[str, Any]] = []
        if self.config.system_instruction:
            messages.append({"role": "system", "content": self.config.system_instruction})

        for message in conversation:
            if message.role == "model":
                messages.append(self._assistant_message(message))
                continue
            for part in message.parts:
                if isinstance(part, FunctionResponsePart):
                    fr = part.function_response
                    messages.append({
                        "role": "tool",
                        "tool_call_id": fr.id or fr.name,
                        "content": json.dumps(fr.response),
                    })
            if message.texts:
                messages.append({"role": "user", "content": message.text})
        return messages

    @staticmethod
    def _assistant_message(message: Message) -> dict[str, Any]:
        result: dict[str, Any] = {"role": "assistant", "content": message.text or None}
        calls = message.function_calls
        if calls:
            result["tool_calls"] = [
                {
                    "id": call.id or call.name,
                    "type": "function",
                    "function": {"name": call.name, "arguments": json.dumps(call.args)},
                }
                for call in calls
            ]
        return result

    @staticmethod
    def _to_candidate(choice: Any, response: Any) -> Candidate:
        message = choice.message
        parts: list[Part] = []
        if message.content:
            parts.append(TextPart(text=message.content))
        for tc in message.tool_calls or []:
            parts.append(
                FunctionCallPart(
                    function_call=FunctionCall(
                        name=tc.function.name,
                        args=_parse_arguments(tc.function.arguments),
                        id=tc.id or uuid4().hex[:12],
                    )
                )
            )
        usage = getattr(response, "usage", None)
        return Candidate(
            content=Message(role="model", parts=parts),
            token_count=usage.total_tokens if usage else None,
            finish_reason=choice.finish_reason,
        )


def _parse_arguments(raw: str | None) -> dict[str, Any]:
    """Parse JSON string arguments from a tool call."""
    try:
        result = json.loads(raw or "{}")
    except (json.JSONDecodeError, TypeError):
        return {"raw": raw}
    return result if isinstance(result, dict) else {"value": result}

"""GeminiCompletionService — calls the generateContent REST endpoint with httpx.

Key differences from the conversation model:
- Tools are sent as ``functionDeclarations`` wrapped one per tool entry.
- The system prompt travels separately as ``systemInstruction``.
- The API key is passed as the ``key`` query parameter.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx
from pydantic import ValidationError

from realtor.config import API_KEY_VARIABLE, DEFAULT_API_BASE, ModelConfig
from realtor.llm.errors import CompletionError, MissingCredentialError
from realtor.llm.models import Candidate, Conversation
from realtor.utils.telemetry import ATTR_BACKEND, ATTR_MODEL, ATTR_TOKENS_TOTAL, get_tracer

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class GeminiCompletionService:
    """Satisfies :class:`~realtor.llm.service.CompletionService`.

    Usage::

        async with GeminiCompletionService(ModelConfig()) as llm:
            candidates = await llm.complete(conversation, declarations)

    Outside a context manager each call opens its own HTTP client.
    """

    def __init__(self, config: ModelConfig) -> None:
        self.config = config
        api_key = config.api_key or os.environ.get(API_KEY_VARIABLE)
        if not api_key:
            raise MissingCredentialError(API_KEY_VARIABLE)
        self._api_key = api_key
        self._api_base = (config.api_base or DEFAULT_API_BASE).rstrip("/")
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> GeminiCompletionService:
        self._client = httpx.AsyncClient(timeout=self.config.request_timeout)
        return self

    async def __aexit__(self, *_: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def url(self) -> str:
        return f"{self._api_base}/models/{self.config.model}:generateContent"

    def build_payload(
        self, conversation: Conversation, tools: list[dict[str, Any]]
    ) -> dict[str, Any]:
        """Build the generateContent request body."""
        payload: dict[str, Any] = {
            "contents": conversation.to_wire(),
            "generationConfig": {"maxOutputTokens": self.config.max_output_tokens},
        }
        if tools:
            payload["tools"] = [{"functionDeclarations": [decl]} for decl in tools]
        if self.config.system_instruction:
            payload["systemInstruction"] = {
                "parts": [{"text": self.config.system_instruction}]
            }
        payload.update(self.config.extra)
        return payload

    async def complete(
        self,
        conversation: Conversation,
        tools: list[dict[str, Any]],
    ) -> list[Candidate]:
        """POST the conversation and parse the returned candidates."""
        with _tracer.start_as_current_span("completion.generate") as span:
            span.set_attribute(ATTR_BACKEND, "gemini")
            span.set_attribute(ATTR_MODEL, self.config.model)

            payload = self.build_payload(conversation, tools)
            logger.debug(
                "generateContent: %d messages, %d tools", len(conversation), len(tools)
            )
            if self._client is not None:
                data = await self._post(self._client, payload)
            else:
                async with httpx.AsyncClient(timeout=self.config.request_timeout) as client:
                    data = await self._post(client, payload)

            candidates = self._parse_candidates(data)
            usage = data.get("usageMetadata") or {}
            if "totalTokenCount" in usage:
                span.set_attribute(ATTR_TOKENS_TOTAL, int(usage["totalTokenCount"]))
            return candidates

    async def _post(self, client: httpx.AsyncClient, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await client.post(self.url, params={"key": self._api_key}, json=payload)
        except httpx.HTTPError as exc:
            raise CompletionError(f"Request to {self.config.model} failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code >= 400:
            detail = (data.get("error") or {}).get("message") if isinstance(data, dict) else None
            raise CompletionError(
                f"{self.config.model} returned HTTP {response.status_code}: "
                f"{detail or response.text[:200]}"
            )
        if not isinstance(data, dict):
            raise CompletionError("generateContent returned a non-object body")
        return data

    @staticmethod
    def _parse_candidates(data: dict[str, Any]) -> list[Candidate]:
        raw = data.get("candidates")
        if not raw:
            feedback = data.get("promptFeedback") or {}
            reason = feedback.get("blockReason", "no candidates returned")
            raise CompletionError(f"Completion produced no candidates ({reason})")
        try:
            return [Candidate.model_validate(c) for c in raw]
        except ValidationError as exc:
            raise CompletionError(f"Malformed candidate: {exc}") from exc

"""Tests for GeminiCompletionService with mocked httpx."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from realtor.config import ModelConfig
from realtor.llm.errors import CompletionError, MissingCredentialError
from realtor.llm.gemini import GeminiCompletionService
from realtor.llm.models import Conversation, Message

_DECL = {
    "name": "getEstatInfo",
    "description": "Details by name",
    "parameters": {"type": "object", "properties": {"name": {"type": "string"}}},
}


def _response(data: Any, status_code: int = 200) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = data
    response.text = str(data)
    return response


def _mock_httpx_client(response: MagicMock) -> AsyncMock:
    client = AsyncMock()
    client.post = AsyncMock(return_value=response)
    client.aclose = AsyncMock()
    return client


def _conversation() -> Conversation:
    return Conversation(messages=[Message.user("Tell me about Kuul")])


@pytest.fixture
def config() -> ModelConfig:
    return ModelConfig(api_key="test-key", model="gemini-2.0-flash")


class TestCredentials:
    def test_missing_key_fails_at_startup(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        with pytest.raises(MissingCredentialError, match="GEMINI_API_KEY"):
            GeminiCompletionService(ModelConfig())

    def test_key_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GEMINI_API_KEY", "env-key")
        GeminiCompletionService(ModelConfig())


class TestPayload:
    def test_shape(self, config: ModelConfig) -> None:
        service = GeminiCompletionService(config)
        payload = service.build_payload(_conversation(), [_DECL, {**_DECL, "name": "getEstates"}])

        assert payload["contents"] == [{"role": "user", "parts": [{"text": "Tell me about Kuul"}]}]
        assert payload["generationConfig"] == {"maxOutputTokens": 2048}
        assert payload["tools"] == [
            {"functionDeclarations": [_DECL]},
            {"functionDeclarations": [{**_DECL, "name": "getEstates"}]},
        ]
        assert payload["systemInstruction"]["parts"][0]["text"] == config.system_instruction

    def test_no_tools_key_without_tools(self, config: ModelConfig) -> None:
        payload = GeminiCompletionService(config).build_payload(_conversation(), [])
        assert "tools" not in payload

    def test_extra_is_merged(self) -> None:
        config = ModelConfig(api_key="k", extra={"safetySettings": []})
        payload = GeminiCompletionService(config).build_payload(_conversation(), [])
        assert payload["safetySettings"] == []

    def test_url(self, config: ModelConfig) -> None:
        service = GeminiCompletionService(config)
        assert service.url == (
            "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.0-flash:generateContent"
        )


class TestComplete:
    async def test_parses_candidates(self, config: ModelConfig) -> None:
        mock = _mock_httpx_client(_response({
            "candidates": [
                {
                    "content": {
                        "role": "model",
                        "parts": [{"functionCall": {"name": "getEstatInfo", "args": {"name": "Kuul"}}}],
                    },
                    "tokenCount": 9,
                }
            ],
            "usageMetadata": {"totalTokenCount": 40},
        }))

        with patch("realtor.llm.gemini.httpx.AsyncClient", return_value=mock):
            async with GeminiCompletionService(config) as service:
                candidates = await service.complete(_conversation(), [_DECL])

        [candidate] = candidates
        assert candidate.content.function_calls[0].args == {"name": "Kuul"}
        assert candidate.token_count == 9
        mock.aclose.assert_awaited_once()

    async def test_key_sent_as_query_parameter(self, config: ModelConfig) -> None:
        mock = _mock_httpx_client(_response({"candidates": [{"content": {"parts": [{"text": "ok"}]}}]}))

        with patch("realtor.llm.gemini.httpx.AsyncClient", return_value=mock):
            async with GeminiCompletionService(config) as service:
                await service.complete(_conversation(), [])

        kwargs = mock.post.call_args.kwargs
        assert kwargs["params"] == {"key": "test-key"}
        assert kwargs["json"]["contents"][0]["role"] == "user"

    async def test_http_error_status(self, config: ModelConfig) -> None:
        mock = _mock_httpx_client(_response({"error": {"message": "API key not valid"}}, 400))

        with patch("realtor.llm.gemini.httpx.AsyncClient", return_value=mock):
            async with GeminiCompletionService(config) as service:
                with pytest.raises(CompletionError, match="API key not valid"):
                    await service.complete(_conversation(), [])

    async def test_network_error(self, config: ModelConfig) -> None:
        mock = AsyncMock()
        mock.post = AsyncMock(side_effect=httpx.HTTPError("unreachable"))
        mock.aclose = AsyncMock()

        with patch("realtor.llm.gemini.httpx.AsyncClient", return_value=mock):
            async with GeminiCompletionService(config) as service:
                with pytest.raises(CompletionError, match="unreachable"):
                    await service.complete(_conversation(), [])

    async def test_blocked_prompt(self, config: ModelConfig) -> None:
        mock = _mock_httpx_client(_response({"promptFeedback": {"blockReason": "SAFETY"}}))

        with patch("realtor.llm.gemini.httpx.AsyncClient", return_value=mock):
            async with GeminiCompletionService(config) as service:
                with pytest.raises(CompletionError, match="SAFETY"):
                    await service.complete(_conversation(), [])

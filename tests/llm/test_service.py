"""Tests for completion backend selection."""

import pytest

from realtor.config import ModelConfig
from realtor.llm.errors import MissingCredentialError
from realtor.llm.gemini import GeminiCompletionService
from realtor.llm.litellm_service import LiteLLMCompletionService
from realtor.llm.service import CompletionService, create_completion_service


class TestCreateCompletionService:
    def test_gemini_is_default(self) -> None:
        service = create_completion_service(ModelConfig(api_key="k"))
        assert isinstance(service, GeminiCompletionService)
        assert isinstance(service, CompletionService)

    def test_litellm(self) -> None:
        service = create_completion_service(ModelConfig(backend="litellm", model="openai/gpt-4o"))
        assert isinstance(service, LiteLLMCompletionService)
        assert isinstance(service, CompletionService)

    def test_gemini_without_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        with pytest.raises(MissingCredentialError):
            create_completion_service(ModelConfig())

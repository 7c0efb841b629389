"""Tests for ``realtor ask`` and ``realtor chat`` CLI commands."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from realtor.cli import main
from realtor.llm.errors import CompletionError
from realtor.llm.models import Candidate, FunctionCall, FunctionCallPart, Message, TextPart
from realtor.protocol.errors import ProtocolViolationError
from realtor.protocol.models import Implementation, JsonRpcResponse


def _text(text: str) -> list[Candidate]:
    return [Candidate(content=Message(parts=[TextPart(text=text)]))]


def _mock_client(mock_client_cls: MagicMock) -> MagicMock:
    mock_instance = mock_client_cls.return_value
    mock_instance.__aenter__ = AsyncMock(return_value=mock_instance)
    mock_instance.__aexit__ = AsyncMock(return_value=False)
    mock_instance.server_info = Implementation(name="Realtor", version="1.0.0")
    mock_instance.tool_declarations = MagicMock(return_value=[])
    return mock_instance


def _mock_completion(mock_create: MagicMock, *results: object) -> MagicMock:
    service = MagicMock()
    service.complete = AsyncMock(side_effect=list(results))
    mock_create.return_value = service
    return service


class TestAsk:
    def test_tool_round(self) -> None:
        call = FunctionCall(name="getEstatInfo", args={"name": "Kuul"}, id="c1")
        with (
            patch("realtor.protocol.client.MCPClient") as mock_client_cls,
            patch("realtor.llm.service.create_completion_service") as mock_create,
        ):
            mock_instance = _mock_client(mock_client_cls)
            mock_instance.call_tool_raw = AsyncMock(
                return_value=JsonRpcResponse.success(
                    3, {"content": [{"type": "text", "text": json.dumps({"price": 27.0})}]}
                )
            )
            _mock_completion(
                mock_create,
                [Candidate(content=Message(parts=[FunctionCallPart(function_call=call)]))],
                _text("Kuul is priced at 27."),
            )

            result = CliRunner().invoke(main, ["ask", "How much is Kuul?"])

            assert result.exit_code == 0, result.output
            assert 'Requesting tool call getEstatInfo - {"name": "Kuul"}' in result.output
            assert "Kuul is priced at 27." in result.output

    def test_default_prompt(self) -> None:
        with (
            patch("realtor.protocol.client.MCPClient") as mock_client_cls,
            patch("realtor.llm.service.create_completion_service") as mock_create,
        ):
            _mock_client(mock_client_cls)
            service = _mock_completion(mock_create, _text("Ruul, Cool and Kuul."))

            result = CliRunner().invoke(main, ["ask"])

            assert result.exit_code == 0
            conversation = service.complete.call_args.args[0]
            assert conversation.messages[0].text == "What estates do you have?"

    def test_missing_api_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        with patch("realtor.protocol.client.MCPClient") as mock_client_cls:
            result = CliRunner().invoke(main, ["ask", "hi"])

            assert result.exit_code == 1
            assert "Startup error" in result.output
            mock_client_cls.assert_not_called()

    def test_failed_turn(self) -> None:
        with (
            patch("realtor.protocol.client.MCPClient") as mock_client_cls,
            patch("realtor.llm.service.create_completion_service") as mock_create,
        ):
            _mock_client(mock_client_cls)
            _mock_completion(mock_create, CompletionError("HTTP 503"))

            result = CliRunner().invoke(main, ["ask", "hi"])

            assert result.exit_code == 1
            assert "Turn failed" in result.output


class TestChat:
    def test_until_quit(self) -> None:
        with (
            patch("realtor.protocol.client.MCPClient") as mock_client_cls,
            patch("realtor.llm.service.create_completion_service") as mock_create,
        ):
            _mock_client(mock_client_cls)
            service = _mock_completion(mock_create, _text("Hello there."))

            result = CliRunner().invoke(main, ["chat"], input="hi\nquit\n")

            assert result.exit_code == 0
            assert "Connected to Realtor v1.0.0" in result.output
            assert "Hello there." in result.output
            assert service.complete.await_count == 1

    def test_eof_ends_session(self) -> None:
        with (
            patch("realtor.protocol.client.MCPClient") as mock_client_cls,
            patch("realtor.llm.service.create_completion_service") as mock_create,
        ):
            _mock_client(mock_client_cls)
            _mock_completion(mock_create)

            result = CliRunner().invoke(main, ["chat"], input="")

            assert result.exit_code == 0

    def test_failed_turn_keeps_session(self) -> None:
        with (
            patch("realtor.protocol.client.MCPClient") as mock_client_cls,
            patch("realtor.llm.service.create_completion_service") as mock_create,
        ):
            _mock_client(mock_client_cls)
            _mock_completion(mock_create, CompletionError("HTTP 503"), _text("Back again."))

            result = CliRunner().invoke(main, ["chat"], input="one\ntwo\nexit\n")

            assert result.exit_code == 0
            assert "Turn failed" in result.output
            assert "Back again." in result.output

    def test_protocol_error_ends_session(self) -> None:
        call = FunctionCall(name="getEstates", id="c1")
        with (
            patch("realtor.protocol.client.MCPClient") as mock_client_cls,
            patch("realtor.llm.service.create_completion_service") as mock_create,
        ):
            mock_instance = _mock_client(mock_client_cls)
            mock_instance.call_tool_raw = AsyncMock(
                side_effect=ProtocolViolationError("Transport closed before a response line arrived")
            )
            _mock_completion(
                mock_create,
                [Candidate(content=Message(parts=[FunctionCallPart(function_call=call)]))],
            )

            result = CliRunner().invoke(main, ["chat"], input="list\n")

            assert result.exit_code == 1
            assert "Session ended" in result.output

"""E2E tests: real server subprocess, real client session, scripted model."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from realtor.llm.models import FunctionCall, FunctionCallPart, TextPart
from realtor.orchestration.orchestrator import ToolAugmentedOrchestrator, TurnState
from realtor.protocol.client import MCPClient
from realtor.protocol.errors import ToolNotFoundError


class TestSession:
    async def test_handshake_and_catalog(self, server_command: str) -> None:
        async with MCPClient(server_command) as client:
            assert client.server_info is not None
            assert (client.server_info.name, client.server_info.version) == ("Realtor", "1.0.0")
            assert client.protocol_version == "2025-03-26"
            assert {t.name for t in client.tools} == {"getEstates", "getEstatInfo"}
            assert [r.uri for r in client.resources] == ["estates://app"]
            await client.ping()

    async def test_list_then_details(self, server_command: str) -> None:
        async with MCPClient(server_command) as client:
            listed = await client.call_tool("getEstates", {})
            names = json.loads(listed.content[0].text)["names"]
            assert names == ["Ruul", "Cool", "Kuul"]

            info = await client.call_tool("getEstatInfo", {"name": "kuul"})
            assert json.loads(info.content[0].text) == {
                "name": "Kuul",
                "price": 27.0,
                "description": "A two storey house",
            }

    async def test_unknown_tool_over_the_wire(self, server_command: str) -> None:
        async with MCPClient(server_command) as client:
            response = await client.request("tools/call", {"name": "deleteEstate", "arguments": {}})
            assert response.error is not None
            assert response.error.code == -32602

            with pytest.raises(ToolNotFoundError):
                await client.call_tool("deleteEstate", {})

            # the session survives the error
            await client.ping()

    async def test_every_tool_answers_with_content(self, server_command: str) -> None:
        async with MCPClient(server_command) as client:
            for tool in client.tools:
                args = {key: "placeholder" for key in tool.string_parameters()}
                result = await client.call_tool(tool.name, args)
                assert result.content

    async def test_read_resource(self, server_command: str) -> None:
        async with MCPClient(server_command) as client:
            result = await client.read_resource("estates://app")
            estates = json.loads(result.contents[0].text)
            assert [e["price"] for e in estates] == [22.0, 23.0, 27.0]


class TestOrchestratedTurn:
    async def test_tool_round_trip(self, server_command: str, scripted_completion: MagicMock) -> None:
        call = FunctionCall(name="getEstatInfo", args={"name": "Sunset Villa"}, id="c1")
        scripted_completion.queue(FunctionCallPart(function_call=call))
        scripted_completion.queue(TextPart(text="I could not find Sunset Villa."))

        async with MCPClient(server_command) as client:
            orchestrator = ToolAugmentedOrchestrator(client, scripted_completion)
            result = await orchestrator.run_turn("Does Sunset Villa have a garage?")

        assert result.tool_response == {"error": "Estate not found"}
        assert result.follow_up_texts == ["I could not find Sunset Villa."]
        assert orchestrator.state is TurnState.DONE
        orchestrator.conversation.check_pairing()
        sent_tools = scripted_completion.complete.call_args.args[1]
        assert {d["name"] for d in sent_tools} == {"getEstates", "getEstatInfo"}

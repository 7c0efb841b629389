"""Tool-augmented completion — one model turn with at most one tool call.

A turn moves through :class:`TurnState`::

    AWAITING_COMPLETION ──(no call)──────────────────────────────► DONE
            │
            └─(call)─► AWAITING_TOOL_RESULT ─► AWAITING_FOLLOW_UP ─► DONE

The first function-call part of the first candidate is executed against the
server; its result is appended as a user-role function response with the
same id, and exactly one follow-up completion is requested.  Function calls
in the follow-up are not executed.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from realtor.llm.errors import CompletionError
from realtor.llm.models import (
    Candidate,
    Conversation,
    FunctionCall,
    FunctionCallPart,
    Message,
    Part,
)
from realtor.llm.service import CompletionService
from realtor.protocol.errors import CapabilityError, ProtocolViolationError, ToolNotFoundError
from realtor.protocol.models import CallToolResult, JsonRpcResponse
from realtor.utils.telemetry import ATTR_TOOL_NAME, ATTR_TURN_STATE, get_tracer

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class TurnState(Enum):
    AWAITING_COMPLETION = "awaiting_completion"
    AWAITING_TOOL_RESULT = "awaiting_tool_result"
    AWAITING_FOLLOW_UP = "awaiting_follow_up"
    DONE = "done"


_TRANSITIONS: dict[TurnState, frozenset[TurnState]] = {
    TurnState.DONE: frozenset({TurnState.AWAITING_COMPLETION}),
    TurnState.AWAITING_COMPLETION: frozenset(
        {TurnState.AWAITING_TOOL_RESULT, TurnState.DONE}
    ),
    TurnState.AWAITING_TOOL_RESULT: frozenset({TurnState.AWAITING_FOLLOW_UP}),
    TurnState.AWAITING_FOLLOW_UP: frozenset({TurnState.DONE}),
}


class ToolSession(Protocol):
    """What the orchestrator needs from the MCP session."""

    def tool_declarations(self) -> list[dict[str, Any]]: ...
    async def call_tool_raw(self, name: str, arguments: dict[str, Any]) -> JsonRpcResponse: ...


@dataclass
class TurnResult:
    """Everything a single turn produced, in the order it happened."""

    texts: list[str] = field(default_factory=lambda: list[str]())
    tool_call: FunctionCall | None = None
    tool_response: dict[str, Any] | None = None
    follow_up_texts: list[str] = field(default_factory=lambda: list[str]())
    token_count: int = 0

    @property
    def all_texts(self) -> list[str]:
        return self.texts + self.follow_up_texts


class ToolAugmentedOrchestrator:
    """Runs user turns against a completion service and an MCP session.

    Usage::

        orchestrator = ToolAugmentedOrchestrator(mcp_client, completion_service)
        result = await orchestrator.run_turn("Does Kuul have a garden?")
        for text in result.all_texts:
            print(text)

    The conversation persists across turns of the same orchestrator.
    """

    def __init__(
        self,
        session: ToolSession,
        completion: CompletionService,
        conversation: Conversation | None = None,
    ) -> None:
        self.session = session
        self.completion = completion
        self.conversation = conversation if conversation is not None else Conversation()
        self._state = TurnState.DONE

    @property
    def state(self) -> TurnState:
        return self._state

    async def run_turn(self, prompt: str) -> TurnResult:
        """Answer *prompt*, calling at most one tool along the way.

        Completion-service failures and non-JSON tool results propagate; the
        turn is abandoned in whatever state it reached.
        """
        with _tracer.start_as_current_span("orchestrator.turn") as span:
            if self._state is not TurnState.DONE:
                # previous turn failed mid-way
                self._answer_dangling_calls()
                self._state = TurnState.DONE

            result = TurnResult()
            self._transition(TurnState.AWAITING_COMPLETION)
            self.conversation.append(Message.user(prompt))

            candidate = await self._complete()
            call = self._accept(candidate)
            result.texts = candidate.content.texts
            result.token_count += candidate.token_count or 0

            if call is None:
                self._transition(TurnState.DONE)
                span.set_attribute(ATTR_TURN_STATE, self._state.value)
                return result

            self._transition(TurnState.AWAITING_TOOL_RESULT)
            span.set_attribute(ATTR_TOOL_NAME, call.name)
            result.tool_call = call
            result.tool_response = await self._run_tool(call)
            self.conversation.append(Message.function_result(call, result.tool_response))

            self._transition(TurnState.AWAITING_FOLLOW_UP)
            follow_up = await self._complete()
            self._append_follow_up(follow_up)
            result.follow_up_texts = follow_up.content.texts
            result.token_count += follow_up.token_count or 0

            self._transition(TurnState.DONE)
            span.set_attribute(ATTR_TURN_STATE, self._state.value)
            return result

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _complete(self) -> Candidate:
        self.conversation.check_pairing()
        candidates = await self.completion.complete(
            self.conversation, self.session.tool_declarations()
        )
        if not candidates:
            raise CompletionError("Completion produced no candidates")
        return candidates[0]

    def _accept(self, candidate: Candidate) -> FunctionCall | None:
        """Append the model's message and pick the call to execute, if any.

        Every part is scanned.  Only the first function call is kept; later
        ones are removed from the appended message so each call left in the
        conversation gets its response.
        """
        call: FunctionCall | None = None
        parts: list[Part] = []
        for part in candidate.content.parts:
            if isinstance(part, FunctionCallPart):
                if call is not None:
                    logger.warning(
                        "Ignoring extra function call %s; one tool call per turn",
                        part.function_call.name,
                    )
                    continue
                call = part.function_call
            parts.append(part)
        if parts:
            self.conversation.append(Message(role="model", parts=parts))
        return call

    def _append_follow_up(self, candidate: Candidate) -> None:
        parts = [p for p in candidate.content.parts if not isinstance(p, FunctionCallPart)]
        dropped = len(candidate.content.parts) - len(parts)
        if dropped:
            logger.warning("Follow-up requested %d more tool call(s); not executed", dropped)
        if parts:
            self.conversation.append(Message(role="model", parts=parts))

    async def _run_tool(self, call: FunctionCall) -> dict[str, Any]:
        logger.info("Requesting tool call %s - %s", call.name, json.dumps(call.args))
        try:
            response = await self.session.call_tool_raw(call.name, call.args)
        except (CapabilityError, ToolNotFoundError) as exc:
            return {"error": str(exc)}

        if response.error is not None:
            logger.info("Tool %s returned error %d", call.name, response.error.code)
            return {"error": response.error.message}

        content = CallToolResult.model_validate(response.result).content
        if not content:
            raise ProtocolViolationError(f"tools/call {call.name} returned no content")
        payload = json.loads(content[0].text)
        return payload if isinstance(payload, dict) else {"result": payload}

    def _transition(self, new_state: TurnState) -> None:
        if new_state not in _TRANSITIONS[self._state]:
            msg = f"Invalid turn transition {self._state.value} -> {new_state.value}"
            raise RuntimeError(msg)
        logger.debug("Turn state %s -> %s", self._state.value, new_state.value)
        self._state = new_state

    def _answer_dangling_calls(self) -> None:
        for call in self.conversation.unanswered_calls():
            logger.warning("Answering abandoned call %s with an error", call.name)
            self.conversation.append(
                Message.function_result(call, {"error": "Tool call was interrupted"})
            )

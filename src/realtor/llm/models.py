"""Conversation model — messages exchanged with the completion service.

A :class:`Message` holds a list of parts, and every part is exactly one of
:class:`TextPart`, :class:`FunctionCallPart` or :class:`FunctionResponsePart`.
The variant is chosen from the payload's keys when validating, so a part
with an unknown shape fails at the boundary instead of flowing through as
an untyped dict.  Field aliases follow the generateContent wire format
(``functionCall``, ``functionResponse``, ``tokenCount``).
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Discriminator, Field, Tag

_WIRE = {"populate_by_name": True}

# ---------------------------------------------------------------------------
# Parts
# ---------------------------------------------------------------------------


class FunctionCall(BaseModel):
    """A model-originated request to run a tool."""

    name: str
    args: dict[str, Any] = {}
    id: str | None = None


class FunctionResponse(BaseModel):
    """The result of a tool run, fed back to the model."""

    name: str
    response: dict[str, Any]
    id: str | None = None


class TextPart(BaseModel):
    """Plain text content."""

    model_config = _WIRE

    text: str
    thought: bool | None = None


class FunctionCallPart(BaseModel):
    model_config = _WIRE

    function_call: FunctionCall = Field(alias="functionCall")


class FunctionResponsePart(BaseModel):
    model_config = _WIRE

    function_response: FunctionResponse = Field(alias="functionResponse")


def _part_kind(value: Any) -> str | None:
    if isinstance(value, dict):
        if "functionCall" in value or "function_call" in value:
            return "function_call"
        if "functionResponse" in value or "function_response" in value:
            return "function_response"
        if "text" in value:
            return "text"
        return None
    if isinstance(value, FunctionCallPart):
        return "function_call"
    if isinstance(value, FunctionResponsePart):
        return "function_response"
    if isinstance(value, TextPart):
        return "text"
    return None


Part = Annotated[
    Annotated[TextPart, Tag("text")]
    | Annotated[FunctionCallPart, Tag("function_call")]
    | Annotated[FunctionResponsePart, Tag("function_response")],
    Discriminator(_part_kind),
]


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


class Message(BaseModel):
    """One conversation entry.

    Roles:
    - user: human input and function responses
    - model: generated text and function-call requests
    """

    role: Literal["user", "model"] = "model"
    parts: list[Part] = []

    @classmethod
    def user(cls, text: str) -> Message:
        return cls(role="user", parts=[TextPart(text=text)])

    @classmethod
    def function_result(cls, call: FunctionCall, response: dict[str, Any]) -> Message:
        """Create the user-role message answering *call*."""
        part = FunctionResponsePart(
            function_response=FunctionResponse(name=call.name, id=call.id, response=response)
        )
        return cls(role="user", parts=[part])

    @property
    def texts(self) -> list[str]:
        """Text of every non-thought text part, in order."""
        return [p.text for p in self.parts if isinstance(p, TextPart) and not p.thought]

    @property
    def text(self) -> str:
        return "".join(self.texts)

    @property
    def function_calls(self) -> list[FunctionCall]:
        return [p.function_call for p in self.parts if isinstance(p, FunctionCallPart)]

    @property
    def function_responses(self) -> list[FunctionResponse]:
        return [
            p.function_response for p in self.parts if isinstance(p, FunctionResponsePart)
        ]


class ConversationError(Exception):
    """The conversation is not in a state the completion service accepts."""


class Conversation(BaseModel):
    """An append-only, ordered sequence of messages."""

    messages: list[Message] = []

    def append(self, message: Message) -> None:
        self.messages.append(message)

    @property
    def last(self) -> Message | None:
        return self.messages[-1] if self.messages else None

    def unanswered_calls(self) -> list[FunctionCall]:
        """Function calls not yet matched by a later function response.

        Calls carrying an id are matched by id; calls without one are matched
        by tool name, oldest first.
        """
        pending: list[FunctionCall] = []
        for message in self.messages:
            pending.extend(message.function_calls)
            for response in message.function_responses:
                for index, call in enumerate(pending):
                    same = call.id == response.id if call.id else call.name == response.name
                    if same:
                        del pending[index]
                        break
        return pending

    def check_pairing(self) -> None:
        """Raise :class:`ConversationError` if any function call is unanswered."""
        pending = self.unanswered_calls()
        if pending:
            names = ", ".join(call.name for call in pending)
            raise ConversationError(f"Function calls without a response: {names}")

    def to_wire(self) -> list[dict[str, Any]]:
        return [m.model_dump(by_alias=True, exclude_none=True) for m in self.messages]

    def __len__(self) -> int:
        return len(self.messages)

    def __iter__(self):  # type: ignore[override]
        return iter(self.messages)


# ---------------------------------------------------------------------------
# Completion output
# ---------------------------------------------------------------------------


class Candidate(BaseModel):
    """One response alternative returned by the completion service."""

    model_config = _WIRE

    content: Message = Field(default_factory=Message)
    token_count: int | None = Field(default=None, alias="tokenCount")
    finish_reason: str | None = Field(default=None, alias="finishReason")
